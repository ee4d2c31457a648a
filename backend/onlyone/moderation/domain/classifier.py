"""External text classifier used by the AI moderation stage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

import httpx

from onlyone.settings import settings

LABEL_REASONS = {
    "toxic": "Content contains toxic language",
    "severe_toxic": "Content contains severely toxic language",
    "obscene": "Content contains obscene language",
    "threat": "Content contains threatening language",
    "insult": "Content contains insulting language",
    "identity_hate": "Content contains hate speech",
    "sexual_explicit": "Content contains explicit sexual content",
    "profanity": "Content contains excessive profanity",
}

LABEL_MESSAGES = {
    "toxic": "Yikes, that came across as toxic. Maybe dial it back a bit?",
    "severe_toxic": "Whoa, that's really toxic. Try something kinder.",
    "obscene": "Keep it family-friendly, please.",
    "threat": "Threats aren't cool. How about something positive instead?",
    "insult": "We're all friends here. Save the insults for your group chat.",
    "identity_hate": "Hate speech isn't welcome here. Try kindness instead.",
    "sexual_explicit": "That's very explicit. Keep it PG, please!",
    "profanity": "Maybe use fewer of *those* words?",
}

DEFAULT_REASON = "Content violates community guidelines"
DEFAULT_MESSAGE = "This looks like it breaks the community guidelines. Please try again."


class ClassifierError(Exception):
    """Raised when the classifier returns an unusable response."""


class TextClassifier(Protocol):
    async def score(self, text: str) -> Mapping[str, float]:
        ...


class NullTextClassifier(TextClassifier):
    async def score(self, text: str) -> Mapping[str, float]:  # noqa: D401
        return {label: 0.0 for label in LABEL_REASONS}


def parse_scores(payload: Any) -> dict[str, float]:
    """Flatten ``[[{label, score}, ...]]`` or ``[{label, score}, ...]`` into a mapping."""
    items = payload
    if isinstance(items, list) and items and isinstance(items[0], list):
        items = items[0]
    if not isinstance(items, list):
        raise ClassifierError("unexpected classifier payload")
    scores: dict[str, float] = {}
    for item in items:
        if not isinstance(item, Mapping) or "label" not in item or "score" not in item:
            raise ClassifierError("unexpected classifier item")
        scores[str(item["label"]).lower()] = float(item["score"])
    return scores


@dataclass
class HttpTextClassifier(TextClassifier):
    """Calls a hosted toxicity model over HTTP (Hugging Face inference style)."""

    http: httpx.AsyncClient
    url: str
    token: Optional[str] = None
    request_timeout: float = 3.0

    async def score(self, text: str) -> Mapping[str, float]:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        response = await self.http.post(
            self.url,
            json={"inputs": text, "options": {"wait_for_model": True}},
            headers=headers,
            timeout=self.request_timeout,
        )
        response.raise_for_status()
        return parse_scores(response.json())


def build_classifier(http: Optional[httpx.AsyncClient] = None) -> TextClassifier:
    if not settings.moderation_ai_enabled:
        return NullTextClassifier()
    return HttpTextClassifier(
        http=http or httpx.AsyncClient(),
        url=settings.moderation_ai_url,
        token=settings.moderation_ai_token,
        request_timeout=settings.moderation_ai_timeout_seconds,
    )
