"""Deterministic moderation rules evaluated before any classifier call."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Pattern


@dataclass(frozen=True, slots=True)
class StaticRule:
    code: str
    severity: str
    reason: str
    message: str
    patterns: tuple[Pattern[str], ...]

    def matches(self, text: str) -> bool:
        return any(pattern.search(text) for pattern in self.patterns)


def _compile(*patterns: str) -> tuple[Pattern[str], ...]:
    return tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns)


def _terms(terms: Iterable[str]) -> tuple[Pattern[str], ...]:
    return tuple(re.compile(rf"\b{re.escape(term)}", re.IGNORECASE) for term in terms)


RULES: tuple[StaticRule, ...] = (
    StaticRule(
        code="phone_number",
        severity="high",
        reason="Phone numbers are not allowed for your safety",
        message="For your safety, please don't share phone numbers.",
        patterns=_compile(
            r"\b\d{3}[-.\s]?\d{3}[-.\s]?\d{4}\b",
            r"\+\d{1,3}[-.\s]?\d{3,4}[-.\s]?\d{3,4}[-.\s]?\d{3,4}\b",
            r"\(\d{3}\)\s?\d{3}[-.\s]?\d{4}\b",
        ),
    ),
    StaticRule(
        code="email",
        severity="high",
        reason="Email addresses are not allowed for your safety",
        message="For your safety, please don't share email addresses.",
        patterns=_compile(r"\b[a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,}\b"),
    ),
    StaticRule(
        code="url",
        severity="medium",
        reason="URLs and links are not allowed",
        message="Links aren't allowed here. Just tell us what you did!",
        patterns=_compile(
            r"https?://",
            r"\bwww\.",
            r"\b[a-z0-9-]+\.(com|org|net|io|co|app|dev|me|info|biz)\b",
        ),
    ),
    StaticRule(
        code="social_handle",
        severity="medium",
        reason="Social media handles and usernames are not allowed",
        message="Keep it anonymous. Social handles and usernames aren't allowed.",
        patterns=_compile(
            r"(^|\s)@[a-z0-9_]{3,}",
            r"\b(instagram|insta|twitter|facebook|snapchat|tiktok|telegram|whatsapp|onlyfans)\b",
        ),
    ),
    StaticRule(
        code="sexual_content",
        severity="high",
        reason="Content contains inappropriate material",
        message="That's not the kind of content this app is for. Keep it PG, please!",
        patterns=_terms(("porn", "xxx", "nsfw", "nude", "sex video", "pornhub", "xvideos", "pornstar"))
        + _compile(
            r"\b(orgasm|ejaculat|masturbat)",
            r"\b(jerk(ing|ed)?|jack(ing|ed)?|beat(ing)?)\s+off\b",
            r"\b(fuck|fucking|fucked)\b",
            r"\b(did|doing|tried|had)\s+(doggy|missionary|cowgirl|reverse\s+cowgirl)\b",
            r"\b(came|coming)\s+(\d+|multiple|several|many)\s+times?\b",
            r"\b(watch|view|look|see)\w*\b.*\b(porn|adult\s+(video|content|film))\b",
            r"\b(dick|cock|penis|pussy|vagina|tits|boobs)\b",
            r"\b(getting|get|got)\s+off\s+(to|on|while)\b",
        ),
    ),
    StaticRule(
        code="self_harm_violence",
        severity="high",
        reason="Content contains concerning language",
        message="This sounds serious. If you're struggling, please reach out to someone you trust or a local helpline.",
        patterns=_compile(
            r"\bkill(ed|ing)?\s+myself\b",
            r"\bsuicid",
            r"\bend\s+my\s+life\b",
            r"\bhurt(ing)?\s+myself\b",
            r"\bself[-\s]?harm",
            r"\bterroris",
            r"\bbomb\s+threats?\b",
            r"\b(plant|planted|planting|build|built|building|make|made|making|set\s+off|detonate[ds]?)\s+(a|the)\s+bomb\b",
            r"\bshoot\s+up\b",
            r"\bmass\s+shooting\b",
        ),
    ),
    StaticRule(
        code="commercial_spam",
        severity="medium",
        reason="Content appears to be spam",
        message="This looks like an ad. Share something you actually did instead!",
        patterns=_compile(
            r"(.)\1{10,}",
            r"\b(buy now|click here|limited time|free money|get rich|promo code|discount code)\b",
            r"\bmake\s+\$\d+",
            r"\b(viagra|cialis)\b",
        ),
    ),
)


def evaluate(text: str, rules: Iterable[StaticRule] = RULES) -> Optional[StaticRule]:
    """Return the first rule that fires, or ``None``."""
    for rule in rules:
        if rule.matches(text):
            return rule
    return None
