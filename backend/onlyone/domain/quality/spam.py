"""Weighted spam-pattern scoring."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_SEQUENCE = r"(one|two|three|four|five|first|second|third|alpha|beta|gamma|delta|epsilon|omega)"
_SEQUENTIAL_RE = re.compile(
    rf"\b{_SEQUENCE}\s+{_SEQUENCE}\b|\b(test|post|entry|item|sample)\s+\d+\b",
    re.IGNORECASE,
)
_URL_RE = re.compile(
    r"https?://|\bwww\.|\b[\w-]+\.(com|org|net|io|co|app|dev|xyz|info|biz|me|ly)\b",
    re.IGNORECASE,
)
_EMAIL_RE = re.compile(r"\b[\w.+-]+@[\w-]+\.[\w.-]+\b")

SPAM_THRESHOLD = 50

_WEIGHTS = {
    "sequential_identifiers": 40,
    "url": 50,
    "email": 50,
    "special_characters": 30,
    "excessive_caps": 25,
}


@dataclass(slots=True)
class SpamResult:
    is_spam: bool
    confidence: int
    reasons: list[str] = field(default_factory=list)


def special_char_ratio(text: str) -> float:
    compact = "".join(text.split())
    if not compact:
        return 0.0
    special = sum(1 for ch in compact if not ch.isalnum())
    return special / len(compact)


def uppercase_ratio(text: str) -> tuple[float, int]:
    letters = [ch for ch in text if ch.isalpha()]
    if not letters:
        return 0.0, 0
    upper = sum(1 for ch in letters if ch.isupper())
    return upper / len(letters), len(letters)


def score_spam(text: str) -> SpamResult:
    reasons: list[str] = []
    if _SEQUENTIAL_RE.search(text):
        reasons.append("sequential_identifiers")
    if _URL_RE.search(text):
        reasons.append("url")
    if _EMAIL_RE.search(text):
        reasons.append("email")
    if special_char_ratio(text) > 0.3:
        reasons.append("special_characters")
    caps, letters = uppercase_ratio(text)
    if letters > 5 and caps > 0.5:
        reasons.append("excessive_caps")
    total = sum(_WEIGHTS[reason] for reason in reasons)
    return SpamResult(is_spam=total >= SPAM_THRESHOLD, confidence=min(100, total), reasons=reasons)
