"""Coherence scoring: gibberish, keyboard mashing, placeholders and repetition."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_VOWELS = frozenset("aeiouy")
_TOKEN_RE = re.compile(r"[a-z0-9']+")
_REPEATED_CHAR_RE = re.compile(r"(.)\1{4,}")
_KEYBOARD_RE = re.compile(r"qwert|werty|asdf|sdfg|zxcv|xcvb|hjkl|yuiop|uiop")
_CONSONANT_RUN_RE = re.compile(r"^[bcdfghjklmnpqrstvwxz]{5,}$")

_PLACEHOLDER_WORDS = frozenset({"test", "testing", "tst", "sample", "dummy", "placeholder", "post", "entry", "item", "foo", "bar", "lorem", "ipsum"})
_SEQUENCE_WORDS = frozenset(
    {
        "one", "two", "three", "four", "five", "six", "seven", "eight", "nine", "ten",
        "first", "second", "third", "fourth", "fifth",
        "alpha", "beta", "gamma", "delta", "epsilon", "zeta", "eta", "theta", "omega",
    }
)

MIN_ELIGIBLE_LENGTH = 5
VOWEL_RATIO_BOUNDS = (0.15, 0.70)
COHERENT_THRESHOLD = 65


@dataclass(slots=True)
class CoherenceResult:
    score: int
    is_coherent: bool
    issues: list[str] = field(default_factory=list)


def tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


def vowel_ratio(token: str) -> float:
    letters = [ch for ch in token if ch.isalpha()]
    if not letters:
        return 0.0
    return sum(1 for ch in letters if ch in _VOWELS) / len(letters)


def is_gibberish_token(token: str) -> bool:
    if len(token) < MIN_ELIGIBLE_LENGTH or not token.isalpha():
        return False
    low, high = VOWEL_RATIO_BOUNDS
    ratio = vowel_ratio(token)
    return ratio < low or ratio > high


def gibberish_fraction(tokens: list[str]) -> float:
    eligible = [token for token in tokens if len(token) >= MIN_ELIGIBLE_LENGTH and token.isalpha()]
    if not eligible:
        return 0.0
    flagged = sum(1 for token in eligible if is_gibberish_token(token))
    return flagged / len(eligible)


def has_keyboard_pattern(tokens: list[str]) -> bool:
    return any(_KEYBOARD_RE.search(token) or _CONSONANT_RUN_RE.match(token) for token in tokens)


def has_placeholder_sequence(tokens: list[str]) -> bool:
    for current, following in zip(tokens, tokens[1:]):
        if current in _PLACEHOLDER_WORDS and (following.isdigit() or following in _SEQUENCE_WORDS):
            return True
    return False


def diversity(tokens: list[str]) -> float:
    if not tokens:
        return 0.0
    return len(set(tokens)) / len(tokens)


def _is_meaningful(token: str) -> bool:
    return len(token) >= 2 and any(ch in _VOWELS for ch in token)


def _result(score: int, *issues: str) -> CoherenceResult:
    return CoherenceResult(score=score, is_coherent=score >= COHERENT_THRESHOLD, issues=list(issues))


def analyze_coherence(text: str) -> CoherenceResult:
    stripped = text.strip()
    if len(stripped) < 5:
        return _result(0, "too_short")
    tokens = tokenize(stripped)
    if not tokens:
        return _result(0, "no_words")
    if _REPEATED_CHAR_RE.search(stripped.lower()):
        return _result(20, "repeated_characters")
    if has_keyboard_pattern(tokens):
        return _result(20, "keyboard_pattern")
    if gibberish_fraction(tokens) > 0.5:
        return _result(25, "gibberish")
    if has_placeholder_sequence(tokens):
        return _result(30, "placeholder")
    meaningful = [token for token in tokens if _is_meaningful(token)]
    if not meaningful:
        return _result(0, "no_meaningful_words")
    ratio = diversity(tokens)
    if len(tokens) >= 2 and ratio <= 0.5:
        return _result(35, "repetitive")

    score = 100
    issues: list[str] = []
    if len(meaningful) < 2:
        score -= 20
        issues.append("few_meaningful_words")
    if ratio < 0.75:
        score -= 10
        issues.append("low_diversity")
    return _result(max(50, score), *issues)
