"""Activity-overlap matching for day summaries.

Two day summaries rarely share a fingerprint, so they are compared by the
activities they list: each activity in one day is paired with its closest
unused activity in the other, and the overlap is the share of paired
activities relative to the shorter day.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from typing import Iterable, Optional

from onlyone.domain.posts.models import Post, Scope
from onlyone.domain.quality.action import DETERMINERS, FIRST_PERSON, is_concrete_verb, is_gerund, is_past_tense

ACTIVITY_MATCH_THRESHOLD = 0.75
MIN_ACTIVITY_WORDS = 2
MAX_ACTIVITY_WORDS = 15

SCOPE_THRESHOLDS = {
	Scope.CITY: 0.75,
	Scope.STATE: 0.70,
	Scope.COUNTRY: 0.65,
	Scope.WORLD: 0.60,
}

_SPLIT_RE = re.compile(r",\s*and\s+|,\s*then\s+|,\s+|;\s*|\.\s+|\s+and\s+then\s+|\s+then\s+|\s+and\s+", re.IGNORECASE)
_LEADING_TIME_RE = re.compile(
	r"^(this morning|this afternoon|this evening|tonight|today|later|after that|before that|first|next|finally|lastly|also)\s+",
	re.IGNORECASE,
)
_LEADING_I_RE = re.compile(r"^i\s+", re.IGNORECASE)
_SUBORDINATE_RE = re.compile(r"\s+(before|after|while|when|as|since)\s+.+$", re.IGNORECASE)
_BY_RE = re.compile(r"^.+\s+by\s+", re.IGNORECASE)
_WORD_RE = re.compile(r"[a-z0-9']+")
_FILLER = frozenset({"the", "a", "an", "my", "our", "some", "to", "with", "for", "of", "in", "on", "at", "his", "her", "their", "your"})


@dataclass(frozen=True, slots=True)
class ActivityPair:
	activity: str
	matched: str
	similarity: float


@dataclass(frozen=True, slots=True)
class DayOverlap:
	overlap: float
	matched: int
	pairs: tuple[ActivityPair, ...] = ()


@dataclass(frozen=True, slots=True)
class DayMatch:
	post: Post
	overlap: float
	matched: int
	total: int
	pairs: tuple[ActivityPair, ...] = field(default=())


def _clean(clause: str) -> str:
	value = clause.strip().rstrip(".!?")
	value = _LEADING_TIME_RE.sub("", value)
	value = _LEADING_I_RE.sub("", value)
	value = _SUBORDINATE_RE.sub("", value)
	value = _BY_RE.sub("", value)
	return value.strip()


def _has_verb(words: list[str]) -> bool:
	if any(is_past_tense(word) or is_gerund(word) for word in words):
		return True
	head = words[0]
	return head not in DETERMINERS and head not in FIRST_PERSON and is_concrete_verb(head)


def extract_activities(text: str) -> list[str]:
	"""Split a day summary into distinct activities.

	"I made coffee, walked the dog, and read a book" becomes
	``["made coffee", "walked the dog", "read a book"]``.
	"""
	activities: list[str] = []
	seen: set[str] = set()
	for clause in _SPLIT_RE.split(text or ""):
		activity = _clean(clause)
		words = _WORD_RE.findall(activity.lower())
		if len(activity) < 3 or not MIN_ACTIVITY_WORDS <= len(words) <= MAX_ACTIVITY_WORDS:
			continue
		if not _has_verb(words):
			continue
		key = " ".join(words)
		if key in seen:
			continue
		seen.add(key)
		activities.append(activity)
	return activities


def _stem(word: str) -> str:
	if len(word) > 5 and word.endswith("ing"):
		return word[:-3]
	if len(word) > 4 and word.endswith("ed"):
		return word[:-2]
	if len(word) > 3 and word.endswith("s") and not word.endswith("ss"):
		return word[:-1]
	return word


def _content_stems(activity: str) -> set[str]:
	return {_stem(word) for word in _WORD_RE.findall(activity.lower()) if word not in _FILLER}


def activity_similarity(first: str, second: str) -> float:
	"""70% shared content words, 30% character-level similarity."""
	left, right = _content_stems(first), _content_stems(second)
	word_score = len(left & right) / len(left | right) if left and right else 0.0
	string_score = SequenceMatcher(None, first.lower(), second.lower()).ratio()
	return 0.7 * word_score + 0.3 * string_score


def day_overlap(activities: list[str], others: list[str], *, threshold: float = ACTIVITY_MATCH_THRESHOLD) -> DayOverlap:
	if not activities or not others:
		return DayOverlap(overlap=0.0, matched=0)
	used: set[int] = set()
	pairs: list[ActivityPair] = []
	for activity in activities:
		best_index, best_score = -1, 0.0
		for index, other in enumerate(others):
			if index in used:
				continue
			score = activity_similarity(activity, other)
			if score > best_score:
				best_index, best_score = index, score
		if best_index >= 0 and best_score >= threshold:
			used.add(best_index)
			pairs.append(ActivityPair(activity=activity, matched=others[best_index], similarity=round(best_score, 3)))
	return DayOverlap(overlap=len(pairs) / min(len(activities), len(others)), matched=len(pairs), pairs=tuple(pairs))


def scope_threshold(scope: Scope) -> float:
	return SCOPE_THRESHOLDS.get(scope, SCOPE_THRESHOLDS[Scope.WORLD])


def find_similar_days(
	activities: list[str],
	candidates: Iterable[Post],
	*,
	scope: Scope = Scope.WORLD,
	threshold: Optional[float] = None,
) -> list[DayMatch]:
	"""Candidates whose overlap reaches the scope threshold, highest first."""
	required = scope_threshold(scope) if threshold is None else threshold
	matches: list[DayMatch] = []
	for post in candidates:
		other = extract_activities(post.content)
		result = day_overlap(activities, other)
		if other and result.overlap >= required:
			matches.append(DayMatch(post=post, overlap=result.overlap, matched=result.matched, total=len(other), pairs=result.pairs))
	matches.sort(key=lambda match: match.overlap, reverse=True)
	return matches
