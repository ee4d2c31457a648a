"""Keyword vibe tagging for posts.

Categories are tried in order and the first with a matching phrase wins.
Phrases match on word boundaries, so "ran" does not fire on "grandma".
"""

from __future__ import annotations

import re
from typing import Pattern

DEFAULT_VIBE = "Free Spirit"
POSITIVE_VIBE = "Rainbow Energy"

_VIBE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
	("Night Owl", ("midnight", "late night", "3am", "2am", "insomnia", "couldn't sleep", "stayed up")),
	("Digital Detox", ("didn't check", "avoided phone", "no instagram", "no social media", "screen-free", "unplugged")),
	("Emotional", ("cried", "emotional", "sad movie", "tears", "feelings", "overwhelmed")),
	(
		"Fitness Warrior",
		("ran", "gym", "workout", "exercise", "marathon", "training", "swam", "cycled", "cricket", "football", "soccer", "tennis", "climbed"),
	),
	("Foodie Chef", ("cooked", "baked", "recipe", "kitchen", "homemade", "chef", "sourdough")),
	("Creative Soul", ("painted", "drew", "wrote", "created art", "sketched", "designed", "knitted")),
	("Bookworm", ("read a book", "reading", "library", "novel", "chapter", "finished book")),
	("Music Lover", ("listened to", "concert", "song", "album", "playlist")),
	("Nature Explorer", ("hiked", "walk in park", "nature", "outside", "trail", "forest", "lake", "sunrise")),
	("Gamer", ("played game", "gaming", "console", "video game")),
	("Wanderlust", ("traveled", "travelled", "trip", "flight", "explored", "adventure", "journey")),
	("Chill Vibes", ("nap", "relaxed", "lazy day", "rest", "slept in")),
	("Zen Master", ("meditated", "yoga", "mindful", "breathe", "calm")),
	("Drama Energy", ("argued", "fight", "dramatic", "chaos", "confrontation")),
	("Social Butterfly", ("met friends", "party", "hangout", "hung out", "gathering")),
	("Homebody", ("stayed home", "cozy", "indoor", "didn't go out")),
	("Productivity Beast", ("finished", "completed", "achieved", "productive", "work done", "accomplished", "repaired", "built")),
	("Procrastinator", ("procrastinated", "put off", "didn't do")),
)

_POSITIVE_WORDS = ("happy", "great", "amazing", "love", "loved", "joy", "fun", "awesome")


def _phrase_pattern(phrases: tuple[str, ...]) -> Pattern[str]:
	return re.compile(r"(?<![\w'])(" + "|".join(re.escape(phrase) for phrase in phrases) + r")(?![\w'])")


_VIBE_PATTERNS = tuple((vibe, _phrase_pattern(phrases)) for vibe, phrases in _VIBE_KEYWORDS)
_POSITIVE_PATTERN = _phrase_pattern(_POSITIVE_WORDS)

VIBES = tuple(vibe for vibe, _ in _VIBE_KEYWORDS) + (POSITIVE_VIBE, DEFAULT_VIBE)


def detect_vibe(content: str) -> str:
	lowered = content.lower().replace("’", "'")
	for vibe, pattern in _VIBE_PATTERNS:
		if pattern.search(lowered):
			return vibe
	if _POSITIVE_PATTERN.search(lowered):
		return POSITIVE_VIBE
	return DEFAULT_VIBE
