"""Uniqueness of one fingerprint across day, week, month and all-time windows."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from onlyone.domain.posts.models import ScopeFilter
from onlyone.domain.posts.store import PostStore
from onlyone.domain.uniqueness.rarity import rarity_score

WINDOWS: tuple[tuple[str, Optional[timedelta]], ...] = (
	("today", timedelta(days=1)),
	("thisWeek", timedelta(days=7)),
	("thisMonth", timedelta(days=30)),
	("allTime", None),
)


@dataclass(frozen=True, slots=True)
class WindowUniqueness:
	uniqueness: int
	match_count: int
	total_posts: int

	def as_dict(self) -> dict[str, int]:
		return {"uniqueness": self.uniqueness, "matchCount": self.match_count, "totalPosts": self.total_posts}


@dataclass(frozen=True, slots=True)
class TemporalUniqueness:
	windows: dict[str, WindowUniqueness]
	trend: str
	insight: str

	def as_dict(self) -> dict[str, object]:
		payload: dict[str, object] = {name: value.as_dict() for name, value in self.windows.items()}
		payload["trend"] = self.trend
		payload["insight"] = self.insight
		return payload


def classify_trend(today_matches: int, week_matches: int) -> str:
	"""Compare today's match rate with the average daily rate of the week."""
	week_rate = week_matches / 7
	if today_matches > 0 and today_matches > week_rate * 1.5:
		return "rising"
	if week_matches > 0 and today_matches < week_rate * 0.5:
		return "falling"
	return "flat"


def build_insight(windows: dict[str, WindowUniqueness], trend: str) -> str:
	today = windows["today"]
	all_time = windows["allTime"]
	if today.uniqueness == 100 and all_time.uniqueness == 100:
		return "You're the first person ever to do this. Legendary."
	if today.uniqueness >= 90 and all_time.uniqueness <= 50:
		return "Rare today but common over time. This one comes and goes."
	if today.uniqueness <= 50 and all_time.uniqueness >= 90:
		return "This was rare once. Now everyone's doing it."
	if trend == "rising":
		return f"This is catching on! {all_time.match_count} others have done this. You're early to the trend."
	if trend == "falling":
		return "This used to be common, but not anymore. You're keeping it alive!"
	if all_time.match_count == 0:
		return "Nobody else has done this yet."
	return f"A steady favourite: {all_time.match_count} others have done this so far."


async def _window(
	store: PostStore,
	content_hash: str,
	scope: ScopeFilter,
	since: Optional[datetime],
	exclude_id: Optional[str],
) -> WindowUniqueness:
	matches, others = await asyncio.gather(
		store.count_matching(content_hash, scope, since=since, exclude_id=exclude_id),
		store.count_total(scope, since=since, exclude_id=exclude_id),
	)
	population = others + 1
	return WindowUniqueness(uniqueness=rarity_score(matches, population), match_count=matches, total_posts=population)


async def temporal_uniqueness(
	store: PostStore,
	content_hash: str,
	scope: ScopeFilter,
	*,
	now: datetime,
	exclude_id: Optional[str] = None,
) -> TemporalUniqueness:
	results = await asyncio.gather(
		*(
			_window(store, content_hash, scope, now - span if span else None, exclude_id)
			for _name, span in WINDOWS
		)
	)
	windows = {name: result for (name, _span), result in zip(WINDOWS, results)}
	trend = classify_trend(windows["today"].match_count, windows["thisWeek"].match_count)
	return TemporalUniqueness(windows=windows, trend=trend, insight=build_insight(windows, trend))
