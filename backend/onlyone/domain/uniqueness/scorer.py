"""Write-time scoring and read-time live recompute of uniqueness.

Actions match on their fingerprint. Day summaries match on activity overlap
with other day summaries in the same scope and window; a summary with no
extractable activities falls back to its fingerprint.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from onlyone.domain.posts.models import InputKind, Post, ScopeFilter
from onlyone.domain.posts.store import PostStore
from onlyone.domain.uniqueness.day_matching import DayMatch, extract_activities, find_similar_days
from onlyone.domain.uniqueness.rarity import PercentileResult, percentile_for, rarity_score
from onlyone.obs import metrics
from onlyone.settings import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UniquenessSnapshot:
	match_count: int
	population: int
	uniqueness_score: int
	percentile: PercentileResult
	live: bool = True
	day_matches: tuple[DayMatch, ...] = ()


def _now() -> datetime:
	return datetime.now(timezone.utc)


class UniquenessScorer:
	def __init__(self, store: PostStore, *, window: timedelta | None = None) -> None:
		self.store = store
		self.window = window or timedelta(hours=settings.match_window_hours)

	@staticmethod
	def snapshot(match_count: int, population: int, *, live: bool = True, day_matches: tuple[DayMatch, ...] = ()) -> UniquenessSnapshot:
		return UniquenessSnapshot(
			match_count=match_count,
			population=population,
			uniqueness_score=rarity_score(match_count, population),
			percentile=percentile_for(match_count, population),
			live=live,
			day_matches=day_matches,
		)

	async def day_matches(
		self,
		content: str,
		scope: ScopeFilter,
		*,
		since: datetime,
		exclude_id: Optional[str] = None,
	) -> Optional[list[DayMatch]]:
		"""Overlapping day summaries, or ``None`` when ``content`` lists no activities."""
		activities = extract_activities(content)
		if not activities:
			return None
		candidates = await self.store.recent_of_kind(
			InputKind.DAY_SUMMARY,
			scope,
			since=since,
			limit=settings.day_match_candidate_limit,
			exclude_id=exclude_id,
		)
		return find_similar_days(activities, candidates, scope=scope.effective_scope)

	async def _match(
		self,
		content_hash: str,
		scope: ScopeFilter,
		*,
		since: datetime,
		content: Optional[str],
		kind: InputKind,
		exclude_id: Optional[str] = None,
	) -> tuple[int, tuple[DayMatch, ...]]:
		if kind is InputKind.DAY_SUMMARY and content:
			matches = await self.day_matches(content, scope, since=since, exclude_id=exclude_id)
			if matches is not None:
				return len(matches), tuple(matches)
		return await self.store.count_matching(content_hash, scope, since=since, exclude_id=exclude_id), ()

	async def score_new(
		self,
		content_hash: str,
		scope: ScopeFilter,
		*,
		now: Optional[datetime] = None,
		content: Optional[str] = None,
		kind: InputKind = InputKind.ACTION,
	) -> UniquenessSnapshot:
		"""Score a submission that is not stored yet; it counts towards the population."""
		since = (now or _now()) - self.window
		match_count, day_matches = await self._match(content_hash, scope, since=since, content=content, kind=kind)
		others = await self.store.count_total(scope, since=since)
		return self.snapshot(match_count, others + 1, day_matches=day_matches)

	async def recompute(self, post: Post, *, now: Optional[datetime] = None) -> UniquenessSnapshot:
		"""Live score for a stored post, falling back to its write-time snapshot.

		The window reaches back to whichever is earlier: the post's creation or
		the rolling match window.
		"""
		current = now or _now()
		since = min(post.created_at, current - self.window)
		try:
			match_count, day_matches = await self._match(
				post.content_hash,
				post.scope_filter,
				since=since,
				content=post.content,
				kind=post.input_type,
				exclude_id=post.id,
			)
			others = await self.store.count_total(post.scope_filter, since=since, exclude_id=post.id)
		except Exception:
			metrics.inc_recompute("fallback")
			logger.warning("uniqueness_recompute_failed", extra={"post_id": post.id}, exc_info=True)
			return UniquenessSnapshot(
				match_count=post.match_count,
				population=post.match_count + 1,
				uniqueness_score=post.uniqueness_score,
				percentile=percentile_for(post.match_count, post.match_count + 1),
				live=False,
			)
		metrics.inc_recompute("live")
		return self.snapshot(match_count, others + 1, day_matches=day_matches)
