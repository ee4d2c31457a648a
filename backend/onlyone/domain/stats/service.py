"""Service layer for platform statistics and daily rankings."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from onlyone.domain.posts.models import Scope, ScopeFilter
from onlyone.domain.posts.store import PostStore, get_store
from onlyone.domain.stats.rankings import DailyRankings, daily_rankings, today_ymd
from onlyone.domain.stats.schemas import (
	PlatformStatsSchema,
	RankingRowSchema,
	RankingsResponse,
	TimezoneActivitySchema,
	TimezoneStatsResponse,
)
from onlyone.domain.stats.timezones import TRACKED_ZONES, TrackedZone
from onlyone.moderation.domain.stats import ModerationStats, moderation_stats
from onlyone.settings import settings

logger = logging.getLogger(__name__)

_WORLD = ScopeFilter(scope=Scope.WORLD)


def _start_of_day(now: datetime) -> datetime:
	return now.replace(hour=0, minute=0, second=0, microsecond=0)


class StatsService:
	def __init__(
		self,
		store: PostStore | None = None,
		*,
		rankings: DailyRankings | None = None,
		moderation: ModerationStats | None = None,
	) -> None:
		self._store = store
		self.rankings = rankings or daily_rankings
		self.moderation = moderation or moderation_stats

	@property
	def store(self) -> PostStore:
		return self._store or get_store()

	async def platform_stats(self, *, now: Optional[datetime] = None) -> PlatformStatsSchema:
		now = now or datetime.now(timezone.utc)
		since = _start_of_day(now)
		today_total, today_unique, all_time, moderation = await asyncio.gather(
			self.store.count_total(_WORLD, since=since),
			self.store.count_total(_WORLD, since=since, min_score=settings.unique_score_threshold),
			self.store.count_total(_WORLD, since=None),
			self.moderation.snapshot(),
		)
		return PlatformStatsSchema(
			today_total=today_total,
			today_unique=today_unique,
			all_time_total=all_time,
			blocked_count=int(moderation["staticBlocked"]) + int(moderation["aiBlocked"]),
		)

	async def top_rankings(self, limit: int, *, now: Optional[datetime] = None) -> RankingsResponse:
		rows = await self.rankings.top(limit, now=now)
		return RankingsResponse(
			ymd=today_ymd(now),
			items=[
				RankingRowSchema(rank=row.rank, content_hash=row.content_hash, content=row.content, count=row.count)
				for row in rows
			],
		)

	async def timezone_stats(
		self,
		*,
		now: Optional[datetime] = None,
		zones: tuple[TrackedZone, ...] = TRACKED_ZONES,
	) -> TimezoneStatsResponse:
		"""Posts since local midnight in each tracked zone, most active first.

		A zone whose count fails reports zero. ``totalGlobal`` counts each post
		once, from the earliest of the local midnights.
		"""
		now = now or datetime.now(timezone.utc)
		midnights = [zone.midnight_utc(now) for zone in zones]
		counts = await asyncio.gather(
			*(self.store.count_total(_WORLD, since=midnight) for midnight in midnights),
			self.store.count_total(_WORLD, since=min(midnights)),
			return_exceptions=True,
		)
		rows: list[TimezoneActivitySchema] = []
		for zone, count in zip(zones, counts):
			if isinstance(count, BaseException):
				logger.warning("timezone_count_failed", extra={"timezone": zone.name, "error": str(count)})
				count = 0
			rows.append(
				TimezoneActivitySchema(
					timezone=zone.name,
					label=zone.label,
					emoji=zone.emoji,
					utc_offset_minutes=zone.offset_minutes(now),
					posts_today=count,
					local_time=zone.local(now).strftime("%I:%M %p"),
				)
			)
		total = counts[-1]
		if isinstance(total, BaseException):
			logger.warning("timezone_total_failed", extra={"error": str(total)})
			total = sum(row.posts_today for row in rows)
		rows.sort(key=lambda row: row.posts_today, reverse=True)
		return TimezoneStatsResponse(timezones=rows, most_active=rows[0] if rows else None, total_global=total)
