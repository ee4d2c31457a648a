"""Daily leaderboard of the most repeated actions, kept in Redis sorted sets."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from onlyone.infra.cache import Cache, cache as default_cache

_RETENTION_SECONDS = 2 * 24 * 3600


def today_ymd(now: Optional[datetime] = None) -> int:
	now = now or datetime.now(timezone.utc)
	return now.year * 10000 + now.month * 100 + now.day


def _zset_key(ymd: int) -> str:
	return f"rankings:{ymd}"


def _sample_key(content_hash: str) -> str:
	return f"rankings:sample:{content_hash}"


@dataclass(frozen=True, slots=True)
class RankingRow:
	rank: int
	content_hash: str
	content: Optional[str]
	count: int


class DailyRankings:
	def __init__(self, cache: Cache | None = None) -> None:
		self.cache = cache or default_cache

	async def record(self, content_hash: str, content: str, *, now: Optional[datetime] = None) -> Optional[int]:
		"""Count one more occurrence of ``content_hash`` today and return its rank."""
		key = _zset_key(today_ymd(now))
		await self.cache.sorted_set_add(key, content_hash, 1, increment=True, ttl=_RETENTION_SECONDS)
		await self.cache.set(_sample_key(content_hash), content, ttl=_RETENTION_SECONDS)
		return await self.cache.rank(key, content_hash)

	async def rank_of(self, content_hash: str, *, now: Optional[datetime] = None) -> Optional[int]:
		return await self.cache.rank(_zset_key(today_ymd(now)), content_hash)

	async def top(self, limit: int, *, now: Optional[datetime] = None) -> list[RankingRow]:
		rows = await self.cache.top_n(_zset_key(today_ymd(now)), limit)
		result: list[RankingRow] = []
		for index, (content_hash, score) in enumerate(rows, start=1):
			sample = await self.cache.get(_sample_key(content_hash))
			result.append(
				RankingRow(
					rank=index,
					content_hash=content_hash,
					content=sample if isinstance(sample, str) else None,
					count=int(score),
				)
			)
		return result


daily_rankings = DailyRankings()
