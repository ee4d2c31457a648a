"""Cached trending pool assembled from independent sources.

Reads sample a random subset of the cached pool. A refresh fans out to every
source concurrently and keeps whatever succeeded; an empty refresh is retried
with capped exponential backoff and then falls back to the last known-good pool.
A failed refresh is not repeated for ``trending_stale_retry_seconds``: the
fallback is cached under the pool key and reads serve it until then.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Sequence

import httpx

from onlyone.domain.trending.models import TrendingItem, ghost_count_for, to_ghost_posts
from onlyone.domain.trending.sources import (
	GithubSource,
	GoogleTrendsSource,
	RedditSource,
	SourceUnavailable,
	TrendSource,
)
from onlyone.errors import DependencyDegraded
from onlyone.infra.cache import Cache, cache as default_cache
from onlyone.obs import metrics
from onlyone.settings import settings

logger = logging.getLogger(__name__)

POOL_KEY = "trending:pool"
LAST_GOOD_KEY = "trending:pool:last_good"

Sleep = Callable[[float], Awaitable[None]]


@dataclass(slots=True)
class TrendingPool:
	items: list[TrendingItem]
	fetched_at: float
	cached: bool = False
	stale: bool = False

	def as_cache_value(self) -> dict[str, Any]:
		value: dict[str, Any] = {"items": [item.as_dict() for item in self.items], "fetchedAt": self.fetched_at}
		if self.stale:
			value["stale"] = True
		return value

	@classmethod
	def from_cache_value(cls, value: Any, *, stale: bool = False) -> Optional["TrendingPool"]:
		if not isinstance(value, dict):
			return None
		try:
			items = [TrendingItem.from_mapping(raw) for raw in value.get("items", [])]
			fetched_at = float(value["fetchedAt"])
		except (KeyError, TypeError, ValueError):
			return None
		if not items:
			return None
		return cls(items=items, fetched_at=fetched_at, cached=True, stale=stale or bool(value.get("stale")))


@dataclass(slots=True)
class TrendingSample:
	posts: list[dict[str, Any]]
	pool_size: int
	cached: bool
	cache_age: Optional[int] = None
	stale: bool = False
	sources: dict[str, int] = field(default_factory=dict)

	def as_dict(self) -> dict[str, Any]:
		payload: dict[str, Any] = {"posts": self.posts, "poolSize": self.pool_size, "cached": self.cached}
		if self.cache_age is not None:
			payload["cacheAge"] = self.cache_age
		if self.stale:
			payload["stale"] = True
		return payload


def backoff_delays(attempts: int, base: float, cap: float) -> list[float]:
	"""Delays slept between ``attempts`` tries: base, 2*base, 4*base... capped."""
	return [min(cap, base * (2 ** index)) for index in range(max(0, attempts - 1))]


class TrendAggregator:
	def __init__(
		self,
		sources: Sequence[TrendSource],
		*,
		cache: Cache | None = None,
		pool_size: int | None = None,
		ttl_seconds: int | None = None,
		stale_ttl_seconds: int | None = None,
		stale_retry_seconds: int | None = None,
		source_timeout: float | None = None,
		retry_attempts: int | None = None,
		retry_base_delay: float | None = None,
		retry_max_delay: float | None = None,
		sleep: Sleep = asyncio.sleep,
		clock: Callable[[], float] = time.time,
		rng: random.Random | None = None,
	) -> None:
		self.sources = list(sources)
		self.cache = cache or default_cache
		self.pool_size = pool_size or settings.trending_pool_size
		self.ttl_seconds = ttl_seconds or settings.trending_ttl_seconds
		self.stale_ttl_seconds = stale_ttl_seconds or settings.trending_stale_ttl_seconds
		self.stale_retry_seconds = stale_retry_seconds or settings.trending_stale_retry_seconds
		self.source_timeout = source_timeout or settings.trending_source_timeout_seconds
		self.retry_attempts = retry_attempts or settings.trending_retry_attempts
		self.retry_base_delay = settings.trending_retry_base_delay if retry_base_delay is None else retry_base_delay
		self.retry_max_delay = settings.trending_retry_max_delay if retry_max_delay is None else retry_max_delay
		self._sleep = sleep
		self._clock = clock
		self._rng = rng or random.Random()
		self._lock = asyncio.Lock()
		self._last_good: Optional[TrendingPool] = None
		self._retry_after = 0.0

	async def _fetch_source(self, source: TrendSource) -> list[TrendingItem]:
		try:
			items = await asyncio.wait_for(source.fetch(), timeout=self.source_timeout)
		except asyncio.TimeoutError:
			metrics.inc_trend_fetch(source.name, "timeout")
			raise SourceUnavailable(source.name, "timeout") from None
		except SourceUnavailable:
			metrics.inc_trend_fetch(source.name, "error")
			raise
		except Exception as exc:
			metrics.inc_trend_fetch(source.name, "error")
			raise SourceUnavailable(source.name, exc.__class__.__name__) from exc
		metrics.inc_trend_fetch(source.name, "ok")
		return items

	async def fetch_all(self) -> list[TrendingItem]:
		"""Fetch every source concurrently and keep the successes."""
		results = await asyncio.gather(*(self._fetch_source(source) for source in self.sources), return_exceptions=True)
		combined: list[TrendingItem] = []
		seen: set[str] = set()
		for source, result in zip(self.sources, results):
			if isinstance(result, DependencyDegraded):
				logger.warning("trend_source_failed", extra={"source": source.name, "error": result.detail})
				continue
			if isinstance(result, BaseException):
				raise result
			for item in result:
				if item.content in seen:
					continue
				seen.add(item.content)
				combined.append(item)
		self._rng.shuffle(combined)
		return combined[: self.pool_size]

	async def _fetch_with_retry(self, attempts: int) -> list[TrendingItem]:
		delays = backoff_delays(attempts, self.retry_base_delay, self.retry_max_delay)
		for attempt in range(attempts):
			items = await self.fetch_all()
			if items:
				return items
			if attempt < len(delays):
				logger.info("trend_pool_empty_retry", extra={"attempt": attempt + 1, "delay_s": delays[attempt]})
				await self._sleep(delays[attempt])
		return []

	async def _cached_pool(self) -> Optional[TrendingPool]:
		return TrendingPool.from_cache_value(await self.cache.get(POOL_KEY))

	async def _last_known_good(self) -> Optional[TrendingPool]:
		pool = TrendingPool.from_cache_value(await self.cache.get(LAST_GOOD_KEY), stale=True)
		if pool is not None:
			return pool
		if self._last_good is not None:
			return TrendingPool(items=self._last_good.items, fetched_at=self._last_good.fetched_at, cached=True, stale=True)
		return None

	async def _fallback_pool(self) -> TrendingPool:
		fallback = await self._last_known_good()
		if fallback is not None:
			return fallback
		return TrendingPool(items=[], fetched_at=self._clock(), cached=False, stale=True)

	def _cooling_down(self) -> bool:
		return self._clock() < self._retry_after

	async def refresh(self) -> TrendingPool:
		"""Rebuild the pool now. Serialized so concurrent refreshes coalesce."""
		async with self._lock:
			return await self._refresh_locked()

	async def _refresh_locked(self, *, retry: bool = True) -> TrendingPool:
		items = await self._fetch_with_retry(self.retry_attempts if retry else 1)
		if items:
			pool = TrendingPool(items=items, fetched_at=self._clock())
			value = pool.as_cache_value()
			await self.cache.set(POOL_KEY, value, ttl=self.ttl_seconds)
			await self.cache.set(LAST_GOOD_KEY, value, ttl=self.stale_ttl_seconds)
			self._last_good = pool
			self._retry_after = 0.0
			metrics.set_trend_pool_size(len(items))
			metrics.inc_trend_refresh("ok")
			logger.info("trend_pool_refreshed", extra={"pool_size": len(items)})
			return pool
		self._retry_after = self._clock() + self.stale_retry_seconds
		fallback = await self._last_known_good()
		if fallback is not None:
			await self.cache.set(POOL_KEY, fallback.as_cache_value(), ttl=self.stale_retry_seconds)
			metrics.inc_trend_refresh("stale")
			logger.warning("trend_pool_serving_stale", extra={"pool_size": len(fallback.items), "retry_in_s": self.stale_retry_seconds})
			return fallback
		metrics.inc_trend_refresh("empty")
		logger.error("trend_pool_unavailable", extra={"retry_in_s": self.stale_retry_seconds})
		return TrendingPool(items=[], fetched_at=self._clock(), cached=False, stale=True)

	async def get_pool(self, *, force: bool = False, retry: bool = True) -> TrendingPool:
		"""Cached pool, refreshing on a miss.

		Outside ``force``, a recent failed refresh is not repeated; the fallback
		is served instead. ``retry=False`` makes a miss try each source once.
		"""
		if not force:
			cached = await self._cached_pool()
			if cached is not None:
				return cached
			if self._cooling_down():
				return await self._fallback_pool()
		async with self._lock:
			if not force:
				# another request may have refreshed while we waited
				cached = await self._cached_pool()
				if cached is not None:
					return cached
				if self._cooling_down():
					return await self._fallback_pool()
			return await self._refresh_locked(retry=retry)

	def _sample_from(self, pool: TrendingPool, count: int | None) -> TrendingSample:
		wanted = max(0, count if count is not None else settings.trending_default_count)
		chosen = self._rng.sample(pool.items, min(wanted, len(pool.items)))
		stamp = int(self._clock() * 1000)
		sources: dict[str, int] = {}
		for item in chosen:
			sources[item.source] = sources.get(item.source, 0) + 1
		return TrendingSample(
			posts=to_ghost_posts(chosen, stamp=stamp),
			pool_size=len(pool.items),
			cached=pool.cached,
			cache_age=int(max(0.0, self._clock() - pool.fetched_at)) if pool.cached else None,
			stale=pool.stale,
			sources=sources,
		)

	async def sample(self, count: int | None = None, *, force: bool = False) -> TrendingSample:
		return self._sample_from(await self.get_pool(force=force), count)

	async def ghosts_for_feed(self, real_count: int) -> list[dict[str, Any]]:
		"""Ghost entries to backfill a sparse feed page; empty if trends are unavailable.

		Never waits on the retry backoff: a miss tries each source once.
		"""
		wanted = ghost_count_for(real_count, self._rng)
		try:
			pool = await self.get_pool(retry=False)
		except Exception:
			metrics.inc_degraded("trending", "ghosts")
			logger.warning("ghost_backfill_failed", exc_info=True)
			return []
		return self._sample_from(pool, wanted).posts


def build_default_sources(http: httpx.AsyncClient) -> list[TrendSource]:
	return [
		RedditSource(http=http, user_agent=settings.trending_user_agent),
		GithubSource(http=http, user_agent=settings.trending_user_agent, token=settings.github_token),
		GoogleTrendsSource(http=http, user_agent=settings.trending_user_agent, geo=settings.trending_geo),
	]


_aggregator: Optional[TrendAggregator] = None


def configure(http: httpx.AsyncClient) -> TrendAggregator:
	"""Build the process-wide aggregator over the default sources."""
	global _aggregator
	_aggregator = TrendAggregator(build_default_sources(http))
	return _aggregator


def set_aggregator(aggregator: Optional[TrendAggregator]) -> None:
	global _aggregator
	_aggregator = aggregator


def get_aggregator() -> TrendAggregator:
	if _aggregator is None:
		raise RuntimeError("trend aggregator not configured")
	return _aggregator
