"""Redis-backed fixed-window rate limiting."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict

from onlyone.infra.cache import Cache, cache as default_cache
from onlyone.obs import metrics
from onlyone.settings import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RateLimitPolicy:
	limit: int
	window_seconds: int


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
	allowed: bool
	limit: int
	remaining: int
	reset_seconds: int

	def headers(self) -> Dict[str, str]:
		return {
			"X-RateLimit-Limit": str(self.limit),
			"X-RateLimit-Remaining": str(self.remaining),
			"X-RateLimit-Reset": str(self.reset_seconds),
		}


def presets() -> Dict[str, RateLimitPolicy]:
	"""Write actions are strict, reads are generous."""
	return {
		"post_creation": RateLimitPolicy(settings.rate_limit_post_limit, settings.rate_limit_post_window),
		"feed_read": RateLimitPolicy(settings.rate_limit_feed_limit, settings.rate_limit_feed_window),
		"reactions": RateLimitPolicy(settings.rate_limit_reaction_limit, settings.rate_limit_reaction_window),
		"trending_read": RateLimitPolicy(settings.rate_limit_trending_limit, settings.rate_limit_trending_window),
	}


def _key(identifier: str, action: str) -> str:
	return f"ratelimit:{identifier}:{action}"


class RateLimiter:
	"""Counts hits per ``(identifier, action)`` inside a TTL-bound window."""

	def __init__(self, cache: Cache | None = None) -> None:
		self._cache = cache or default_cache

	async def check(self, identifier: str, action: str, *, limit: int, window_seconds: int) -> RateLimitDecision:
		window = max(1, int(window_seconds))
		if limit <= 0:
			return RateLimitDecision(allowed=False, limit=0, remaining=0, reset_seconds=window)
		key = _key(identifier, action)
		count = await self._cache.incr_atomic(key, ttl=window)
		if count is None:
			# cache unavailable: fail open
			return RateLimitDecision(allowed=True, limit=limit, remaining=limit, reset_seconds=window)
		ttl = await self._cache.ttl(key)
		decision = RateLimitDecision(
			allowed=count <= limit,
			limit=limit,
			remaining=max(0, limit - count),
			reset_seconds=ttl if ttl is not None else window,
		)
		if not decision.allowed:
			metrics.inc_rate_limited(action)
			logger.info("rate_limited", extra={"action": action, "count": count, "limit": limit})
		return decision

	async def check_preset(self, identifier: str, action: str) -> RateLimitDecision:
		policy = presets()[action]
		return await self.check(identifier, action, limit=policy.limit, window_seconds=policy.window_seconds)

	async def reset(self, identifier: str, action: str) -> None:
		await self._cache.delete(_key(identifier, action))


rate_limiter = RateLimiter()
