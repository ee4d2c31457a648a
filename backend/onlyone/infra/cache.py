"""JSON key/value cache, atomic counters and sorted-set leaderboards over Redis.

Redis failures surface as ``DependencyDegraded`` inside this module and are
absorbed in ``Cache._guarded``: reads miss, writes are dropped and counters
return ``None`` so callers can apply their own fail-open policy.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar

from onlyone.errors import DependencyDegraded
from onlyone.infra.redis import RedisProxy, redis_client
from onlyone.obs import metrics

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Cache:
	"""Thin wrapper over Redis that never lets a cache failure escape."""

	def __init__(self, redis: RedisProxy | None = None) -> None:
		self.redis = redis or redis_client

	@property
	def available(self) -> bool:
		return self.redis.available

	async def _run(self, operation: str, key: str, call: Callable[[], Awaitable[T]]) -> T:
		try:
			return await call()
		except Exception as exc:
			raise DependencyDegraded("cache", f"{operation} {key}: {exc.__class__.__name__}") from exc

	def _degraded(self, exc: DependencyDegraded, operation: str) -> None:
		metrics.inc_degraded(exc.dependency, operation)
		logger.warning("cache_degraded", extra={"operation": operation, "detail": exc.detail}, exc_info=exc.__cause__)

	async def _guarded(self, operation: str, key: str, call: Callable[[], Awaitable[T]], default: T) -> T:
		if not self.available:
			return default
		try:
			return await self._run(operation, key, call)
		except DependencyDegraded as exc:
			self._degraded(exc, operation)
			return default

	async def get(self, key: str) -> Any | None:
		raw = await self._guarded("get", key, lambda: self.redis.get(key), None)
		if raw is None:
			return None
		if isinstance(raw, bytes):
			raw = raw.decode("utf-8")
		try:
			return json.loads(raw)
		except (TypeError, json.JSONDecodeError):
			return None

	async def set(self, key: str, value: Any, *, ttl: int | None = None) -> bool:
		payload = json.dumps(value, default=str)

		async def _set() -> bool:
			await self.redis.set(key, payload, ex=ttl)
			return True

		return await self._guarded("set", key, _set, False)

	async def delete(self, *keys: str) -> int:
		if not keys:
			return 0

		async def _delete() -> int:
			return int(await self.redis.delete(*keys))

		return await self._guarded("delete", ",".join(keys), _delete, 0)

	async def incr_atomic(self, key: str, *, ttl: int | None = None) -> Optional[int]:
		"""Increment ``key`` and set its TTL on the increment that creates it.

		Returns ``None`` when the cache is unavailable.
		"""

		async def _incr() -> int:
			count = int(await self.redis.incr(key))
			if count == 1 and ttl:
				await self.redis.expire(key, ttl)
			return count

		return await self._guarded("incr", key, _incr, None)

	async def ttl(self, key: str) -> Optional[int]:
		async def _ttl() -> int:
			return int(await self.redis.ttl(key))

		value = await self._guarded("ttl", key, _ttl, None)
		return value if value is not None and value >= 0 else None

	async def sorted_set_add(
		self,
		key: str,
		member: str,
		score: float,
		*,
		increment: bool = False,
		ttl: int | None = None,
	) -> Optional[float]:
		async def _add() -> float:
			if increment:
				value = float(await self.redis.zincrby(key, score, member))
			else:
				await self.redis.zadd(key, {member: score})
				value = float(score)
			if ttl:
				await self.redis.expire(key, ttl)
			return value

		return await self._guarded("zadd", key, _add, None)

	async def top_n(self, key: str, n: int) -> Sequence[tuple[str, float]]:
		if n <= 0:
			return []
		rows = await self._guarded("zrange", key, lambda: self.redis.zrevrange(key, 0, n - 1, withscores=True), [])
		return [(str(member), float(score)) for member, score in rows]

	async def rank(self, key: str, member: str) -> Optional[int]:
		"""Return the 1-based descending rank of ``member`` or ``None``."""
		value = await self._guarded("zrank", key, lambda: self.redis.zrevrank(key, member), None)
		return None if value is None else int(value) + 1

	async def ping(self) -> bool:
		async def _ping() -> bool:
			return bool(await self.redis.ping())

		return await self._guarded("ping", "-", _ping, False)


cache = Cache()
