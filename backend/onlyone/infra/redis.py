"""Redis connection management.

Provides a stable proxy object so imports like `from onlyone.infra.redis import redis_client`
always reference the same proxy instance. The underlying client can be swapped at
runtime (e.g., to fakeredis in tests) without breaking previously imported references.
A proxy without a client reports itself as unavailable instead of raising on import.
"""

from __future__ import annotations

from typing import Optional

import redis.asyncio as redis

from onlyone.settings import settings


class RedisProxy:
	"""Lightweight proxy that forwards attribute access to an underlying Redis client."""

	def __init__(self, client: Optional[redis.Redis]):
		self._client: Optional[redis.Redis] = client

	def set_client(self, client: Optional[redis.Redis]) -> None:
		self._client = client

	@property
	def available(self) -> bool:
		return self._client is not None

	# Fallback: delegate everything else to the underlying client
	def __getattr__(self, item):
		if self._client is None:
			raise ConnectionError("redis client not configured")
		return getattr(self._client, item)


def _build_client() -> Optional[redis.Redis]:
	if not settings.cache_enabled or not settings.redis_url:
		return None
	return redis.from_url(
		settings.redis_url,
		decode_responses=True,
		socket_timeout=1.0,
		socket_connect_timeout=1.0,
	)


redis_client: RedisProxy = RedisProxy(_build_client())


def set_redis_client(client: Optional[redis.Redis]) -> None:
	redis_client.set_client(client)
