"""Liveness and readiness probes.

Readiness needs the post store and its schema. The cache is optional: without
it the service answers ready but reports itself degraded.
"""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from onlyone.infra import postgres
from onlyone.infra.redis import redis_client
from onlyone.obs import metrics

logger = logging.getLogger(__name__)

REQUIRED_MIGRATION = "0001"

Probe = Callable[[], Awaitable[Dict[str, Any]]]


async def _timed(name: str, probe: Probe, timeout: float) -> Dict[str, Any]:
	"""Run one probe under a timeout; any failure becomes ``ok: False``."""
	start = perf_counter()
	try:
		result = await asyncio.wait_for(probe(), timeout=timeout)
	except Exception as exc:
		logger.warning("health_probe_failed", extra={"probe": name, "error": str(exc) or exc.__class__.__name__})
		return {"ok": False, "error": str(exc) or exc.__class__.__name__}
	result.setdefault("ok", True)
	result["latency_ms"] = round((perf_counter() - start) * 1000, 2)
	return result


async def _probe_cache() -> Dict[str, Any]:
	await redis_client.ping()
	return {}


async def _probe_store() -> Dict[str, Any]:
	pool = await postgres.get_pool()
	async with pool.acquire() as conn:
		await conn.execute("SELECT 1")
		version = await conn.fetchval("SELECT max(version) FROM schema_migrations")
	if version is None:
		return {"ok": False, "error": "no_migrations"}
	current = str(version)
	return {"ok": current >= REQUIRED_MIGRATION, "migration": current, "required": REQUIRED_MIGRATION}


def _latency_seconds(state: Dict[str, Any]) -> Optional[float]:
	latency = state.get("latency_ms")
	return latency / 1000 if latency is not None else None


async def liveness() -> Dict[str, Any]:
	return {"status": "ok"}


async def readiness() -> Tuple[int, Dict[str, Any]]:
	if redis_client.available:
		cache_probe = _timed("cache", _probe_cache, timeout=0.2)
	else:
		cache_probe = asyncio.sleep(0, result={"ok": False, "error": "not_configured"})
	cache_state, store_state = await asyncio.gather(cache_probe, _timed("store", _probe_store, timeout=0.5))
	metrics.mark_redis(bool(cache_state["ok"]), latency_seconds=_latency_seconds(cache_state))
	metrics.mark_postgres(bool(store_state["ok"]), latency_seconds=_latency_seconds(store_state))

	ready = bool(store_state["ok"])
	if not ready:
		status = "unavailable"
	elif cache_state["ok"]:
		status = "ok"
	else:
		status = "degraded"
	return (200 if ready else 503, {"status": status, "checks": {"cache": cache_state, "store": store_state}})
