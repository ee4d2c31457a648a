"""Moderation verdict counters kept in Redis for the stats endpoint."""

from __future__ import annotations

import logging
from typing import Any, Dict

from onlyone.infra.redis import RedisProxy, redis_client
from onlyone.obs import metrics

logger = logging.getLogger(__name__)

_COUNTERS_KEY = "moderation:stats"
_STATIC_REASONS_KEY = "moderation:stats:static_reasons"
_AI_REASONS_KEY = "moderation:stats:ai_reasons"
_TOP_REASONS = 10


class ModerationStats:
    """Records verdicts. Recording failures are logged and swallowed."""

    def __init__(self, redis: RedisProxy | None = None) -> None:
        self.redis = redis or redis_client

    async def record(self, outcome: str, reason: str | None = None) -> None:
        metrics.inc_moderation_verdict(outcome, reason or "none")
        if not self.redis.available:
            return
        try:
            async with self.redis.pipeline(transaction=False) as pipe:
                pipe.hincrby(_COUNTERS_KEY, "total", 1)
                pipe.hincrby(_COUNTERS_KEY, outcome, 1)
                if reason and outcome == "static_blocked":
                    pipe.zincrby(_STATIC_REASONS_KEY, 1, reason)
                elif reason and outcome == "ai_blocked":
                    pipe.zincrby(_AI_REASONS_KEY, 1, reason)
                await pipe.execute()
        except Exception:
            metrics.inc_degraded("cache", "moderation_stats")
            logger.warning("moderation_stats_record_failed", exc_info=True)

    async def snapshot(self) -> Dict[str, Any]:
        counters: Dict[str, Any] = {}
        static_reasons: list = []
        ai_reasons: list = []
        if self.redis.available:
            try:
                counters = await self.redis.hgetall(_COUNTERS_KEY)
                static_reasons = await self.redis.zrevrange(_STATIC_REASONS_KEY, 0, _TOP_REASONS - 1, withscores=True)
                ai_reasons = await self.redis.zrevrange(_AI_REASONS_KEY, 0, _TOP_REASONS - 1, withscores=True)
            except Exception:
                metrics.inc_degraded("cache", "moderation_stats")
                logger.warning("moderation_stats_read_failed", exc_info=True)
        static_blocked = int(counters.get("static_blocked", 0))
        ai_blocked = int(counters.get("ai_blocked", 0))
        allowed = int(counters.get("allowed", 0))
        total = int(counters.get("total", 0))
        block_rate = round((static_blocked + ai_blocked) / total * 100, 2) if total else 0.0
        return {
            "staticBlocked": static_blocked,
            "aiBlocked": ai_blocked,
            "allowed": allowed,
            "total": total,
            "blockRate": block_rate,
            "topStaticReasons": {str(reason): int(count) for reason, count in static_reasons},
            "topAIReasons": {str(reason): int(count) for reason, count in ai_reasons},
        }

    async def reset(self) -> None:
        if not self.redis.available:
            return
        try:
            await self.redis.delete(_COUNTERS_KEY, _STATIC_REASONS_KEY, _AI_REASONS_KEY)
        except Exception:
            metrics.inc_degraded("cache", "moderation_stats")
            logger.warning("moderation_stats_reset_failed", exc_info=True)


moderation_stats = ModerationStats()
