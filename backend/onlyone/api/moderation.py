"""FastAPI routes exposing moderation counters."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from onlyone.api.deps import require_cron_secret
from onlyone.moderation.domain.stats import moderation_stats

router = APIRouter(prefix="/moderation", tags=["moderation"])


@router.get("/stats")
async def moderation_stats_endpoint() -> Dict[str, Any]:
	return await moderation_stats.snapshot()


@router.delete("/stats", dependencies=[Depends(require_cron_secret)])
async def reset_moderation_stats_endpoint() -> Dict[str, Any]:
	await moderation_stats.reset()
	return {"success": True}
