"""FastAPI routes for platform statistics and daily rankings."""

from __future__ import annotations

from fastapi import APIRouter, Query

from onlyone.domain.stats.schemas import PlatformStatsSchema, RankingsResponse, TimezoneStatsResponse
from onlyone.domain.stats.service import StatsService

router = APIRouter(prefix="/stats", tags=["stats"])

_service = StatsService()


@router.get("", response_model=PlatformStatsSchema)
async def platform_stats_endpoint() -> PlatformStatsSchema:
	return await _service.platform_stats()


@router.get("/rankings", response_model=RankingsResponse)
async def rankings_endpoint(limit: int = Query(default=10, ge=1, le=100)) -> RankingsResponse:
	return await _service.top_rankings(limit)


@router.get("/timezones", response_model=TimezoneStatsResponse)
async def timezone_stats_endpoint() -> TimezoneStatsResponse:
	return await _service.timezone_stats()
