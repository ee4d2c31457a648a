"""FastAPI routes for the trending pool and its scheduled refresh."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query

from onlyone.api.deps import rate_limited, require_cron_secret
from onlyone.domain.posts.schemas import GhostPostSchema, TrendingRefreshResponse, TrendingResponse
from onlyone.domain.trending import get_aggregator

router = APIRouter(tags=["trending"])


@router.get(
	"/trending",
	response_model=TrendingResponse,
	response_model_exclude_none=True,
	dependencies=[Depends(rate_limited("trending_read"))],
)
async def trending_endpoint(
	count: int = Query(default=30, ge=1, le=100),
	force: bool = Query(default=False),
) -> TrendingResponse:
	sample = await get_aggregator().sample(count, force=force)
	return TrendingResponse(
		posts=[GhostPostSchema.model_validate(post) for post in sample.posts],
		pool_size=sample.pool_size,
		cached=sample.cached,
		cache_age=sample.cache_age,
		stale=True if sample.stale else None,
	)


@router.api_route(
	"/cron/trending",
	methods=["GET", "POST"],
	response_model=TrendingRefreshResponse,
	dependencies=[Depends(require_cron_secret)],
)
async def refresh_trending_endpoint() -> TrendingRefreshResponse:
	pool = await get_aggregator().refresh()
	sources: dict[str, int] = {}
	for item in pool.items:
		sources[item.source] = sources.get(item.source, 0) + 1
	return TrendingRefreshResponse(
		success=bool(pool.items) and not pool.stale,
		pool_size=len(pool.items),
		stale=pool.stale,
		sources=sources,
		fetched_at=datetime.fromtimestamp(pool.fetched_at, tz=timezone.utc),
	)
