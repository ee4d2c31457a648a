"""FastAPI routes for submitting and reading posts."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from onlyone.api.deps import rate_limited
from onlyone.domain.posts.models import FeedFilter, Location, Scope, ScopeFilter
from onlyone.domain.posts.input_gate import check_declared_length, read_capped, sanitize_location
from onlyone.domain.posts.schemas import CreatePostResponse, FeedResponse, PostDetailResponse
from onlyone.domain.posts.service import PostService

router = APIRouter(prefix="/posts", tags=["posts"])

_service = PostService()


@router.post(
	"",
	response_model=CreatePostResponse,
	status_code=status.HTTP_201_CREATED,
	dependencies=[Depends(rate_limited("post_creation"))],
)
async def create_post_endpoint(request: Request) -> CreatePostResponse:
	content_length = request.headers.get("content-length")
	check_declared_length(content_length)
	raw = await read_capped(request.stream())
	return await _service.create(raw, content_length=content_length)


@router.get("", response_model=FeedResponse, dependencies=[Depends(rate_limited("feed_read"))])
async def feed_endpoint(
	feed_filter: FeedFilter = Query(default=FeedFilter.ALL, alias="filter"),
	scope: Scope = Query(default=Scope.WORLD),
	limit: int = Query(default=20, ge=1, le=100),
	offset: int = Query(default=0, ge=0),
	location_city: Optional[str] = Query(default=None, alias="locationCity"),
	location_state: Optional[str] = Query(default=None, alias="locationState"),
	location_country: Optional[str] = Query(default=None, alias="locationCountry"),
	ghosts: bool = Query(default=True),
) -> FeedResponse:
	location = Location(
		city=sanitize_location(location_city),
		state=sanitize_location(location_state),
		country=sanitize_location(location_country),
	)
	return await _service.feed(
		ScopeFilter(scope=scope, location=location),
		feed_filter=feed_filter,
		limit=limit,
		offset=offset,
		include_ghosts=ghosts,
	)


@router.get("/{post_id}", response_model=PostDetailResponse, dependencies=[Depends(rate_limited("feed_read"))])
async def post_detail_endpoint(post_id: str) -> PostDetailResponse:
	return await _service.detail(post_id)
