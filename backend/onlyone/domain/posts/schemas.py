"""Pydantic schemas for the posts, reactions and trending APIs."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field

from onlyone.domain.posts.models import InputKind, Post, ReactionType, Scope
from onlyone.domain.posts.vibe import DEFAULT_VIBE, detect_vibe
from onlyone.domain.uniqueness.rarity import PercentileResult


class ReactionCountsSchema(BaseModel):
	funny: int = 0
	creative: int = 0
	must_try: int = 0
	total: int = 0


class PostSchema(BaseModel):
	id: str
	content: str
	input_type: InputKind = Field(alias="inputType")
	scope: Scope
	location_city: Optional[str] = Field(default=None, alias="locationCity")
	location_state: Optional[str] = Field(default=None, alias="locationState")
	location_country: Optional[str] = Field(default=None, alias="locationCountry")
	uniqueness_score: int = Field(alias="uniquenessScore")
	match_count: int = Field(alias="matchCount")
	reactions: ReactionCountsSchema
	created_at: datetime = Field(alias="createdAt")
	vibe: str = DEFAULT_VIBE
	is_ghost: bool = Field(default=False, alias="isGhost")
	reactable: bool = True

	model_config = {"populate_by_name": True}

	@classmethod
	def from_post(cls, post: Post) -> "PostSchema":
		return cls(
			id=post.id,
			content=post.content,
			input_type=post.input_type,
			scope=post.scope,
			location_city=post.location.city,
			location_state=post.location.state,
			location_country=post.location.country,
			uniqueness_score=post.uniqueness_score,
			match_count=post.match_count,
			reactions=ReactionCountsSchema(**post.reactions.as_dict()),
			created_at=post.created_at,
			vibe=detect_vibe(post.content),
		)


class GhostPostSchema(BaseModel):
	id: str
	content: str
	source: str
	people_count: int = Field(alias="peopleCount")
	uniqueness_score: int = Field(default=0, alias="uniquenessScore")
	is_ghost: bool = Field(default=True, alias="isGhost")
	reactable: bool = False

	model_config = {"populate_by_name": True}


class PercentileSchema(BaseModel):
	percentile: float
	tier: str
	display_text: str = Field(alias="displayText")
	comparison: str

	model_config = {"populate_by_name": True}

	@classmethod
	def from_result(cls, result: PercentileResult) -> "PercentileSchema":
		return cls.model_validate(result.as_dict())


class CreatePostResponse(BaseModel):
	post: PostSchema
	similar_posts: list[PostSchema] = Field(default_factory=list, alias="similarPosts")
	match_count: int = Field(alias="matchCount")
	uniqueness_score: int = Field(alias="uniquenessScore")
	percentile: PercentileSchema

	model_config = {"populate_by_name": True}


class FeedResponse(BaseModel):
	posts: list[Union[PostSchema, GhostPostSchema]]
	total: int


class PostDetailResponse(BaseModel):
	post: PostSchema
	percentile: PercentileSchema
	temporal: Optional[Dict[str, Any]] = None
	daily_rank: Optional[int] = Field(default=None, alias="dailyRank")
	live: bool = True

	model_config = {"populate_by_name": True}


class ReactionRequest(BaseModel):
	post_id: str = Field(alias="postId", min_length=1)
	reaction_type: ReactionType = Field(alias="reactionType")
	session_id: str = Field(alias="sessionId", min_length=1, max_length=128)

	model_config = {"populate_by_name": True}


class ReactionResponse(BaseModel):
	post_id: str = Field(alias="postId")
	reactions: ReactionCountsSchema

	model_config = {"populate_by_name": True}


class TrendingResponse(BaseModel):
	posts: list[GhostPostSchema]
	pool_size: int = Field(alias="poolSize")
	cached: bool
	cache_age: Optional[int] = Field(default=None, alias="cacheAge")
	stale: Optional[bool] = None

	model_config = {"populate_by_name": True}


class TrendingRefreshResponse(BaseModel):
	success: bool
	pool_size: int = Field(alias="poolSize")
	stale: bool = False
	sources: Dict[str, int] = Field(default_factory=dict)
	fetched_at: datetime = Field(alias="fetchedAt")

	model_config = {"populate_by_name": True}
