"""Service layer for the post write pipeline, feeds, detail views and reactions."""

from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from typing import Optional, Union
from uuid import UUID

from onlyone.domain.posts.input_gate import parse_payload, validate_submission
from onlyone.domain.posts.models import FeedFilter, NewPost, Post, ScopeFilter
from onlyone.domain.posts.schemas import (
	CreatePostResponse,
	FeedResponse,
	GhostPostSchema,
	PercentileSchema,
	PostDetailResponse,
	PostSchema,
	ReactionCountsSchema,
	ReactionRequest,
	ReactionResponse,
)
from onlyone.domain.posts.store import PostStore, get_store
from onlyone.domain.quality import QualityAnalyzer, quality_analyzer
from onlyone.domain.stats.rankings import DailyRankings, daily_rankings
from onlyone.domain.trending import get_aggregator, is_ghost_id
from onlyone.domain.uniqueness import UniquenessScorer, fingerprint
from onlyone.domain.uniqueness.temporal import temporal_uniqueness
from onlyone.errors import BadRequest, ModerationBlocked, NotFound, QualityRejected
from onlyone.moderation import Blocked, ModerationOrchestrator
from onlyone.obs import metrics

logger = logging.getLogger(__name__)

SIMILAR_POSTS_LIMIT = 10


def _now() -> datetime:
	return datetime.now(timezone.utc)


def _require_post_id(post_id: str) -> str:
	"""Ghost ids and malformed ids never match a stored post."""
	if is_ghost_id(post_id):
		raise NotFound("Post not found")
	try:
		return str(UUID(post_id))
	except (TypeError, ValueError):
		raise NotFound("Post not found") from None


class PostService:
	def __init__(
		self,
		store: PostStore | None = None,
		*,
		quality: QualityAnalyzer | None = None,
		moderation: ModerationOrchestrator | None = None,
		rankings: DailyRankings | None = None,
		rng: random.Random | None = None,
	) -> None:
		self._store = store
		self.quality = quality or quality_analyzer
		self.moderation = moderation or ModerationOrchestrator()
		self.rankings = rankings or daily_rankings
		self._rng = rng or random.Random()

	@property
	def store(self) -> PostStore:
		return self._store or get_store()

	async def create(self, raw: bytes, *, content_length: Optional[str] = None) -> CreatePostResponse:
		payload = parse_payload(raw, content_length=content_length)
		submission = validate_submission(payload)

		assessment = self.quality.analyze(submission.content, submission.input_type)
		if not assessment.allowed:
			metrics.inc_quality_rejection(assessment.reason_code or "low_quality")
			raise QualityRejected(
				reason=assessment.reason or "Content quality is too low",
				score=assessment.score,
				suggestion=assessment.suggestion or "",
			)

		verdict = await self.moderation.moderate(submission.content)
		if isinstance(verdict, Blocked):
			raise ModerationBlocked(
				blocked_by=verdict.blocked_by,
				severity=verdict.severity,
				reason=verdict.reason,
				message=verdict.message,
			)

		now = _now()
		scope = ScopeFilter(scope=submission.scope, location=submission.location)
		content_hash = fingerprint(submission.content)
		scorer = UniquenessScorer(self.store)
		snapshot = await scorer.score_new(content_hash, scope, now=now, content=submission.content, kind=submission.input_type)
		post = await self.store.insert(
			NewPost(
				content=submission.content,
				content_hash=content_hash,
				input_type=submission.input_type,
				scope=submission.scope,
				location=submission.location,
				uniqueness_score=snapshot.uniqueness_score,
				match_count=snapshot.match_count,
			)
		)
		if snapshot.day_matches:
			similar = [match.post for match in snapshot.day_matches[:SIMILAR_POSTS_LIMIT]]
		else:
			similar = await self.store.similar(
				content_hash,
				scope,
				since=now - scorer.window,
				limit=SIMILAR_POSTS_LIMIT,
				exclude_id=post.id,
			)
		await self.rankings.record(content_hash, post.content, now=now)
		metrics.inc_post_created(post.input_type.value, post.scope.value)
		logger.info(
			"post_created",
			extra={
				"post_id": post.id,
				"scope": post.scope.value,
				"match_count": snapshot.match_count,
				"uniqueness_score": snapshot.uniqueness_score,
			},
		)
		return CreatePostResponse(
			post=PostSchema.from_post(post),
			similar_posts=[PostSchema.from_post(item) for item in similar],
			match_count=snapshot.match_count,
			uniqueness_score=snapshot.uniqueness_score,
			percentile=PercentileSchema.from_result(snapshot.percentile),
		)

	async def feed(
		self,
		scope: ScopeFilter,
		*,
		feed_filter: FeedFilter = FeedFilter.ALL,
		limit: int = 20,
		offset: int = 0,
		include_ghosts: bool = True,
	) -> FeedResponse:
		posts, total = await self.store.list_feed(
			scope,
			since=None,
			feed_filter=feed_filter,
			limit=limit,
			offset=offset,
		)
		items: list[Union[PostSchema, GhostPostSchema]] = [PostSchema.from_post(post) for post in posts]
		if include_ghosts and offset == 0 and feed_filter is FeedFilter.ALL:
			ghosts = await self._ghosts(len(posts))
			for ghost in ghosts:
				items.insert(self._rng.randint(0, len(items)), ghost)
		return FeedResponse(posts=items, total=total)

	async def _ghosts(self, real_count: int) -> list[GhostPostSchema]:
		try:
			aggregator = get_aggregator()
		except RuntimeError:
			return []
		return [GhostPostSchema.model_validate(ghost) for ghost in await aggregator.ghosts_for_feed(real_count)]

	async def detail(self, post_id: str) -> PostDetailResponse:
		post = await self._load(post_id)
		now = _now()
		snapshot = await UniquenessScorer(self.store).recompute(post, now=now)
		temporal = None
		try:
			breakdown = await temporal_uniqueness(self.store, post.content_hash, post.scope_filter, now=now, exclude_id=post.id)
			temporal = breakdown.as_dict()
		except Exception:
			metrics.inc_degraded("store", "temporal")
			logger.warning("temporal_uniqueness_failed", extra={"post_id": post.id}, exc_info=True)
		rank = await self.rankings.rank_of(post.content_hash, now=now)
		live_post = post.with_score(uniqueness_score=snapshot.uniqueness_score, match_count=snapshot.match_count)
		return PostDetailResponse(
			post=PostSchema.from_post(live_post),
			percentile=PercentileSchema.from_result(snapshot.percentile),
			temporal=temporal,
			daily_rank=rank,
			live=snapshot.live,
		)

	async def _load(self, post_id: str) -> Post:
		post = await self.store.get(_require_post_id(post_id))
		if post is None:
			raise NotFound("Post not found")
		return post

	async def react(self, request: ReactionRequest) -> ReactionResponse:
		if is_ghost_id(request.post_id):
			raise BadRequest("Trending posts cannot receive reactions")
		post_id = _require_post_id(request.post_id)
		counts = await self.store.toggle_reaction(post_id, request.reaction_type, request.session_id)
		if counts is None:
			raise NotFound("Post not found")
		logger.info("reaction_toggled", extra={"post_id": post_id, "reaction": request.reaction_type.value})
		return ReactionResponse(post_id=post_id, reactions=ReactionCountsSchema(**counts.as_dict()))
