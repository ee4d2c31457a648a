"""Persistence boundary for posts.

``PostStore`` is the abstract store the pipeline talks to; ``PostgresPostStore``
is the default adapter backed by the asyncpg pool.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol, Sequence

from onlyone.domain.posts.models import (
	FeedFilter,
	InputKind,
	NewPost,
	Post,
	ReactionCounts,
	ReactionType,
	Scope,
	ScopeFilter,
)
from onlyone.infra import postgres
from onlyone.settings import settings

_POST_COLUMNS = (
	"id, content, content_hash, input_type, scope, location_city, location_state, location_country, "
	"uniqueness_score, match_count, funny_count, creative_count, must_try_count, created_at"
)

_REACTION_COLUMNS = {
	ReactionType.FUNNY: "funny_count",
	ReactionType.CREATIVE: "creative_count",
	ReactionType.MUST_TRY: "must_try_count",
}


class PostStore(Protocol):
	async def insert(self, post: NewPost) -> Post:
		...

	async def get(self, post_id: str) -> Optional[Post]:
		...

	async def count_matching(
		self,
		content_hash: str,
		scope: ScopeFilter,
		*,
		since: Optional[datetime],
		exclude_id: Optional[str] = None,
	) -> int:
		...

	async def count_total(
		self,
		scope: ScopeFilter,
		*,
		since: Optional[datetime],
		exclude_id: Optional[str] = None,
		min_score: Optional[int] = None,
	) -> int:
		...

	async def similar(
		self,
		content_hash: str,
		scope: ScopeFilter,
		*,
		since: Optional[datetime],
		limit: int = 10,
		exclude_id: Optional[str] = None,
	) -> Sequence[Post]:
		...

	async def list_feed(
		self,
		scope: ScopeFilter,
		*,
		since: Optional[datetime],
		feed_filter: FeedFilter,
		limit: int,
		offset: int,
	) -> tuple[list[Post], int]:
		...

	async def recent_of_kind(
		self,
		input_type: InputKind,
		scope: ScopeFilter,
		*,
		since: Optional[datetime],
		limit: int,
		exclude_id: Optional[str] = None,
	) -> Sequence[Post]:
		...

	async def toggle_reaction(self, post_id: str, reaction: ReactionType, session_id: str) -> Optional[ReactionCounts]:
		...


@dataclass(slots=True)
class PostQuery:
	"""WHERE clause builder shared by every post query."""

	scope: ScopeFilter
	since: Optional[datetime] = None
	content_hash: Optional[str] = None
	exclude_id: Optional[str] = None
	min_score: Optional[int] = None
	max_score: Optional[int] = None
	input_type: Optional[InputKind] = None
	extra: list[str] = field(default_factory=list)

	def where_clause(self, params: list[object]) -> str:
		clauses: list[str] = []
		effective = self.scope.effective_scope
		if effective is not Scope.WORLD:
			params.append([member.value for member in self.scope.member_scopes])
			clauses.append(f"p.scope = ANY(${len(params)}::text[])")
			column, value = {
				Scope.CITY: ("p.location_city", self.scope.location.city),
				Scope.STATE: ("p.location_state", self.scope.location.state),
				Scope.COUNTRY: ("p.location_country", self.scope.location.country),
			}[effective]
			params.append(value)
			clauses.append(f"{column} = ${len(params)}")
		if self.since is not None:
			params.append(self.since)
			clauses.append(f"p.created_at >= ${len(params)}")
		if self.content_hash is not None:
			params.append(self.content_hash)
			clauses.append(f"p.content_hash = ${len(params)}")
		if self.exclude_id is not None:
			params.append(self.exclude_id)
			clauses.append(f"p.id <> ${len(params)}::uuid")
		if self.min_score is not None:
			params.append(self.min_score)
			clauses.append(f"p.uniqueness_score >= ${len(params)}")
		if self.max_score is not None:
			params.append(self.max_score)
			clauses.append(f"p.uniqueness_score < ${len(params)}")
		if self.input_type is not None:
			params.append(self.input_type.value)
			clauses.append(f"p.input_type = ${len(params)}")
		clauses.extend(self.extra)
		return " AND ".join(clauses) if clauses else "TRUE"


def feed_score_bounds(feed_filter: FeedFilter) -> tuple[Optional[int], Optional[int]]:
	threshold = settings.unique_score_threshold
	if feed_filter is FeedFilter.UNIQUE:
		return threshold, None
	if feed_filter is FeedFilter.COMMON:
		return None, threshold
	return None, None


class PostgresPostStore:
	"""asyncpg implementation of :class:`PostStore`."""

	async def insert(self, post: NewPost) -> Post:
		pool = await postgres.get_pool()
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				f"""
				INSERT INTO posts (
					content, content_hash, input_type, scope,
					location_city, location_state, location_country,
					uniqueness_score, match_count
				)
				VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
				RETURNING {_POST_COLUMNS}
				""",
				post.content,
				post.content_hash,
				post.input_type.value,
				post.scope.value,
				post.location.city,
				post.location.state,
				post.location.country,
				post.uniqueness_score,
				post.match_count,
			)
		return Post.from_record(row)

	async def get(self, post_id: str) -> Optional[Post]:
		pool = await postgres.get_pool()
		async with pool.acquire() as conn:
			row = await conn.fetchrow(f"SELECT {_POST_COLUMNS} FROM posts p WHERE p.id = $1::uuid", post_id)
		return Post.from_record(row) if row else None

	async def _count(self, query: PostQuery) -> int:
		params: list[object] = []
		where = query.where_clause(params)
		pool = await postgres.get_pool()
		async with pool.acquire() as conn:
			value = await conn.fetchval(f"SELECT COUNT(*) FROM posts p WHERE {where}", *params)
		return int(value or 0)

	async def count_matching(
		self,
		content_hash: str,
		scope: ScopeFilter,
		*,
		since: Optional[datetime],
		exclude_id: Optional[str] = None,
	) -> int:
		return await self._count(PostQuery(scope=scope, since=since, content_hash=content_hash, exclude_id=exclude_id))

	async def count_total(
		self,
		scope: ScopeFilter,
		*,
		since: Optional[datetime],
		exclude_id: Optional[str] = None,
		min_score: Optional[int] = None,
	) -> int:
		return await self._count(PostQuery(scope=scope, since=since, exclude_id=exclude_id, min_score=min_score))

	async def similar(
		self,
		content_hash: str,
		scope: ScopeFilter,
		*,
		since: Optional[datetime],
		limit: int = 10,
		exclude_id: Optional[str] = None,
	) -> Sequence[Post]:
		params: list[object] = []
		where = PostQuery(scope=scope, since=since, content_hash=content_hash, exclude_id=exclude_id).where_clause(params)
		params.append(limit)
		pool = await postgres.get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"SELECT {_POST_COLUMNS} FROM posts p WHERE {where} ORDER BY p.created_at DESC LIMIT ${len(params)}",
				*params,
			)
		return [Post.from_record(row) for row in rows]

	async def recent_of_kind(
		self,
		input_type: InputKind,
		scope: ScopeFilter,
		*,
		since: Optional[datetime],
		limit: int,
		exclude_id: Optional[str] = None,
	) -> Sequence[Post]:
		params: list[object] = []
		where = PostQuery(scope=scope, since=since, exclude_id=exclude_id, input_type=input_type).where_clause(params)
		params.append(limit)
		pool = await postgres.get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"SELECT {_POST_COLUMNS} FROM posts p WHERE {where} ORDER BY p.created_at DESC LIMIT ${len(params)}",
				*params,
			)
		return [Post.from_record(row) for row in rows]

	async def list_feed(
		self,
		scope: ScopeFilter,
		*,
		since: Optional[datetime],
		feed_filter: FeedFilter,
		limit: int,
		offset: int,
	) -> tuple[list[Post], int]:
		min_score, max_score = feed_score_bounds(feed_filter)
		query = PostQuery(scope=scope, since=since, min_score=min_score, max_score=max_score)
		params: list[object] = []
		where = query.where_clause(params)
		count_params = list(params)
		params.extend([limit, offset])
		pool = await postgres.get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"""
				SELECT {_POST_COLUMNS} FROM posts p
				WHERE {where}
				ORDER BY p.created_at DESC
				LIMIT ${len(params) - 1} OFFSET ${len(params)}
				""",
				*params,
			)
			total = await conn.fetchval(f"SELECT COUNT(*) FROM posts p WHERE {where}", *count_params)
		return [Post.from_record(row) for row in rows], int(total or 0)

	async def toggle_reaction(self, post_id: str, reaction: ReactionType, session_id: str) -> Optional[ReactionCounts]:
		column = _REACTION_COLUMNS[reaction]
		pool = await postgres.get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				exists = await conn.fetchval("SELECT 1 FROM posts WHERE id = $1::uuid FOR UPDATE", post_id)
				if not exists:
					return None
				removed = await conn.fetchval(
					"""
					DELETE FROM post_reactions
					WHERE post_id = $1::uuid AND session_id = $2 AND reaction_type = $3
					RETURNING 1
					""",
					post_id,
					session_id,
					reaction.value,
				)
				if removed:
					delta = -1
				else:
					await conn.execute(
						"INSERT INTO post_reactions (post_id, session_id, reaction_type) VALUES ($1::uuid, $2, $3)",
						post_id,
						session_id,
						reaction.value,
					)
					delta = 1
				row = await conn.fetchrow(
					f"""
					UPDATE posts SET {column} = GREATEST(0, {column} + $2)
					WHERE id = $1::uuid
					RETURNING funny_count, creative_count, must_try_count
					""",
					post_id,
					delta,
				)
		return ReactionCounts(
			funny=int(row["funny_count"]),
			creative=int(row["creative_count"]),
			must_try=int(row["must_try_count"]),
		)


_store: Optional[PostStore] = None


def set_store(store: Optional[PostStore]) -> None:
	global _store
	_store = store


def get_store() -> PostStore:
	global _store
	if _store is None:
		_store = PostgresPostStore()
	return _store
