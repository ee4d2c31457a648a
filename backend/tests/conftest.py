import sys
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from onlyone.api import posts as posts_api
from onlyone.domain.posts.models import FeedFilter, InputKind, NewPost, Post, ReactionCounts, ReactionType, ScopeFilter
from onlyone.domain.posts.store import feed_score_bounds, set_store
from onlyone.domain.trending import set_aggregator
from onlyone.domain.trending.aggregator import TrendAggregator
from onlyone.domain.trending.models import TrendingItem
from onlyone.infra import postgres
from onlyone.infra.cache import Cache
from onlyone.main import app
from onlyone.moderation import ModerationOrchestrator
from onlyone.moderation.domain.stats import ModerationStats


class InMemoryPostStore:
	"""PostStore fake that applies the same scope rules as the SQL adapter."""

	def __init__(self) -> None:
		self.posts: list[Post] = []
		self.reactions: set[tuple[str, str, str]] = set()
		self.fail_counts = False

	def add(self, post: Post) -> Post:
		self.posts.append(post)
		return post

	def _select(
		self,
		scope: ScopeFilter,
		*,
		since: Optional[datetime],
		content_hash: Optional[str] = None,
		exclude_id: Optional[str] = None,
		min_score: Optional[int] = None,
		max_score: Optional[int] = None,
		input_type: Optional[InputKind] = None,
	) -> list[Post]:
		selected = []
		for post in self.posts:
			if not scope.matches(post):
				continue
			if since is not None and post.created_at < since:
				continue
			if content_hash is not None and post.content_hash != content_hash:
				continue
			if exclude_id is not None and post.id == exclude_id:
				continue
			if min_score is not None and post.uniqueness_score < min_score:
				continue
			if max_score is not None and post.uniqueness_score >= max_score:
				continue
			if input_type is not None and post.input_type is not input_type:
				continue
			selected.append(post)
		return sorted(selected, key=lambda post: post.created_at, reverse=True)

	async def insert(self, post: NewPost) -> Post:
		return self.add(
			Post(
				id=str(uuid4()),
				content=post.content,
				content_hash=post.content_hash,
				input_type=post.input_type,
				scope=post.scope,
				location=post.location,
				uniqueness_score=post.uniqueness_score,
				match_count=post.match_count,
				created_at=datetime.now(timezone.utc),
			)
		)

	async def get(self, post_id: str) -> Optional[Post]:
		return next((post for post in self.posts if post.id == post_id), None)

	async def count_matching(self, content_hash, scope, *, since, exclude_id=None) -> int:
		if self.fail_counts:
			raise ConnectionError("store unavailable")
		return len(self._select(scope, since=since, content_hash=content_hash, exclude_id=exclude_id))

	async def count_total(self, scope, *, since, exclude_id=None, min_score=None) -> int:
		if self.fail_counts:
			raise ConnectionError("store unavailable")
		return len(self._select(scope, since=since, exclude_id=exclude_id, min_score=min_score))

	async def similar(self, content_hash, scope, *, since, limit=10, exclude_id=None):
		return self._select(scope, since=since, content_hash=content_hash, exclude_id=exclude_id)[:limit]

	async def recent_of_kind(self, input_type, scope, *, since, limit, exclude_id=None):
		if self.fail_counts:
			raise ConnectionError("store unavailable")
		return self._select(scope, since=since, exclude_id=exclude_id, input_type=input_type)[:limit]

	async def list_feed(self, scope, *, since, feed_filter: FeedFilter, limit: int, offset: int):
		min_score, max_score = feed_score_bounds(feed_filter)
		selected = self._select(scope, since=since, min_score=min_score, max_score=max_score)
		return selected[offset : offset + limit], len(selected)

	async def toggle_reaction(self, post_id: str, reaction: ReactionType, session_id: str) -> Optional[ReactionCounts]:
		post = await self.get(post_id)
		if post is None:
			return None
		key = (post_id, session_id, reaction.value)
		if key in self.reactions:
			self.reactions.discard(key)
			delta = -1
		else:
			self.reactions.add(key)
			delta = 1
		field = reaction.value
		counts = replace(post.reactions, **{field: max(0, getattr(post.reactions, field) + delta)})
		post.reactions = counts
		return counts


class StaticTrendSource:
	def __init__(self, name: str, items: list[TrendingItem] | None = None, error: Exception | None = None) -> None:
		self.name = name
		self.items = items or []
		self.error = error
		self.calls = 0

	async def fetch(self) -> list[TrendingItem]:
		self.calls += 1
		if self.error is not None:
			raise self.error
		return list(self.items)


def trend_items(source: str, count: int) -> list[TrendingItem]:
	return [TrendingItem(content=f"Reading about topic {source} {index}", estimated_count=1000 + index, source=source) for index in range(count)]


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from onlyone.infra.redis import redis_client, set_redis_client
	original = redis_client._client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def memory_store():
	store = InMemoryPostStore()
	set_store(store)
	try:
		yield store
	finally:
		set_store(None)


@pytest.fixture(autouse=True)
def static_moderation(monkeypatch):
	"""Static rules only, so no test ever reaches the hosted classifier."""
	monkeypatch.setattr(posts_api._service, "moderation", ModerationOrchestrator(ai_enabled=False, stats=ModerationStats()))


@pytest.fixture
def trend_sources():
	return [
		StaticTrendSource("reddit", trend_items("reddit", 20)),
		StaticTrendSource("github", trend_items("github", 20)),
		StaticTrendSource("google", trend_items("google", 10)),
	]


@pytest.fixture(autouse=True)
def aggregator(trend_sources):
	async def _no_sleep(_delay: float) -> None:
		return None

	instance = TrendAggregator(trend_sources, cache=Cache(), sleep=_no_sleep)
	set_aggregator(instance)
	try:
		yield instance
	finally:
		set_aggregator(None)


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
