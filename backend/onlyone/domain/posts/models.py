"""Domain models for posts, scopes and feed filters."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional


class InputKind(str, Enum):
	"""What the submission describes."""

	ACTION = "action"
	DAY_SUMMARY = "day_summary"

	@classmethod
	def parse(cls, value: Any) -> "InputKind":
		if isinstance(value, InputKind):
			return value
		text = str(value or "").strip().lower()
		if text == "day":
			return cls.DAY_SUMMARY
		return cls(text)


class Scope(str, Enum):
	"""Geographic granularity, narrowest first."""

	CITY = "city"
	STATE = "state"
	COUNTRY = "country"
	WORLD = "world"


class FeedFilter(str, Enum):
	ALL = "all"
	UNIQUE = "unique"
	COMMON = "common"


class ReactionType(str, Enum):
	FUNNY = "funny"
	CREATIVE = "creative"
	MUST_TRY = "must_try"


# Scopes that are visible when comparing inside a given scope.
_SCOPE_MEMBERS: Mapping[Scope, tuple[Scope, ...]] = {
	Scope.CITY: (Scope.CITY,),
	Scope.STATE: (Scope.STATE, Scope.CITY),
	Scope.COUNTRY: (Scope.COUNTRY, Scope.STATE, Scope.CITY),
	Scope.WORLD: (Scope.WORLD, Scope.COUNTRY, Scope.STATE, Scope.CITY),
}


@dataclass(frozen=True, slots=True)
class Location:
	city: Optional[str] = None
	state: Optional[str] = None
	country: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ScopeFilter:
	"""Which posts count as "the same population" for a scope and location.

	Non-world scopes without the matching location component degrade to world.
	"""

	scope: Scope
	location: Location = field(default_factory=Location)

	@property
	def effective_scope(self) -> Scope:
		if self.scope is Scope.CITY and not self.location.city:
			return Scope.WORLD
		if self.scope is Scope.STATE and not self.location.state:
			return Scope.WORLD
		if self.scope is Scope.COUNTRY and not self.location.country:
			return Scope.WORLD
		return self.scope

	@property
	def member_scopes(self) -> tuple[Scope, ...]:
		return _SCOPE_MEMBERS[self.effective_scope]

	def matches(self, post: "Post") -> bool:
		scope = self.effective_scope
		if scope is Scope.WORLD:
			return True
		if post.scope not in _SCOPE_MEMBERS[scope]:
			return False
		if scope is Scope.CITY:
			return post.location.city == self.location.city
		if scope is Scope.STATE:
			return post.location.state == self.location.state
		return post.location.country == self.location.country


@dataclass(slots=True)
class ReactionCounts:
	funny: int = 0
	creative: int = 0
	must_try: int = 0

	@property
	def total(self) -> int:
		return self.funny + self.creative + self.must_try

	def as_dict(self) -> dict[str, int]:
		return {"funny": self.funny, "creative": self.creative, "must_try": self.must_try, "total": self.total}


@dataclass(slots=True)
class NewPost:
	"""A sanitized, scored submission ready to be inserted."""

	content: str
	content_hash: str
	input_type: InputKind
	scope: Scope
	location: Location
	uniqueness_score: int
	match_count: int


@dataclass(slots=True)
class Post:
	id: str
	content: str
	content_hash: str
	input_type: InputKind
	scope: Scope
	location: Location
	uniqueness_score: int
	match_count: int
	created_at: datetime
	reactions: ReactionCounts = field(default_factory=ReactionCounts)

	@classmethod
	def from_record(cls, record: Mapping[str, Any]) -> "Post":
		return cls(
			id=str(record["id"]),
			content=str(record["content"]),
			content_hash=str(record["content_hash"]),
			input_type=InputKind.parse(record["input_type"]),
			scope=Scope(record["scope"]),
			location=Location(
				city=record.get("location_city"),
				state=record.get("location_state"),
				country=record.get("location_country"),
			),
			uniqueness_score=int(record["uniqueness_score"]),
			match_count=int(record["match_count"]),
			created_at=record["created_at"],
			reactions=ReactionCounts(
				funny=int(record.get("funny_count") or 0),
				creative=int(record.get("creative_count") or 0),
				must_try=int(record.get("must_try_count") or 0),
			),
		)

	def with_score(self, *, uniqueness_score: int, match_count: int) -> "Post":
		return replace(self, uniqueness_score=uniqueness_score, match_count=match_count)

	@property
	def scope_filter(self) -> ScopeFilter:
		return ScopeFilter(scope=self.scope, location=self.location)
