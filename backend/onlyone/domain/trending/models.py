"""Trending pool entries and the ghost posts built from them."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

GHOST_PREFIX = "ghost-"


@dataclass(frozen=True, slots=True)
class TrendingItem:
	content: str
	estimated_count: int
	source: str

	def as_dict(self) -> dict[str, Any]:
		return {"content": self.content, "estimatedCount": self.estimated_count, "source": self.source}

	@classmethod
	def from_mapping(cls, data: Mapping[str, Any]) -> "TrendingItem":
		return cls(
			content=str(data["content"]),
			estimated_count=int(data.get("estimatedCount", 0)),
			source=str(data.get("source", "unknown")),
		)


def is_ghost_id(post_id: str) -> bool:
	return str(post_id).startswith(GHOST_PREFIX)


def to_ghost_posts(items: Sequence[TrendingItem], *, stamp: int) -> list[dict[str, Any]]:
	"""Format pool entries as non-reactable feed entries."""
	return [
		{
			"id": f"{GHOST_PREFIX}{stamp}-{index}",
			"content": item.content,
			"source": item.source,
			"peopleCount": item.estimated_count,
			"uniquenessScore": 0,
			"isGhost": True,
			"reactable": False,
		}
		for index, item in enumerate(items)
	]


def ghost_count_for(real_count: int, rng: Optional[random.Random] = None) -> int:
	"""How many ghosts to mix into a feed page holding ``real_count`` posts."""
	rng = rng or random
	if real_count < 10:
		return rng.randint(15, 20)
	if real_count < 20:
		return rng.randint(8, 12)
	if real_count < 30:
		return rng.randint(3, 5)
	return rng.randint(1, 2)
