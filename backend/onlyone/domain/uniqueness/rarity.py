"""Rarity curve and percentile tiers."""

from __future__ import annotations

import math
from dataclasses import dataclass

from onlyone.settings import settings

# (exclusive upper bound on percentile, tier) in rarity order
TIERS: tuple[tuple[float, str], ...] = (
	(1.0, "elite"),
	(5.0, "rare"),
	(10.0, "unique"),
	(25.0, "notable"),
	(50.0, "common"),
	(math.inf, "popular"),
)


def rarity_score(match_count: int, population: int, *, base: float | None = None) -> int:
	"""Map the share of a population sharing an action onto 0-100.

	``population`` counts every post in the window and scope, including the one
	being scored. The curve is logarithmic in the share: 100 when nobody else
	matched, 0 when everyone did, and non-increasing in ``match_count``.
	"""
	curve = base if base is not None else settings.rarity_curve_base
	if curve <= 1:
		raise ValueError("rarity curve base must be greater than 1")
	population = max(population, match_count + 1, 1)
	share = max(0, match_count) / population
	score = 100 * (1 - math.log(1 + share * (curve - 1)) / math.log(curve))
	return max(0, min(100, round(score)))


@dataclass(frozen=True, slots=True)
class PercentileResult:
	percentile: float
	tier: str
	display_text: str
	comparison_text: str

	def as_dict(self) -> dict[str, object]:
		return {
			"percentile": self.percentile,
			"tier": self.tier,
			"displayText": self.display_text,
			"comparison": self.comparison_text,
		}


def tier_for(percentile: float) -> str:
	for upper, tier in TIERS:
		if percentile < upper:
			return tier
	return TIERS[-1][1]


def percentile_for(match_count: int, population: int) -> PercentileResult:
	"""Percentile is the share (in percent) of the population that matched."""
	population = max(population, match_count + 1, 1)
	percentile = round(100 * max(0, match_count) / population, 2)
	tier = tier_for(percentile)
	people = match_count + 1
	if match_count <= 0:
		display = "Only you!"
		comparison = f"Only you out of {population:,} {'person' if population == 1 else 'people'}"
	elif tier == "popular":
		display = f"Join {match_count:,} others"
		comparison = f"{people:,} of {population:,} people"
	else:
		shown = f"{percentile:.1f}" if percentile < 1 else f"{round(percentile)}"
		display = f"Top {shown}%"
		comparison = f"{people:,} of {population:,} people"
	return PercentileResult(percentile=percentile, tier=tier, display_text=display, comparison_text=comparison)
