from onlyone.domain.trending.aggregator import (
	TrendAggregator,
	TrendingPool,
	TrendingSample,
	build_default_sources,
	configure,
	get_aggregator,
	set_aggregator,
)
from onlyone.domain.trending.models import TrendingItem, is_ghost_id
from onlyone.domain.trending.sources import SourceUnavailable, TrendSource

__all__ = [
	"SourceUnavailable",
	"TrendAggregator",
	"TrendSource",
	"TrendingItem",
	"TrendingPool",
	"TrendingSample",
	"build_default_sources",
	"configure",
	"get_aggregator",
	"is_ghost_id",
	"set_aggregator",
]
