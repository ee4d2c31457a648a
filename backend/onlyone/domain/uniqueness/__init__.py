from onlyone.domain.uniqueness.fingerprint import fingerprint, normalize
from onlyone.domain.uniqueness.rarity import PercentileResult, percentile_for, rarity_score
from onlyone.domain.uniqueness.scorer import UniquenessScorer, UniquenessSnapshot

__all__ = [
	"PercentileResult",
	"UniquenessScorer",
	"UniquenessSnapshot",
	"fingerprint",
	"normalize",
	"percentile_for",
	"rarity_score",
]
