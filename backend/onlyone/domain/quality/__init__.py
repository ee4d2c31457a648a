"""Content quality heuristics."""

from onlyone.domain.quality.analyzer import ACTION_SUGGESTION, DAY_SUGGESTION, QualityAnalyzer, QualityAssessment, quality_analyzer

__all__ = ["ACTION_SUGGESTION", "DAY_SUGGESTION", "QualityAnalyzer", "QualityAssessment", "quality_analyzer"]
