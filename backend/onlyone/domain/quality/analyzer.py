"""Composite quality gate run before moderation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from onlyone.domain.posts.models import InputKind
from onlyone.domain.quality.action import ActionAssessment, assess_action
from onlyone.domain.quality.gibberish import CoherenceResult, analyze_coherence
from onlyone.domain.quality.spam import SpamResult, score_spam

logger = logging.getLogger(__name__)

ALLOW_THRESHOLD = 60

ACTION_SUGGESTION = (
    'Please describe a specific action you did today (e.g., "played cricket", "cooked dinner", "went for a walk")'
)
DAY_SUGGESTION = "Please share meaningful activities or experiences from your day"

_REASON_MESSAGES = {
    "too_short": "Content is too short to be meaningful",
    "no_words": "Content does not contain any words",
    "repeated_characters": "Content contains excessive repeated characters",
    "keyboard_pattern": "Content looks like random keyboard input",
    "gibberish": "Content appears to be gibberish",
    "placeholder": "Content looks like placeholder or test text",
    "no_meaningful_words": "Content does not contain meaningful words",
    "repetitive": "Content is too repetitive",
    "sequential_identifiers": "Content looks like a test or sequential post",
    "url": "Links are not allowed",
    "email": "Email addresses are not allowed",
    "special_characters": "Content contains too many special characters",
    "excessive_caps": "Please avoid writing in all caps",
    "not_an_action": "This does not read like something you did",
    "low_quality": "Content quality is too low",
}


@dataclass(slots=True)
class QualityAssessment:
    score: int
    allowed: bool
    is_coherent: bool
    is_action: Optional[bool]
    action_confidence: Optional[int]
    spam_confidence: int
    issues: list[str] = field(default_factory=list)
    reason_code: Optional[str] = None
    reason: Optional[str] = None
    suggestion: Optional[str] = None


def _pick_reason(coherence: CoherenceResult, spam: SpamResult, action: Optional[ActionAssessment], overall: int) -> Optional[str]:
    if not coherence.is_coherent:
        return coherence.issues[0] if coherence.issues else "low_quality"
    if spam.is_spam:
        return spam.reasons[0] if spam.reasons else "low_quality"
    if action is not None and not action.is_valid:
        return "not_an_action"
    if overall < ALLOW_THRESHOLD:
        return "low_quality"
    return None


class QualityAnalyzer:
    """Combines coherence, spam and action-validity signals into one verdict."""

    def analyze(self, content: str, kind: InputKind) -> QualityAssessment:
        coherence = analyze_coherence(content)
        spam = score_spam(content)
        action = assess_action(content) if kind is InputKind.ACTION else None

        overall = round(0.8 * coherence.score + 0.2 * (100 - spam.confidence))
        reason_code = _pick_reason(coherence, spam, action, overall)
        issues = list(coherence.issues) + list(spam.reasons)
        if action is not None and not action.is_valid:
            issues.append("not_an_action")
        allowed = reason_code is None
        assessment = QualityAssessment(
            score=overall,
            allowed=allowed,
            is_coherent=coherence.is_coherent,
            is_action=action.is_valid if action is not None else None,
            action_confidence=action.confidence if action is not None else None,
            spam_confidence=spam.confidence,
            issues=issues,
            reason_code=reason_code,
            reason=_REASON_MESSAGES.get(reason_code) if reason_code else None,
            suggestion=None if allowed else (ACTION_SUGGESTION if kind is InputKind.ACTION else DAY_SUGGESTION),
        )
        if not allowed:
            logger.debug(
                "quality_rejected",
                extra={"reason_code": reason_code, "score": overall, "issues": issues},
            )
        return assessment


quality_analyzer = QualityAnalyzer()
