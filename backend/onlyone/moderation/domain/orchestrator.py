"""Two-stage moderation: static rules first, then an optional classifier.

The classifier is only consulted when every static rule passes. Classifier
errors and timeouts fall back to the static verdict (allowed) and are recorded
for observability rather than surfaced to the caller.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Mapping, Optional, Union

from onlyone.errors import DependencyDegraded
from onlyone.moderation.domain import static_rules
from onlyone.moderation.domain.classifier import (
    DEFAULT_MESSAGE,
    DEFAULT_REASON,
    LABEL_MESSAGES,
    LABEL_REASONS,
    NullTextClassifier,
    TextClassifier,
)
from onlyone.moderation.domain.stats import ModerationStats, moderation_stats
from onlyone.obs import metrics
from onlyone.settings import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Allowed:
    ai_scores: Optional[Mapping[str, float]] = None
    ai_checked: bool = False

    @property
    def allowed(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Blocked:
    blocked_by: str
    severity: str
    reason: str
    message: str
    ai_scores: Optional[Mapping[str, float]] = field(default=None)

    @property
    def allowed(self) -> bool:
        return False


ModerationVerdict = Union[Allowed, Blocked]


class ModerationOrchestrator:
    def __init__(
        self,
        *,
        classifier: TextClassifier | None = None,
        stats: ModerationStats | None = None,
        ai_enabled: bool | None = None,
        timeout_seconds: float | None = None,
        block_threshold: float | None = None,
        warn_threshold: float | None = None,
    ) -> None:
        self.classifier = classifier or NullTextClassifier()
        self.stats = stats or moderation_stats
        self.ai_enabled = settings.moderation_ai_enabled if ai_enabled is None else ai_enabled
        self.timeout_seconds = timeout_seconds or settings.moderation_ai_timeout_seconds
        self.block_threshold = block_threshold or settings.moderation_ai_block_threshold
        self.warn_threshold = warn_threshold or settings.moderation_ai_warn_threshold

    async def moderate(self, content: str) -> ModerationVerdict:
        verdict = await self._evaluate(content)
        await self._record(verdict)
        return verdict

    async def _evaluate(self, content: str) -> ModerationVerdict:
        rule = static_rules.evaluate(content)
        if rule is not None:
            logger.info("moderation_static_block", extra={"rule": rule.code, "severity": rule.severity})
            return Blocked(blocked_by="static", severity=rule.severity, reason=rule.reason, message=rule.message)
        if not self.ai_enabled:
            return Allowed()
        try:
            scores = await self._classify(content)
        except DependencyDegraded as exc:
            metrics.inc_classifier_failure(exc.detail)
            logger.warning("moderation_classifier_degraded", extra={"detail": exc.detail}, exc_info=exc.__cause__)
            return Allowed()
        return self._judge(scores)

    async def _classify(self, content: str) -> Mapping[str, float]:
        start = time.perf_counter()
        try:
            return await asyncio.wait_for(self.classifier.score(content), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            raise DependencyDegraded("classifier", "timeout") from None
        except Exception as exc:
            raise DependencyDegraded("classifier", "error") from exc
        finally:
            metrics.observe_classifier(time.perf_counter() - start)

    def _judge(self, scores: Mapping[str, float]) -> ModerationVerdict:
        if not scores:
            return Allowed(ai_scores=scores, ai_checked=True)
        label, top = max(scores.items(), key=lambda item: item[1])
        if top >= self.block_threshold:
            logger.info("moderation_ai_block", extra={"label": label, "top_score": round(top, 3)})
            return Blocked(
                blocked_by="ai",
                severity="high",
                reason=LABEL_REASONS.get(label, DEFAULT_REASON),
                message=LABEL_MESSAGES.get(label, DEFAULT_MESSAGE),
                ai_scores=dict(scores),
            )
        if top >= self.warn_threshold:
            logger.warning("moderation_ai_borderline", extra={"label": label, "top_score": round(top, 3)})
        return Allowed(ai_scores=dict(scores), ai_checked=True)

    async def _record(self, verdict: ModerationVerdict) -> None:
        try:
            if isinstance(verdict, Blocked):
                outcome = "static_blocked" if verdict.blocked_by == "static" else "ai_blocked"
                await self.stats.record(outcome, verdict.reason)
            else:
                await self.stats.record("allowed")
        except Exception:
            logger.warning("moderation_stats_failed", exc_info=True)
