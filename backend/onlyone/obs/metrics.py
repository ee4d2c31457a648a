"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

import logging

from prometheus_client import Counter, Gauge, Histogram

log = logging.getLogger(__name__)


REQUEST_COUNTER = Counter(
	"onlyone_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"onlyone_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

POSTS_CREATED = Counter(
	"onlyone_posts_created_total",
	"Posts accepted and persisted",
	["input_type", "scope"],
)

QUALITY_REJECTIONS = Counter(
	"onlyone_quality_rejections_total",
	"Submissions rejected by the quality analyzer",
	["reason"],
)

INPUT_REJECTIONS = Counter(
	"onlyone_input_rejections_total",
	"Submissions rejected by the input gate",
	["check"],
)

MODERATION_VERDICTS = Counter(
	"onlyone_moderation_verdicts_total",
	"Moderation verdicts by stage",
	["outcome", "reason"],
)

CLASSIFIER_FAILURES = Counter(
	"onlyone_moderation_classifier_failures_total",
	"Text classifier calls that failed or timed out",
	["kind"],
)

CLASSIFIER_LATENCY = Histogram(
	"onlyone_moderation_classifier_duration_seconds",
	"Latency of external text classifier calls",
	buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

RATE_LIMIT_REJECTIONS = Counter(
	"onlyone_rate_limit_rejections_total",
	"Requests rejected by the rate limiter",
	["action"],
)

DEPENDENCY_DEGRADED = Counter(
	"onlyone_dependency_degraded_total",
	"Non-critical dependency failures absorbed by a fallback",
	["dependency", "operation"],
)

UNIQUENESS_RECOMPUTE = Counter(
	"onlyone_uniqueness_recompute_total",
	"Live uniqueness recomputes on read",
	["result"],
)

TREND_SOURCE_FETCHES = Counter(
	"onlyone_trend_source_fetches_total",
	"Trend source fetch attempts",
	["source", "result"],
)

TREND_POOL_SIZE = Gauge(
	"onlyone_trend_pool_size",
	"Items in the most recently built trending pool",
)

TREND_REFRESHES = Counter(
	"onlyone_trend_refreshes_total",
	"Trending pool refreshes",
	["result"],
)

REDIS_UP = Gauge("onlyone_redis_up", "Redis availability (1 up, 0 down)")
REDIS_LATENCY = Histogram(
	"onlyone_redis_ping_seconds",
	"Redis readiness ping latency",
	buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25),
)
POSTGRES_UP = Gauge("onlyone_postgres_up", "Postgres availability (1 up, 0 down)")
POSTGRES_LATENCY = Histogram(
	"onlyone_postgres_ping_seconds",
	"Postgres readiness query latency",
	buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25),
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def inc_post_created(input_type: str, scope: str) -> None:
	POSTS_CREATED.labels(input_type=input_type, scope=scope).inc()


def inc_quality_rejection(reason: str) -> None:
	QUALITY_REJECTIONS.labels(reason=reason).inc()


def inc_input_rejection(check: str) -> None:
	INPUT_REJECTIONS.labels(check=check).inc()


def inc_moderation_verdict(outcome: str, reason: str = "none") -> None:
	MODERATION_VERDICTS.labels(outcome=outcome, reason=reason).inc()


def inc_classifier_failure(kind: str) -> None:
	CLASSIFIER_FAILURES.labels(kind=kind).inc()


def observe_classifier(elapsed_seconds: float) -> None:
	CLASSIFIER_LATENCY.observe(elapsed_seconds)


def inc_rate_limited(action: str) -> None:
	RATE_LIMIT_REJECTIONS.labels(action=action).inc()


def inc_degraded(dependency: str, operation: str) -> None:
	DEPENDENCY_DEGRADED.labels(dependency=dependency, operation=operation).inc()


def inc_recompute(result: str) -> None:
	UNIQUENESS_RECOMPUTE.labels(result=result).inc()


def inc_trend_fetch(source: str, result: str) -> None:
	TREND_SOURCE_FETCHES.labels(source=source, result=result).inc()


def set_trend_pool_size(size: int) -> None:
	TREND_POOL_SIZE.set(size)


def inc_trend_refresh(result: str) -> None:
	TREND_REFRESHES.labels(result=result).inc()


def mark_redis(ok: bool, *, latency_seconds: float | None = None) -> None:
	REDIS_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		REDIS_LATENCY.observe(latency_seconds)


def mark_postgres(ok: bool, *, latency_seconds: float | None = None) -> None:
	POSTGRES_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		POSTGRES_LATENCY.observe(latency_seconds)
