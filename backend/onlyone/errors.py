"""Error taxonomy for the submission and read pipelines.

Each user-facing error carries the HTTP status it maps to and knows how to
render its JSON body. ``DependencyDegraded`` is internal only: components raise
it to signal that a non-critical collaborator is down and absorb it locally.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import status


class OnlyOneError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "internal_error"

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.message}

    def headers(self) -> Optional[Dict[str, str]]:
        return None


class ValidationError(OnlyOneError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "validation_error"


class BadRequest(OnlyOneError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "bad_request"


class PayloadTooLarge(OnlyOneError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    error_code = "payload_too_large"

    def __init__(self, limit_bytes: int) -> None:
        super().__init__(f"Payload too large. Maximum size is {limit_bytes // 1024}KB")
        self.limit_bytes = limit_bytes


class RateLimitExceeded(OnlyOneError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    error_code = "rate_limited"

    def __init__(self, *, limit: int, remaining: int, reset_seconds: int) -> None:
        super().__init__("Too many requests. Please slow down.")
        self.limit = limit
        self.remaining = remaining
        self.reset_seconds = reset_seconds

    def to_payload(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "limit": self.limit,
            "remaining": self.remaining,
            "resetSeconds": self.reset_seconds,
        }

    def headers(self) -> Optional[Dict[str, str]]:
        return {
            "Retry-After": str(max(0, self.reset_seconds)),
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_seconds),
        }


class QualityRejected(OnlyOneError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "quality_rejected"

    def __init__(self, *, reason: str, score: int, suggestion: str, message: str = "Content quality check failed") -> None:
        super().__init__(message)
        self.reason = reason
        self.score = score
        self.suggestion = suggestion

    def to_payload(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "reason": self.reason,
            "qualityScore": self.score,
            "suggestion": self.suggestion,
        }


class ModerationBlocked(OnlyOneError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "moderation_blocked"

    def __init__(self, *, blocked_by: str, severity: str, reason: str, message: str) -> None:
        super().__init__(message)
        self.blocked_by = blocked_by
        self.severity = severity
        self.reason = reason

    def to_payload(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "moderationFailed": True,
            "severity": self.severity,
            "blockedBy": self.blocked_by,
        }


class NotFound(OnlyOneError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "not_found"

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message)


class Unauthorized(OnlyOneError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "unauthorized"

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class InternalError(OnlyOneError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "internal_error"


class DependencyDegraded(Exception):
    """A non-critical dependency is unavailable; callers fall back locally."""

    def __init__(self, dependency: str, detail: str = "") -> None:
        super().__init__(f"{dependency} degraded: {detail}" if detail else f"{dependency} degraded")
        self.dependency = dependency
        self.detail = detail
