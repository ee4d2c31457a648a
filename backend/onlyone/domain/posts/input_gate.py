"""Shape, size and injection screening for raw submissions.

Checks run in a fixed order and stop at the first failure. Content is
sanitized once, after every check has passed.
"""

from __future__ import annotations

import html
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, AsyncIterator, Mapping, Optional

from onlyone.domain.posts.models import InputKind, Location, Scope
from onlyone.errors import BadRequest, PayloadTooLarge, ValidationError
from onlyone.obs import metrics
from onlyone.settings import settings

logger = logging.getLogger(__name__)

_GENERIC_REJECTION = "Invalid content detected"

_SQL_PATTERNS = tuple(
	re.compile(pattern, re.IGNORECASE)
	for pattern in (
		r"\bunion\s+(all\s+)?select\b",
		r"\binsert\s+into\s+\w+\s*(\(|values\b)",
		r"\bdelete\s+from\s+\w+\s+where\b",
		r"\bdrop\s+(table|database|schema)\b",
		r"\bupdate\s+\w+\s+set\s+\w+\s*=",
		r"\b(exec|execute)\s*\(\s*['\"]",
		r"\bxp_cmdshell\b",
		r";\s*(drop|delete|insert|update|select|truncate|shutdown)\b",
		r"['\"]\s*(or|and)\s+['\"]?\w+['\"]?\s*=\s*['\"]?\w+",
		r"\bor\s+1\s*=\s*1\b",
		r"['\"]\s*--",
		r"/\*.*?\*/",
	)
)

_XSS_PATTERNS = tuple(
	re.compile(pattern, re.IGNORECASE)
	for pattern in (
		r"<\s*(script|iframe|object|embed|svg|img|link|meta|style)\b",
		r"</\s*script\s*>",
		r"javascript\s*:",
		r"vbscript\s*:",
		r"data\s*:\s*text/html",
		r"\bon[a-z]+\s*=\s*['\"]?",
		r"expression\s*\(",
	)
)

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class Submission:
	"""A validated and sanitized write request."""

	content: str
	input_type: InputKind
	scope: Scope
	location: Location


def _reject(check: str, error: Exception) -> Exception:
	metrics.inc_input_rejection(check)
	logger.info("input_rejected", extra={"check": check})
	return error


def _limit(max_bytes: Optional[int]) -> int:
	return max_bytes if max_bytes is not None else settings.max_payload_bytes


def check_declared_length(content_length: Optional[str], *, max_bytes: Optional[int] = None) -> None:
	"""Reject on the ``Content-Length`` header alone, before any body is read."""
	if not content_length:
		return
	limit = _limit(max_bytes)
	try:
		declared = int(content_length)
	except ValueError:
		return
	if declared > limit:
		raise _reject("size", PayloadTooLarge(limit))


async def read_capped(chunks: AsyncIterator[bytes], *, max_bytes: Optional[int] = None) -> bytes:
	"""Collect a streamed body, stopping as soon as it grows past the ceiling."""
	limit = _limit(max_bytes)
	buffer = bytearray()
	async for chunk in chunks:
		buffer.extend(chunk)
		if len(buffer) > limit:
			raise _reject("size", PayloadTooLarge(limit))
	return bytes(buffer)


def parse_payload(raw: bytes, *, content_length: Optional[str] = None, max_bytes: Optional[int] = None) -> dict[str, Any]:
	"""Enforce the payload ceiling and parse the body as a JSON object."""
	limit = _limit(max_bytes)
	check_declared_length(content_length, max_bytes=limit)
	if len(raw) > limit:
		raise _reject("size", PayloadTooLarge(limit))
	try:
		body = json.loads(raw.decode("utf-8"))
	except (UnicodeDecodeError, json.JSONDecodeError):
		raise _reject("json", BadRequest("Invalid JSON in request body")) from None
	if not isinstance(body, dict):
		raise _reject("json", BadRequest("Request body must be a JSON object"))
	return body


def has_injection_pattern(text: str) -> bool:
	return any(pattern.search(text) for pattern in _SQL_PATTERNS + _XSS_PATTERNS)


def sanitize_content(text: str) -> str:
	"""Unescape entities, drop tags and control characters, collapse whitespace."""
	value = html.unescape(text)
	value = _TAG_RE.sub(" ", value)
	value = _CONTROL_CHARS_RE.sub("", value)
	return _WHITESPACE_RE.sub(" ", value).strip()


def sanitize_location(value: Any) -> Optional[str]:
	if value is None:
		return None
	text = _CONTROL_CHARS_RE.sub("", str(value))
	text = text.replace("<", "").replace(">", "")
	text = _WHITESPACE_RE.sub(" ", text).strip()[: settings.location_max_length].strip()
	return text or None


def validate_submission(payload: Mapping[str, Any]) -> Submission:
	content = payload.get("content")
	if not isinstance(content, str) or not content.strip():
		raise _reject("content", ValidationError("Content is required"))
	trimmed = content.strip()
	if len(trimmed) < settings.content_min_length:
		raise _reject("length", ValidationError(f"Content must be at least {settings.content_min_length} characters"))
	if len(trimmed) > settings.content_max_length:
		raise _reject("length", ValidationError(f"Content must be {settings.content_max_length} characters or less"))
	if has_injection_pattern(trimmed):
		raise _reject("injection", ValidationError(_GENERIC_REJECTION))
	try:
		input_type = InputKind.parse(payload.get("inputType", InputKind.ACTION.value))
	except ValueError:
		raise _reject("enum", ValidationError("Invalid input type")) from None
	try:
		scope = Scope(str(payload.get("scope", Scope.WORLD.value)).strip().lower())
	except ValueError:
		raise _reject("enum", ValidationError("Invalid scope")) from None
	location = Location(
		city=sanitize_location(payload.get("locationCity")),
		state=sanitize_location(payload.get("locationState")),
		country=sanitize_location(payload.get("locationCountry")),
	)
	cleaned = sanitize_content(trimmed)
	if len(cleaned) < settings.content_min_length:
		raise _reject("length", ValidationError(f"Content must be at least {settings.content_min_length} characters"))
	return Submission(content=cleaned, input_type=input_type, scope=scope, location=location)
