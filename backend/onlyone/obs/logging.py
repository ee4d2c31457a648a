"""JSON logging with a per-request context.

Submissions are anonymous, so log lines never carry raw client addresses,
session ids or full post text: addresses are truncated to their network,
session ids and secrets are redacted and content is clipped.
"""

from __future__ import annotations

import ipaddress
import json
import logging
import random
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from onlyone.settings import settings

_LOGGER_NAME = "onlyone"
_HANDLER_NAME = "onlyone-json"

_CONTEXT: ContextVar[Mapping[str, str]] = ContextVar("onlyone_log_context", default={})

_REDACTED_KEYS = frozenset({"authorization", "cron_secret", "token", "secret", "session_id", "sessionid", "password"})
_CONTENT_KEYS = frozenset({"content", "text", "title"})
_IP_KEYS = frozenset({"ip", "client_ip"})
_CONTENT_PREVIEW = 80
_MAX_STRING = 512

# LogRecord attributes that are not user supplied extras
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def bind_context(**fields: Optional[str]) -> Token:
	"""Add fields to the logging context of the current task."""
	merged = dict(_CONTEXT.get())
	merged.update({key: value for key, value in fields.items() if value is not None})
	return _CONTEXT.set(merged)


def reset_context(token: Token) -> None:
	_CONTEXT.reset(token)


def current_request_id() -> Optional[str]:
	return _CONTEXT.get().get("request_id")


def mask_ip(value: str) -> str:
	"""Keep the /24 (IPv4) or /48 (IPv6) network of an address."""
	try:
		address = ipaddress.ip_address(value)
	except ValueError:
		return "unknown"
	prefix = 24 if address.version == 4 else 48
	return str(ipaddress.ip_network(f"{address}/{prefix}", strict=False).network_address)


def scrub(key: str, value: Any) -> Any:
	lowered = key.lower()
	if lowered in _REDACTED_KEYS:
		return "[redacted]"
	if lowered in _IP_KEYS and isinstance(value, str):
		return mask_ip(value)
	if lowered in _CONTENT_KEYS and isinstance(value, str) and len(value) > _CONTENT_PREVIEW:
		return value[:_CONTENT_PREVIEW] + "..."
	if isinstance(value, str) and len(value) > _MAX_STRING:
		return value[:_MAX_STRING] + "..."
	if isinstance(value, Mapping):
		return {str(nested_key): scrub(str(nested_key), nested) for nested_key, nested in value.items()}
	return value


class JSONLogFormatter(logging.Formatter):
	def format(self, record: logging.LogRecord) -> str:  # noqa: A003
		payload: dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"logger": record.name,
			"event": record.getMessage(),
			"service": settings.service_name,
			"env": settings.environment,
		}
		if settings.git_commit:
			payload["commit"] = settings.git_commit
		for key, value in _CONTEXT.get().items():
			payload[key] = scrub(key, value)
		for key, value in record.__dict__.items():
			if key in _RECORD_ATTRS or key.startswith("_"):
				continue
			payload[key] = scrub(key, value)
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
	"""Sample successful info lines; warnings, errors and failed requests always pass."""

	def __init__(self, rate: Optional[float] = None, rng: Optional[random.Random] = None) -> None:
		super().__init__()
		self.rate = settings.obs_log_sampling_rate_info if rate is None else rate
		self._rng = rng or random.Random()

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno > logging.INFO:
			return True
		if int(getattr(record, "status", 0) or 0) >= 400:
			return True
		if self.rate >= 1.0:
			return True
		return self._rng.random() < max(0.0, self.rate)


def configure_logging() -> logging.Logger:
	"""Install the JSON handler on the root logger once."""
	root = logging.getLogger()
	if not any(handler.get_name() == _HANDLER_NAME for handler in root.handlers):
		handler = logging.StreamHandler()
		handler.set_name(_HANDLER_NAME)
		handler.setFormatter(JSONLogFormatter())
		handler.addFilter(InfoSamplingFilter())
		root.addHandler(handler)
	root.setLevel(settings.obs_log_level)
	# the access line comes from ObservabilityMiddleware
	logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
	return logging.getLogger(_LOGGER_NAME)


def get_logger(name: Optional[str] = None) -> logging.Logger:
	return logging.getLogger(name or _LOGGER_NAME)
