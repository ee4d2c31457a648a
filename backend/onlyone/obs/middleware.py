"""Request id, latency metrics and the access log line for every request."""

from __future__ import annotations

import re
import time
from typing import Optional
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from onlyone.obs import logging as obs_logging
from onlyone.obs import metrics
from onlyone.settings import settings

_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")
_QUIET_PREFIXES = ("/health/", "/metrics")


def _route_template(request: Request) -> str:
	route = request.scope.get("route")
	path = getattr(route, "path", None)
	return path if path else request.url.path


def client_ip(request: Request) -> str:
	"""Best-effort caller address, honouring the usual proxy headers."""
	forwarded = request.headers.get("x-forwarded-for")
	if forwarded:
		first = forwarded.split(",")[0].strip()
		if first:
			return first
	for header in ("x-real-ip", "cf-connecting-ip"):
		value = request.headers.get(header)
		if value:
			return value.strip()
	client = request.client
	return client.host if client and client.host else "unknown"


def request_id_for(request: Request) -> str:
	"""Reuse a well-formed inbound ``X-Request-Id``, otherwise mint one."""
	incoming = request.headers.get("X-Request-Id", "")
	return incoming if _REQUEST_ID_RE.match(incoming) else uuid4().hex


class ObservabilityMiddleware(BaseHTTPMiddleware):
	def __init__(self, app, *, enabled: bool = True) -> None:
		super().__init__(app)
		self._enabled = enabled
		self._logger = obs_logging.get_logger("onlyone.http")

	async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
		if not settings.obs_enabled or not self._enabled:
			return await call_next(request)

		request_id = request_id_for(request)
		request.state.request_id = request_id
		token = obs_logging.bind_context(request_id=request_id, client_ip=client_ip(request))
		start = time.perf_counter()
		status_code = 500
		response: Optional[Response] = None
		try:
			response = await call_next(request)
			status_code = response.status_code
		except Exception:
			self._logger.exception("http_request_error", extra={"method": request.method, "path": request.url.path})
			raise
		finally:
			elapsed = time.perf_counter() - start
			# resolved by the router, so only known after call_next
			route = _route_template(request)
			metrics.observe_request(route, request.method, status_code, elapsed)
			self._access_log(request.method, route, status_code, elapsed)
			obs_logging.reset_context(token)

		response.headers.setdefault("X-Request-Id", request_id)
		return response

	def _access_log(self, method: str, route: str, status_code: int, elapsed: float) -> None:
		latency_ms = round(elapsed * 1000, 3)
		extra = {"method": method, "route": route, "status": status_code, "latency_ms": latency_ms}
		if latency_ms >= settings.obs_slow_request_ms:
			self._logger.warning("http_request_slow", extra=extra)
		elif status_code >= 400 or not route.startswith(_QUIET_PREFIXES):
			self._logger.info("http_request", extra=extra)


def install(app, *, enabled: bool = True) -> None:
	app.add_middleware(ObservabilityMiddleware, enabled=enabled)
