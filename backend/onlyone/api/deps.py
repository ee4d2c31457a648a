"""Shared FastAPI dependencies: per-client rate limits and the cron secret."""

from __future__ import annotations

import secrets
from typing import Optional

from fastapi import Header, Request, Response

from onlyone.errors import RateLimitExceeded, Unauthorized
from onlyone.infra.rate_limit import RateLimitDecision, rate_limiter
from onlyone.obs.middleware import client_ip
from onlyone.settings import settings


async def enforce_rate_limit(request: Request, action: str) -> RateLimitDecision:
	decision = await rate_limiter.check_preset(client_ip(request), action)
	if not decision.allowed:
		raise RateLimitExceeded(
			limit=decision.limit,
			remaining=decision.remaining,
			reset_seconds=decision.reset_seconds,
		)
	return decision


def rate_limited(action: str):
	"""Dependency factory applying the named preset to the calling client."""

	async def _dependency(request: Request, response: Response) -> RateLimitDecision:
		decision = await enforce_rate_limit(request, action)
		response.headers.update(decision.headers())
		return decision

	return _dependency


async def require_cron_secret(
	authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> None:
	secret = settings.cron_secret
	if not secret:
		# no secret configured: the scheduler endpoint stays open
		return
	provided = authorization.split(" ", 1)[1] if authorization and authorization.lower().startswith("bearer ") else ""
	if not secrets.compare_digest(provided, secret):
		raise Unauthorized()
