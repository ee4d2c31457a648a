"""FastAPI application entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from onlyone.api import moderation, ops, posts, reactions, stats, trending
from onlyone.api.errors import install_error_handlers
from onlyone.domain import trending as trending_domain
from onlyone.infra import postgres
from onlyone.moderation import ModerationOrchestrator
from onlyone.moderation.domain.classifier import build_classifier
from onlyone.obs import init as obs_init
from onlyone.settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
	await postgres.init_pool()
	http = httpx.AsyncClient(timeout=settings.trending_source_timeout_seconds, follow_redirects=True)
	trending_domain.configure(http)
	posts._service.moderation = ModerationOrchestrator(classifier=build_classifier(http))
	try:
		yield
	finally:
		await http.aclose()
		await postgres.close_pool()


app = FastAPI(title="OnlyOne API", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(getattr(settings, "cors_allow_origins", []))
if not allow_origins:
	allow_origins = ["http://localhost:3000"] if settings.is_dev() else []

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials="*" not in allow_origins,
	allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
	allow_headers=["*"],
)

obs_init(app)

app.include_router(posts.router)
app.include_router(reactions.router)
app.include_router(trending.router)
app.include_router(moderation.router)
app.include_router(stats.router)
app.include_router(ops.router)
