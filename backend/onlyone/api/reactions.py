"""FastAPI routes for post reactions."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from onlyone.api.deps import rate_limited
from onlyone.api.posts import _service
from onlyone.domain.posts.schemas import ReactionRequest, ReactionResponse

router = APIRouter(prefix="/reactions", tags=["reactions"])


@router.post("", response_model=ReactionResponse, dependencies=[Depends(rate_limited("reactions"))])
async def toggle_reaction_endpoint(payload: ReactionRequest) -> ReactionResponse:
	return await _service.react(payload)
