"""Global error handlers ensuring request_id is included in JSON responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from onlyone.api.request_id import get_request_id
from onlyone.errors import InternalError, OnlyOneError

logger = logging.getLogger(__name__)


def _response(request: Request, status_code: int, payload: dict, headers: dict | None = None) -> JSONResponse:
    rid = get_request_id(request)
    merged = {"X-Request-Id": rid}
    if headers:
        merged.update(headers)
    return JSONResponse(status_code=status_code, content={**payload, "request_id": rid}, headers=merged)


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(OnlyOneError)
    async def onlyone_exc_handler(request: Request, exc: OnlyOneError):  # type: ignore[override]
        return _response(request, exc.status_code, exc.to_payload(), exc.headers())

    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
        return _response(request, exc.status_code, {"error": exc.detail}, getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
        payload = {"error": "Invalid request", "errors": jsonable_encoder(exc.errors())}
        return _response(request, 400, payload)

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception):  # type: ignore[override]
        logger.error("unhandled_exception", exc_info=exc)
        error = InternalError()
        return _response(request, error.status_code, error.to_payload())
