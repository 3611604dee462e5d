from __future__ import annotations

from typing import Any

import httpx
import structlog
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from unichat.kernel.errors import UnichatError

logger = structlog.get_logger()


def _get_request_id(request: Request) -> str | None:
    return getattr(getattr(request, "state", None), "request_id", None)


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error as JSON with `detail`, a stable `code` and the `request_id`.

    Gateway transport failures that escape a route map to 502; typed
    errors carry their own status, so an upstream 401 or 404 passes through.
    """

    @app.exception_handler(UnichatError)
    async def _unichat_error_handler(request: Request, exc: UnichatError) -> Response:
        request_id = _get_request_id(request)
        if exc.status_code >= 500:
            logger.error("Request failed", code=exc.code, request_id=request_id, error=exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_public_dict(request_id=request_id))

    @app.exception_handler(httpx.HTTPError)
    async def _gateway_transport_error_handler(request: Request, exc: httpx.HTTPError) -> Response:
        # Fan-out branches absorb their own failures; this covers the
        # single gateway calls made before a fan-out (instance listing).
        request_id = _get_request_id(request)
        logger.error(
            "Gateway unreachable",
            request_id=request_id,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        payload: dict[str, Any] = {
            "detail": "Messaging gateway unreachable",
            "code": "upstream.unreachable",
        }
        if request_id:
            payload["request_id"] = request_id
        return JSONResponse(status_code=502, content=payload)

    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException) -> Response:
        request_id = _get_request_id(request)

        payload: dict[str, Any] = {
            "detail": exc.detail,
            "code": f"http.{exc.status_code}",
        }
        if request_id:
            payload["request_id"] = request_id

        headers = dict(exc.headers or {})
        return JSONResponse(status_code=int(exc.status_code), content=payload, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
        request_id = _get_request_id(request)
        payload: dict[str, Any] = {
            "detail": exc.errors(),
            "code": "http.validation_error",
        }
        if request_id:
            payload["request_id"] = request_id
        return JSONResponse(status_code=422, content=payload)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception) -> Response:
        request_id = _get_request_id(request)
        logger.exception("Unhandled exception", request_id=request_id, error=str(exc))

        payload: dict[str, Any] = {
            "detail": "Unexpected server error",
            "code": "internal.unhandled",
        }
        if request_id:
            payload["request_id"] = request_id
        return JSONResponse(status_code=500, content=payload)
