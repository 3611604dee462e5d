"""
unichat - FastAPI Application

Unified view of a user's WhatsApp conversations across several gateway
instances. Provides:
- Instance listing per user / sub-user
- Aggregated, deduplicated 1-to-1 chat list
- Conversation history merged across JID variants
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from unichat import __version__
from unichat.api.middleware import RequestIDMiddleware, get_cors_origins
from unichat.api.routes import health, instances, messages
from unichat.config import get_settings
from unichat.kernel.http.errors import register_exception_handlers

# Map log level string to logging constant
_LOG_LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def _get_log_level() -> int:
    """Get numeric log level from settings."""
    level_str = get_settings().log_level.lower()
    return _LOG_LEVEL_MAP.get(level_str, logging.INFO)


# Configure structured logging
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
        if get_settings().log_format == "json"
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(_get_log_level()),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - shared gateway HTTP client."""
    settings = get_settings()

    logger.info(
        "Starting unichat",
        version=__version__,
        environment=settings.environment,
        gateway_configured=bool(settings.wpp_api_base_url and settings.wpp_api_key),
    )

    app.state.http_client = httpx.AsyncClient(timeout=settings.gateway_timeout_seconds)

    yield

    logger.info("Shutting down unichat")
    await app.state.http_client.aclose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="unichat API",
        description="Aggregated WhatsApp chats and messages across gateway instances",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    register_exception_handlers(app)

    # Request ID tracking
    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # Prometheus metrics endpoint
    app.mount("/metrics", make_asgi_app())

    app.include_router(health.router, tags=["Health"])
    app.include_router(instances.router, prefix="/api/v1", tags=["Instances"])
    app.include_router(messages.router, prefix="/api/v1", tags=["Messages"])

    @app.get("/")
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "unichat API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
            "metrics": "/metrics",
        }

    return app


app = create_app()
