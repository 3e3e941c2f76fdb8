"""Application factory for the FastAPI app.

Owns the process-lifetime collaborators (rate limiter, credential
repository, provider client) and hangs them on ``app.state`` so request
dependencies resolve them from the app instead of module globals.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from practice_api.adapters.credentials.base import AbstractCredentialRepository
from practice_api.adapters.credentials.in_memory import InMemoryCredentialRepository
from practice_api.adapters.llm.base import AbstractLLMClient
from practice_api.adapters.llm.factory import create_llm_client
from practice_api.adapters.rate_limit.base import AbstractRateLimiter
from practice_api.adapters.rate_limit.sweeper import RateLimitSweeper
from practice_api.api.routes import health_router, settings_router
from practice_api.core.config import settings
from practice_api.core.crypto import validate_encryption_key
from practice_api.core.exception_handlers import setup_exception_handlers
from practice_api.core.logging import configure_logging
from practice_api.core.middleware import request_id_middleware
from practice_api.core.openapi import apply_openapi_customizations
from practice_api.core.rate_limit import build_rate_limiter
from practice_api.services.api_key_service import ApiKeyService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if settings.app.validate_encryption_key_on_startup:
        validate_encryption_key()

    sweeper = RateLimitSweeper(
        app.state.rate_limiter,
        interval_seconds=settings.app.rate_limit_sweep_interval_seconds,
    )
    sweeper.start()
    app.state.rate_limit_sweeper = sweeper
    try:
        yield
    finally:
        await sweeper.stop()


def create_app(
    *,
    rate_limiter: AbstractRateLimiter | None = None,
    credential_repository: AbstractCredentialRepository | None = None,
    llm_client: AbstractLLMClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        rate_limiter: Limiter to use; built from settings when omitted.
        credential_repository: Credential store; in-memory when omitted.
        llm_client: Provider client; built from settings when omitted.

    Returns:
        Configured app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Urdu Practice API",
        description=(
            "Settings backend for the quiz and Urdu translation practice app: "
            "stores each user's Gemini API key encrypted with AES-256-GCM and "
            "enforces an hourly per-user request quota on AI-backed endpoints."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.rate_limiter = rate_limiter if rate_limiter is not None else build_rate_limiter()
    app.state.api_key_service = ApiKeyService(
        repository=(
            credential_repository
            if credential_repository is not None
            else InMemoryCredentialRepository()
        ),
        llm=llm_client if llm_client is not None else create_llm_client(),
    )

    app.middleware("http")(request_id_middleware)
    setup_exception_handlers(app)

    app.include_router(settings_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    logger.info(
        "app.created",
        extra={
            "app_env": settings.app_env,
            "rate_limit_enabled": settings.app.rate_limit_enabled,
            "rate_limit_requests": settings.app.rate_limit_requests,
        },
    )
    return app
