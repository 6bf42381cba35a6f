"""Status page FastAPI application factory.

The create_app() factory is the single entry point for building the ASGI
application. It wires middleware (request-ID, CORS), the status page routes,
and injects the instance service via dependency injection.

Usage:
    # Against the real instance API
    from server_status import create_app, StatusPageSettings
    app = create_app(StatusPageSettings.from_env())

    # Testing (full DI control)
    app = create_app(settings, instance_service=InMemoryInstanceService())
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware

from .observability.logging import configure_logging, request_id_ctx
from .observability.metrics import metrics_text
from .protocols import InstanceService
from .providers.instances_client import InstancesClient, close_shared_async_client
from .registry import StatusPageRegistry
from .routes.status_pages import create_status_pages_router
from .settings import StatusPageSettings

logger = logging.getLogger(__name__)


# ── Middleware ──────────────────────────────────────────────────────


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Generate or propagate X-Request-ID on every request."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_ctx.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)
        response.headers["X-Request-ID"] = request_id
        return response


# ── App factory ─────────────────────────────────────────────────────


def create_app(
    settings: StatusPageSettings | None = None,
    *,
    instance_service: InstanceService | None = None,
    registry: StatusPageRegistry | None = None,
) -> FastAPI:
    """Create the status page application.

    Args:
        settings: Configuration; defaults to local development settings.
        instance_service: Status/stop backend. Defaults to an httpx
            InstancesClient pointed at ``settings.api_base_url``.
        registry: Pre-built page registry (tests).

    Returns:
        Configured FastAPI application ready for uvicorn.run().

    Raises:
        ValueError: If settings validation fails.
    """
    if settings is None:
        settings = StatusPageSettings()

    errors = settings.validate()
    if errors:
        raise ValueError(
            "Status page settings validation failed:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )

    configure_logging()

    if registry is None:
        if instance_service is None:
            instance_service = InstancesClient.from_settings(settings)
        registry = StatusPageRegistry(settings, instance_service)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Status page service startup (environment=%s)", settings.environment)
        yield
        closed = await registry.close_all()
        await close_shared_async_client()
        logger.info("Status page service shutdown (closed %d pages)", closed)

    app = FastAPI(
        title="Server Status",
        description="Provisioning status pages for created server instances",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.registry = registry

    # ── Middleware stack (applied in reverse order) ──────────────

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    # ── Routes ──────────────────────────────────────────────────

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "environment": settings.environment,
            "open_pages": registry.open_count,
        }

    @app.get("/metrics")
    async def metrics():
        payload, content_type = metrics_text()
        return Response(content=payload, media_type=content_type)

    app.include_router(
        create_status_pages_router(
            registry, fallback_token=settings.api_token or None
        )
    )

    return app


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn: settings come from the process environment."""
    return create_app(StatusPageSettings.from_env())


# For uvicorn, use --factory flag:
#   uvicorn server_status.main:create_app_from_env --factory
