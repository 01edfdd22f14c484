"""
rolegate.api.app

FastAPI app factory for the rolegate service.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Initialize and dispose shared infrastructure (DB engine, change feed,
  identity provider, audit sink, access-decision engine).
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from rolegate import __version__
from rolegate.api.routers.access import router as access_router
from rolegate.api.routers.admin import router as admin_router
from rolegate.api.routers.dev_auth import router as dev_auth_router
from rolegate.api.routers.health import router as health_router
from rolegate.api.routers.mfa import router as mfa_router
from rolegate.api.routers.verification import router as verification_router
from rolegate.audit.sink import AuditSink, LoggingAuditSink, QueuedAuditSink
from rolegate.db.session import create_engine, create_sessionmaker, init_db
from rolegate.observability.logging import configure_logging, get_logger
from rolegate.observability.middleware import RequestContextMiddleware
from rolegate.policy.engine import build_engine
from rolegate.provider.changes import ChangeFeed
from rolegate.provider.sql import SqlIdentityProvider
from rolegate.services.verification_service import LoggingCodeSender
from rolegate.settings import Settings

log = get_logger(__name__)

def create_app(*, settings: Settings) -> FastAPI:
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        sessionmaker = create_sessionmaker(engine)
        app.state.engine = engine
        app.state.sessionmaker = sessionmaker
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create tables automatically. Prod should use Alembic migrations.
            await init_db(engine)

        feed = ChangeFeed()
        queued: QueuedAuditSink | None = None
        audit: AuditSink
        if settings.audit_persist:
            queued = QueuedAuditSink(session_factory=sessionmaker, maxsize=settings.audit_queue_size)
            queued.start()
            audit = queued
        else:
            audit = LoggingAuditSink()
        provider = SqlIdentityProvider(session_factory=sessionmaker, feed=feed)

        app.state.feed = feed
        app.state.audit = audit
        app.state.provider = provider
        app.state.access_engine = build_engine(settings=settings, provider=provider, audit=audit)
        app.state.code_sender = LoggingCodeSender(reveal=settings.env == "dev")
        try:
            yield
        finally:
            # Drain pending security events before the engine goes away.
            if queued is not None:
                await queued.stop()
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="rolegate",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(dev_auth_router)
    app.include_router(access_router)
    app.include_router(mfa_router)
    app.include_router(verification_router)
    app.include_router(admin_router)
    return app

# --- Module Notes -----------------------------------------------------------
# This file is intentionally small: app composition stays here; policy stays in
# `rolegate.policy` and remediation flows in `rolegate.services`.
