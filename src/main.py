from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.config import Settings, get_settings
from src.intake.api.routes import router as evolution_router
from src.intake.bootstrap import build_intake
from src.shared.database import create_all, create_engine, create_session_factory
from src.shared.exceptions import register_exception_handlers  # central mapping
from src.shared.health import router as health_router
from src.shared.logging import configure_logging, get_logger
from src.shared.redis import create_redis

logger = get_logger(__name__)


def _lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        engine = create_engine(settings)
        if settings.CREATE_TABLES:
            await create_all(engine)
        session_factory = create_session_factory(engine)
        redis = await create_redis(settings)

        container = build_intake(settings, session_factory=session_factory, redis=redis)
        app.state.session_factory = session_factory
        app.state.redis = redis
        app.state.intake_service = container.service
        app.state.messaging_gateway = container.gateway
        logger.info("app_started", environment=settings.ENVIRONMENT)
        try:
            yield
        finally:
            await container.aclose()
            if redis is not None:
                await redis.aclose()
            await engine.dispose()
            logger.info("app_stopped")

    return lifespan


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(log_level=settings.LOG_LEVEL, json_logs=settings.json_logs)

    app = FastAPI(
        title="ProviDATA WhatsApp Intake API",
        version=settings.PROJECT_VERSION,
        lifespan=_lifespan(settings),
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(health_router)
    app.include_router(evolution_router)

    # Centralized error handling → {code, message, details?, correlation_id?}
    register_exception_handlers(app)

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint."""
        return {
            "message": "ProviDATA WhatsApp intake API",
            "docs": "/docs",
            "webhook": "/api/evolution/webhook",
        }

    return app


app = create_app()
