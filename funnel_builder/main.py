import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from sqlalchemy import text
from sqlalchemy.exc import ProgrammingError

from funnel_builder.config import settings
from funnel_builder.db.base import engine, init_db
from funnel_builder.errors import ValidationError
from funnel_builder.llm.client import LLMClientConfigError
from funnel_builder.routers import (
    brand_designs,
    business_profiles,
    deck_structures,
    followup,
    intake,
    marketing,
    offers,
    pages,
    pitch_videos,
    presentations,
    projects,
)

logger = logging.getLogger(__name__)


def _is_schema_mismatch_programming_error(exc: ProgrammingError) -> bool:
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) == "42703":
        return True
    message = str(orig or exc).lower()
    return any(marker in message for marker in ("undefined column", "does not exist", "no such column"))


@asynccontextmanager
async def _app_lifespan(_app: FastAPI) -> AsyncIterator[None]:
    init_db()
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Funnel Builder API",
        default_response_class=ORJSONResponse,
        lifespan=_app_lifespan,
    )

    allow_origins = sorted(set(settings.BACKEND_CORS_ORIGINS))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(_request: Request, exc: ValidationError) -> ORJSONResponse:
        if exc.status_code >= 500:
            logger.error("Request failed", extra={"detail": exc.message, "status_code": exc.status_code})
        return ORJSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(LLMClientConfigError)
    async def llm_config_error_handler(_request: Request, exc: LLMClientConfigError) -> ORJSONResponse:
        logger.error("AI provider is not configured", extra={"detail": str(exc)})
        return ORJSONResponse(status_code=503, content={"detail": str(exc)})

    @app.exception_handler(ProgrammingError)
    async def programming_error_handler(_request: Request, exc: ProgrammingError) -> ORJSONResponse:
        logger.exception("Database programming error", exc_info=exc)
        if _is_schema_mismatch_programming_error(exc):
            return ORJSONResponse(
                status_code=503,
                content={"detail": "Database schema is out of date. Recreate the tables and redeploy."},
            )
        return ORJSONResponse(status_code=500, content={"detail": "Database query failed."})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception("Unhandled server exception", exc_info=exc)
        return ORJSONResponse(status_code=500, content={"detail": "Internal server error."})

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/health/db")
    def health_db() -> dict[str, str]:
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return {"db": "ok"}
        except Exception as exc:  # pragma: no cover
            return {"db": f"error: {exc}"}

    app.include_router(projects.router)
    app.include_router(intake.router)
    app.include_router(business_profiles.router)
    app.include_router(offers.router)
    app.include_router(deck_structures.router)
    app.include_router(presentations.router)
    app.include_router(brand_designs.router)
    app.include_router(pages.router)
    app.include_router(pitch_videos.router)
    app.include_router(marketing.router)
    app.include_router(followup.router)

    return app


app = create_app()
