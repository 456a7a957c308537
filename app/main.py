"""
app/main.py

FastAPI entry point for the catalog adaptation service.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI

logger = logging.getLogger(__name__)


def _validate_env() -> None:
    """
    Check the configuration the service cannot start without.

    Every problem is collected before raising so one restart fixes them all:
    a job store URL must resolve, CONTENT_GENERATOR must name a known
    generator, and the openai generator needs an API key.
    """

    from app.config import get_content_generation_settings
    from db.config import resolve_database_url

    errors: list[str] = []

    try:
        resolve_database_url()
    except RuntimeError as exc:
        errors.append(str(exc))

    try:
        content_settings = get_content_generation_settings()
    except RuntimeError as exc:
        errors.append(str(exc))
    else:
        if content_settings.generator == "openai" and not content_settings.api_key:
            errors.append(
                "CONTENT_GENERATOR=openai needs LLM_API_KEY or OPENAI_API_KEY; "
                "set one, or use CONTENT_GENERATOR=rules."
            )

    if errors:
        raise RuntimeError(
            "Startup validation failed:\n" + "\n".join(f"  - {error}" for error in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _verify_job_store() -> None:
    """
    The job store must answer and already hold every mapped table.

    Migrations are never applied here; run 'alembic upgrade head' first.
    """

    from sqlalchemy import inspect as sa_inspect, text
    from sqlalchemy.exc import SQLAlchemyError

    import db.models  # noqa: F401  (registers the job tables on Base.metadata)
    from db.base import Base
    from db.session import get_engine

    try:
        with get_engine().connect() as connection:
            connection.execute(text("SELECT 1"))
            present = set(sa_inspect(connection).get_table_names())
    except SQLAlchemyError as exc:
        raise RuntimeError("Adaptation job store unavailable.") from exc
    logger.info("Adaptation job store reachable")

    missing = sorted(set(Base.metadata.tables) - present)
    if missing:
        logger.critical("Job store tables missing: %s. Run 'alembic upgrade head' and restart.", ", ".join(missing))
        raise RuntimeError(f"Job store schema incomplete, missing: {', '.join(missing)}.")


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    _verify_job_store()

    from app.services.synthesis_service import get_synthesis_engine

    logger.info("Content generator ready name=%s", get_synthesis_engine().generator_name)
    yield


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Catalog Adaptation API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import adaptation_router, ingestion_router, templates_router

    application.include_router(templates_router)
    application.include_router(ingestion_router)
    application.include_router(adaptation_router)

    @application.get("/health")
    def healthcheck() -> dict[str, object]:
        from app.catalog.template_registry import get_template_registry

        return {
            "status": "ok",
            "marketplaces": get_template_registry().list_supported_marketplaces(),
        }

    return application


app = create_app()
