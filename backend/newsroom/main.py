"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from datetime import time
from pathlib import Path
from zoneinfo import ZoneInfo

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from newsroom.config import Settings, get_settings
from newsroom.application.services import PublicationScheduler, WeeklyDigestService
from newsroom.infrastructure.database import Base, engine
from newsroom.infrastructure.database.session import async_session_factory
from newsroom.infrastructure.database.repositories import SQLAlchemySubscriberDirectory
from newsroom.infrastructure.database.unit_of_work import sqlalchemy_uow_factory
from newsroom.infrastructure.logging.log_config import setup_logging
from newsroom.infrastructure.notifications.smtp_notifier import SMTPNotifier
from newsroom.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


async def _ensure_database_exists(settings: Settings) -> None:
    """Create the PostgreSQL database if it does not yet exist.

    Connects to the default ``postgres`` maintenance database, checks for the
    target database name, and issues ``CREATE DATABASE`` when missing. Other
    backends are left alone.
    """
    from urllib.parse import urlparse

    import asyncpg

    if not settings.database_url.startswith(("postgresql://", "postgres://")):
        return

    parsed = urlparse(settings.database_url)
    db_name = parsed.path.lstrip("/")
    if not db_name:
        return

    maintenance_url = settings.database_url.rsplit("/", 1)[0] + "/postgres"

    try:
        conn = await asyncpg.connect(maintenance_url)
        try:
            exists = await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", db_name)
            if not exists:
                # CREATE DATABASE cannot run inside a transaction block
                await conn.execute(f'CREATE DATABASE "{db_name}"')
                logger.info("Created database '%s'", db_name)
        finally:
            await conn.close()
    except (OSError, asyncpg.PostgresError) as exc:
        logger.warning("Could not auto-create database '%s': %s", db_name, exc)


def _build_digest(settings: Settings) -> WeeklyDigestService:
    notifier = SMTPNotifier(
        host=settings.smtp_host,
        port=settings.smtp_port,
        sender=settings.mail_from,
        username=settings.smtp_username,
        password=settings.smtp_password,
        use_tls=settings.smtp_use_tls,
        timeout=settings.smtp_timeout,
    )
    return WeeklyDigestService(
        uow_factory=sqlalchemy_uow_factory(async_session_factory),
        subscribers=SQLAlchemySubscriberDirectory(async_session_factory),
        notifier=notifier,
        public_base_url=settings.public_base_url,
        article_count=settings.digest_article_count,
        weekday=settings.digest_weekday,
        at=time(settings.digest_hour, settings.digest_minute),
        tz=ZoneInfo(settings.digest_timezone),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan — create tables, start the scheduler and the digest."""
    settings = get_settings()
    setup_logging()

    # 1. Ensure the database and its tables exist
    await _ensure_database_exists(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # 2. Ensure upload directory exists
    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)

    # 3. Background jobs
    scheduler = None
    if settings.scheduler_enabled:
        scheduler = PublicationScheduler(
            uow_factory=sqlalchemy_uow_factory(async_session_factory),
            interval_seconds=settings.scheduler_interval_seconds,
        )
        await scheduler.start()

    digest = None
    if settings.digest_enabled:
        digest = _build_digest(settings)
        await digest.start()

    app.state.scheduler = scheduler
    app.state.digest = digest

    yield

    # Shutdown
    if digest is not None:
        await digest.stop()
    if scheduler is not None:
        await scheduler.stop()
    await engine.dispose()


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount API routes and the document store
    app.include_router(api_router)
    app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "newsroom.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
