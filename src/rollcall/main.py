"""FastAPI application factory.

The HTTP side is small (health plus read-only JSON); its lifespan is what
hosts the Discord bot and the retention sweep.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from rollcall.api.teams import router as teams_router
from rollcall.config import Settings
from rollcall.core.cleanup import start_cleanup_scheduler
from rollcall.db.engine import create_engine, init_schema

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: create engine/tables, optionally start the Discord bot, start the sweep."""
    settings: Settings = app.state.settings
    engine = create_engine(settings.database_url)
    await init_schema(engine)
    app.state.engine = engine

    # Start Discord bot if configured
    discord_bot = None
    from rollcall.discord.bot import is_discord_enabled

    if is_discord_enabled(settings):
        from rollcall.discord.bot import start_discord_bot

        discord_bot = await start_discord_bot(settings, engine)
        app.state.discord_bot = discord_bot
        logger.info("discord_bot_integration_started")
    else:
        app.state.discord_bot = None
        logger.info("discord_bot_integration_disabled")

    scheduler = start_cleanup_scheduler(
        engine,
        settings.tier_limits(),
        interval_hours=settings.rollcall_cleanup_interval_hours,
    )
    app.state.scheduler = scheduler

    yield

    scheduler.shutdown(wait=False)
    logger.info("scheduler_stopped")

    if discord_bot is not None:
        await discord_bot.close()
        logger.info("discord_bot_integration_stopped")

    await engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the Rollcall FastAPI application."""
    settings = settings or Settings()

    logging.basicConfig(
        level=getattr(logging, settings.rollcall_log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Rollcall",
        version="0.1.0",
        description="Esports team scheduling and availability tracking for Discord",
        docs_url="/docs" if settings.rollcall_env != "production" else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.include_router(teams_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "env": settings.rollcall_env}

    return app


app = create_app()
