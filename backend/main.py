"""
TeleGallery FastAPI application.

Entry point for the API server.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend import config, db
from backend.middleware.rate_limit import rate_limiter
from backend.routes import files as file_routes
from backend.routes import link as link_routes
from backend.routes import telegram as telegram_routes
from backend.services.link_registry import link_registry
from backend.services.telegram_bot import TelegramAPIError, telegram_bot
from backend.services.telegram_updates import poll_updates

logging.basicConfig(
    level=config.settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# Background task for cleanup
async def cleanup_task():
    """
    Background task to drop expired linking codes and old rate limit entries.

    Runs every LINK_SWEEP_INTERVAL_SECONDS.
    """
    while True:
        try:
            expired = link_registry.sweep()
            if expired > 0:
                logger.info("Cleaned up %d expired link codes", expired)

            rate_limiter.cleanup_old_entries(max_age_hours=2)

        except Exception:
            logger.exception("Error in cleanup task")

        await asyncio.sleep(config.settings.LINK_SWEEP_INTERVAL_SECONDS)


async def _start_update_intake() -> asyncio.Task | None:
    """
    Hook the bot up to Telegram according to TELEGRAM_UPDATE_MODE.

    Polling needs any webhook removed first; webhook mode registers ours
    when TELEGRAM_WEBHOOK_URL is set.
    """
    mode = config.settings.TELEGRAM_UPDATE_MODE
    try:
        if mode == "polling":
            await telegram_bot.delete_webhook()
            logger.info("Telegram update polling started")
            return asyncio.create_task(poll_updates())
        if mode == "webhook" and config.settings.TELEGRAM_WEBHOOK_URL:
            await telegram_bot.set_webhook(
                config.settings.TELEGRAM_WEBHOOK_URL,
                secret_token=config.settings.TELEGRAM_WEBHOOK_SECRET or None,
            )
            logger.info("Telegram webhook registered")
    except TelegramAPIError as e:
        logger.error("Telegram update intake not started: %s", e)
    return None


async def _stop(task: asyncio.Task | None) -> None:
    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Handles startup and shutdown logic:
    - Initialize database pool
    - Start background cleanup task
    - Start Telegram update intake
    - Stop both and close database pool on shutdown
    """
    await db.init_pool()

    cleanup_task_handle = asyncio.create_task(cleanup_task())
    logger.info("Background cleanup task started")

    polling_handle = await _start_update_intake()

    yield

    await _stop(polling_handle)
    await _stop(cleanup_task_handle)
    logger.info("Background tasks stopped")

    await db.close_pool()


app = FastAPI(
    title="TeleGallery",
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routes
app.include_router(link_routes.router)
app.include_router(telegram_routes.router)
app.include_router(file_routes.router)


@app.get("/health")
async def health():
    """Health check endpoint for uptime monitoring."""
    return {"status": "ok"}
