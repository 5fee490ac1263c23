"""Inbound Telegram updates: chat messages carrying linking codes."""

from __future__ import annotations

import asyncio
import logging

from backend import config
from backend.middleware.rate_limit import rate_limiter
from backend.models.telegram_link import RedemptionResult
from backend.services.link_registry import link_registry
from backend.services.telegram_bot import TelegramAPIError, TelegramBot, telegram_bot

logger = logging.getLogger(__name__)

LINKED_REPLY = (
    "✅ Success! Your web gallery account is now linked to this chat. "
    "You can now upload and view files via the web app."
)
LINK_FAILED_REPLY = "❌ Error linking your account. Please try again later."
HELP_REPLY = (
    "Hello! This bot is for private file storage. To link your account, you must "
    "initiate the process on the web gallery app and send the unique code."
)
RATE_LIMITED_REPLY = "Too many messages. Please wait before sending more."

_REPLIES = {
    RedemptionResult.SUCCESS: LINKED_REPLY,
    RedemptionResult.PERSISTENCE_FAILED: LINK_FAILED_REPLY,
    RedemptionResult.UNRECOGNIZED: HELP_REPLY,
}

# Back-off after a failed getUpdates call
_POLL_ERROR_DELAY_SECONDS = 5


async def _reply(chat_id: int | str, text: str) -> None:
    """Send a chat reply. Failures are logged, never raised."""
    try:
        await telegram_bot.send_message(chat_id, text)
    except TelegramAPIError:
        logger.warning("Failed to send reply to chat %s", chat_id)


async def handle_update(update: dict) -> dict:
    """
    Process one Telegram Update.

    Text messages are treated as linking codes. Anything else (edits,
    stickers, service messages) is ignored.

    Returns:
        {"status": ...} describing what happened, for logging and tests
    """
    message = update.get("message") or {}
    chat_id = (message.get("chat") or {}).get("id")
    text = message.get("text") or ""

    if chat_id is None or not text.strip():
        return {"status": "ignored"}

    if not rate_limiter.check_rate_limit(
        f"telegram:{chat_id}",
        max_requests=config.settings.BOT_MESSAGES_PER_HOUR,
        window_minutes=60,
    ):
        # Tell the chat once per window, then drop silently
        if rate_limiter.check_rate_limit(f"telegram-notice:{chat_id}", max_requests=1, window_minutes=60):
            await _reply(chat_id, RATE_LIMITED_REPLY)
        return {"status": "rate_limited"}

    username = (message.get("from") or {}).get("username")
    result = await link_registry.redeem(text, chat_id, username)
    await _reply(chat_id, _REPLIES[result])
    return {"status": result.value}


async def poll_updates(bot: TelegramBot | None = None) -> None:
    """
    Long-poll getUpdates forever and feed each update to handle_update.

    Runs as a background task when TELEGRAM_UPDATE_MODE is "polling".
    A failing update is logged and skipped so one bad message cannot wedge
    the loop.
    """
    bot = bot or telegram_bot
    offset: int | None = None

    while True:
        try:
            updates = await bot.get_updates(offset=offset)
        except TelegramAPIError as e:
            logger.warning("getUpdates failed, retrying in %ss: %s", _POLL_ERROR_DELAY_SECONDS, e)
            await asyncio.sleep(_POLL_ERROR_DELAY_SECONDS)
            continue

        for update in updates:
            offset = update["update_id"] + 1
            try:
                await handle_update(update)
            except Exception:
                logger.exception("Failed to handle Telegram update %s", update.get("update_id"))
