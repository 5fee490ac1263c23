"""Tests for inbound Telegram update handling and the polling loop."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from backend import config
from backend.models.telegram_link import RedemptionResult
from backend.services.telegram_bot import TelegramAPIError
from backend.services.telegram_updates import (
    HELP_REPLY,
    LINK_FAILED_REPLY,
    LINKED_REPLY,
    RATE_LIMITED_REPLY,
    handle_update,
    poll_updates,
)

pytestmark = pytest.mark.asyncio(loop_scope="session")


def text_update(text: str, chat_id: int = 998877, update_id: int = 1, username: str | None = "bo") -> dict:
    sender = {"id": chat_id, "is_bot": False, "first_name": "Bo"}
    if username:
        sender["username"] = username
    return {
        "update_id": update_id,
        "message": {
            "message_id": 10,
            "from": sender,
            "chat": {"id": chat_id, "type": "private"},
            "date": 1760000000,
            "text": text,
        },
    }


async def test_valid_code_links_and_confirms():
    with (
        patch("backend.services.telegram_updates.link_registry") as mock_registry,
        patch("backend.services.telegram_updates.telegram_bot") as mock_bot,
    ):
        mock_registry.redeem = AsyncMock(return_value=RedemptionResult.SUCCESS)
        mock_bot.send_message = AsyncMock()
        result = await handle_update(text_update("a3b9c4"))

    assert result["status"] == "success"
    mock_registry.redeem.assert_called_once_with("a3b9c4", 998877, "bo")
    mock_bot.send_message.assert_called_once_with(998877, LINKED_REPLY)


async def test_unrecognized_code_gets_help():
    with (
        patch("backend.services.telegram_updates.link_registry") as mock_registry,
        patch("backend.services.telegram_updates.telegram_bot") as mock_bot,
    ):
        mock_registry.redeem = AsyncMock(return_value=RedemptionResult.UNRECOGNIZED)
        mock_bot.send_message = AsyncMock()
        result = await handle_update(text_update("/start"))

    assert result["status"] == "unrecognized"
    mock_bot.send_message.assert_called_once_with(998877, HELP_REPLY)


async def test_persistence_failure_asks_to_retry():
    with (
        patch("backend.services.telegram_updates.link_registry") as mock_registry,
        patch("backend.services.telegram_updates.telegram_bot") as mock_bot,
    ):
        mock_registry.redeem = AsyncMock(return_value=RedemptionResult.PERSISTENCE_FAILED)
        mock_bot.send_message = AsyncMock()
        result = await handle_update(text_update("A3B9C4"))

    assert result["status"] == "persistence_failed"
    mock_bot.send_message.assert_called_once_with(998877, LINK_FAILED_REPLY)


async def test_reply_failure_is_swallowed():
    with (
        patch("backend.services.telegram_updates.link_registry") as mock_registry,
        patch("backend.services.telegram_updates.telegram_bot") as mock_bot,
    ):
        mock_registry.redeem = AsyncMock(return_value=RedemptionResult.SUCCESS)
        mock_bot.send_message = AsyncMock(side_effect=TelegramAPIError("sendMessage", "Forbidden: bot was blocked"))
        result = await handle_update(text_update("A3B9C4"))

    assert result["status"] == "success"


@pytest.mark.parametrize(
    "update",
    [
        {"update_id": 1},
        {"update_id": 2, "edited_message": {"chat": {"id": 1}, "text": "A3B9C4"}},
        {"update_id": 3, "message": {"chat": {"id": 1}, "sticker": {"file_id": "x"}}},
        {"update_id": 4, "message": {"chat": {"id": 1}, "text": "   "}},
    ],
)
async def test_non_text_updates_are_ignored(update):
    with (
        patch("backend.services.telegram_updates.link_registry") as mock_registry,
        patch("backend.services.telegram_updates.telegram_bot") as mock_bot,
    ):
        mock_registry.redeem = AsyncMock()
        mock_bot.send_message = AsyncMock()
        result = await handle_update(update)

    assert result["status"] == "ignored"
    mock_registry.redeem.assert_not_called()
    mock_bot.send_message.assert_not_called()


async def test_rate_limited_chat_is_not_redeemed():
    with (
        patch.object(config.settings, "BOT_MESSAGES_PER_HOUR", 2),
        patch("backend.services.telegram_updates.link_registry") as mock_registry,
        patch("backend.services.telegram_updates.telegram_bot") as mock_bot,
    ):
        mock_registry.redeem = AsyncMock(return_value=RedemptionResult.UNRECOGNIZED)
        mock_bot.send_message = AsyncMock()
        await handle_update(text_update("one", chat_id=555))
        await handle_update(text_update("two", chat_id=555))
        result = await handle_update(text_update("three", chat_id=555))

    assert result["status"] == "rate_limited"
    assert mock_registry.redeem.call_count == 2
    mock_bot.send_message.assert_called_with(555, RATE_LIMITED_REPLY)


async def test_rate_limited_chat_is_told_once_per_window():
    with (
        patch.object(config.settings, "BOT_MESSAGES_PER_HOUR", 1),
        patch("backend.services.telegram_updates.link_registry") as mock_registry,
        patch("backend.services.telegram_updates.telegram_bot") as mock_bot,
    ):
        mock_registry.redeem = AsyncMock(return_value=RedemptionResult.UNRECOGNIZED)
        mock_bot.send_message = AsyncMock()
        for text in ("one", "two", "three", "four"):
            await handle_update(text_update(text, chat_id=556))

    replies = [c.args[1] for c in mock_bot.send_message.call_args_list]
    assert replies == [HELP_REPLY, RATE_LIMITED_REPLY]


async def test_poll_updates_advances_offset_and_survives_errors():
    bot = AsyncMock()
    bot.get_updates = AsyncMock(
        side_effect=[
            [text_update("A3B9C4", update_id=7), text_update("FFFFFF", update_id=8)],
            [],
            asyncio.CancelledError(),
        ]
    )
    handler = AsyncMock(side_effect=[RuntimeError("boom"), {"status": "unrecognized"}])

    with patch("backend.services.telegram_updates.handle_update", handler):
        with pytest.raises(asyncio.CancelledError):
            await poll_updates(bot)

    assert handler.call_count == 2
    offsets = [c.kwargs["offset"] for c in bot.get_updates.call_args_list]
    assert offsets == [None, 9, 9]


async def test_poll_updates_backs_off_on_api_error():
    bot = AsyncMock()
    bot.get_updates = AsyncMock(
        side_effect=[TelegramAPIError("getUpdates", "Conflict"), asyncio.CancelledError()]
    )

    with patch("backend.services.telegram_updates.asyncio.sleep", AsyncMock()) as mock_sleep:
        with pytest.raises(asyncio.CancelledError):
            await poll_updates(bot)

    mock_sleep.assert_called_once()
