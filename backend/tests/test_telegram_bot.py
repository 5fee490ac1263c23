"""Tests for the Telegram Bot API client against a mocked transport."""

from __future__ import annotations

import json
from unittest.mock import patch

import httpx
import pytest

from backend.services.telegram_bot import TelegramAPIError, TelegramBot, extract_file_id

pytestmark = pytest.mark.asyncio(loop_scope="session")

_RealAsyncClient = httpx.AsyncClient


def mock_telegram(handler):
    """Route every AsyncClient the bot opens through ``handler``."""

    def factory(**kwargs):
        return _RealAsyncClient(transport=httpx.MockTransport(handler), **kwargs)

    return patch("backend.services.telegram_bot.httpx.AsyncClient", side_effect=factory)


def ok(result) -> httpx.Response:
    return httpx.Response(200, json={"ok": True, "result": result})


@pytest.fixture
def bot():
    return TelegramBot(token="123:ABC", api_base="https://api.telegram.test")


class TestExtractFileId:
    def test_document(self):
        assert extract_file_id({"document": {"file_id": "DOC1"}}) == "DOC1"

    def test_largest_photo(self):
        message = {"photo": [{"file_id": "small"}, {"file_id": "medium"}, {"file_id": "large"}]}
        assert extract_file_id(message) == "large"

    def test_nothing(self):
        assert extract_file_id({"text": "hi"}) is None


class TestSendDocument:
    async def test_returns_file_id(self, bot):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = request.content
            return ok({"message_id": 1, "document": {"file_id": "BQACAgIAAxk"}})

        with mock_telegram(handler):
            file_id = await bot.send_document("998877", b"hello", "notes.txt", "text/plain", caption="Uploaded")

        assert file_id == "BQACAgIAAxk"
        assert seen["path"] == "/bot123:ABC/sendDocument"
        assert b'name="chat_id"' in seen["body"]
        assert b"998877" in seen["body"]
        assert b'filename="notes.txt"' in seen["body"]
        assert b"hello" in seen["body"]

    async def test_photo_response(self, bot):
        def handler(request):
            return ok({"message_id": 1, "photo": [{"file_id": "p-small"}, {"file_id": "p-big"}]})

        with mock_telegram(handler):
            assert await bot.send_document(1, b"\x89PNG", "a.png", "image/png") == "p-big"

    async def test_api_error(self, bot):
        def handler(request):
            return httpx.Response(400, json={"ok": False, "description": "Bad Request: chat not found"})

        with mock_telegram(handler):
            with pytest.raises(TelegramAPIError) as exc_info:
                await bot.send_document(1, b"x", "x.bin", None)

        assert exc_info.value.description == "Bad Request: chat not found"
        assert exc_info.value.status_code == 400

    async def test_missing_file_id(self, bot):
        with mock_telegram(lambda request: ok({"message_id": 1})):
            with pytest.raises(TelegramAPIError):
                await bot.send_document(1, b"x", "x.bin", None)

    async def test_transport_error_hides_token(self, bot):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with mock_telegram(handler):
            with pytest.raises(TelegramAPIError) as exc_info:
                await bot.send_document(1, b"x", "x.bin", None)

        assert "123:ABC" not in str(exc_info.value)


class TestOtherMethods:
    async def test_send_message(self, bot):
        seen = {}

        def handler(request):
            seen["json"] = json.loads(request.content)
            return ok({"message_id": 2})

        with mock_telegram(handler):
            await bot.send_message(998877, "hi")

        assert seen["json"] == {"chat_id": 998877, "text": "hi"}

    async def test_get_username_is_cached(self):
        bot = TelegramBot(token="123:ABC", api_base="https://api.telegram.test")
        bot._username = None
        calls = []

        def handler(request):
            calls.append(request.url.path)
            return ok({"id": 123, "is_bot": True, "username": "gallery_bot"})

        with mock_telegram(handler):
            assert await bot.get_username() == "gallery_bot"
            assert await bot.get_username() == "gallery_bot"

        assert calls == ["/bot123:ABC/getMe"]

    async def test_get_username_failure_returns_none(self):
        bot = TelegramBot(token="123:ABC", api_base="https://api.telegram.test")
        bot._username = None

        with mock_telegram(lambda request: httpx.Response(401, json={"ok": False, "description": "Unauthorized"})):
            assert await bot.get_username() is None

    async def test_get_updates_passes_offset(self, bot):
        seen = {}

        def handler(request):
            seen["json"] = json.loads(request.content)
            return ok([{"update_id": 5}])

        with mock_telegram(handler):
            updates = await bot.get_updates(offset=5, timeout=0)

        assert updates == [{"update_id": 5}]
        assert seen["json"]["offset"] == 5
        assert seen["json"]["timeout"] == 0

    async def test_set_webhook_with_secret(self, bot):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["json"] = json.loads(request.content)
            return ok(True)

        with mock_telegram(handler):
            assert await bot.set_webhook("https://x.test/telegram/webhook", secret_token="s3cret") is True

        assert seen["path"].endswith("/setWebhook")
        assert seen["json"]["secret_token"] == "s3cret"
