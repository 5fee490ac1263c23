"""HTTP client for the Telegram Bot API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from backend import config

logger = logging.getLogger(__name__)


class TelegramAPIError(Exception):
    """The Bot API was unreachable, answered non-2xx, or returned ok=false."""

    def __init__(self, method: str, description: str, status_code: int | None = None) -> None:
        super().__init__(f"Telegram {method} failed: {description}")
        self.method = method
        self.description = description
        self.status_code = status_code


def extract_file_id(message: dict[str, Any]) -> str | None:
    """
    Pull the persistent file_id out of a sent message.

    Documents carry it under ``document``. Telegram may turn images into a
    ``photo`` list of sizes, in which case the last (largest) one is used.
    """
    document = message.get("document")
    if document:
        return document.get("file_id")
    photos = message.get("photo") or []
    if photos:
        return photos[-1].get("file_id")
    return None


class TelegramBot:
    """HTTP client for the Telegram Bot API.

    Sends documents and chat replies for the bot and fetches updates when
    running in polling mode. Each call opens its own short-lived client, the
    same way every call site in the app does for outbound HTTP.
    """

    def __init__(self, token: str | None = None, api_base: str | None = None) -> None:
        self._token = token if token is not None else config.settings.TELEGRAM_BOT_TOKEN
        self._api_base = api_base or config.settings.TELEGRAM_API_BASE
        self._username: str | None = config.settings.TELEGRAM_BOT_USERNAME or None

    def _url(self, method: str) -> str:
        return f"{self._api_base}/bot{self._token}/{method}"

    async def _call(
        self,
        method: str,
        *,
        json: dict | None = None,
        data: dict | None = None,
        files: dict | None = None,
        timeout: float = 10.0,
    ) -> Any:
        """
        Call a Bot API method and return its ``result``.

        Raises:
            TelegramAPIError: On transport errors, non-2xx responses, or ok=false
        """
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.post(self._url(method), json=json, data=data, files=files)
        except httpx.HTTPError as e:
            # The URL embeds the token, so log only the exception type
            raise TelegramAPIError(method, type(e).__name__) from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error or not body.get("ok"):
            description = body.get("description") or f"HTTP {response.status_code}"
            raise TelegramAPIError(method, description, status_code=response.status_code)
        return body["result"]

    async def get_me(self) -> dict:
        """Return the bot's own User object."""
        return await self._call("getMe")

    async def get_username(self) -> str | None:
        """
        Resolve the bot's @username, cached after the first lookup.

        Returns:
            Username without the leading @, or None if getMe failed
        """
        if self._username:
            return self._username
        try:
            me = await self.get_me()
        except TelegramAPIError:
            logger.warning("Could not resolve bot username via getMe")
            return None
        self._username = me.get("username")
        return self._username

    async def send_message(self, chat_id: str | int, text: str) -> dict:
        """
        Send a plain text message.

        Args:
            chat_id: Destination chat id
            text: Message body

        Returns:
            The sent Message object

        Raises:
            TelegramAPIError: If the Bot API rejects the send
        """
        return await self._call("sendMessage", json={"chat_id": chat_id, "text": text})

    async def send_document(
        self,
        chat_id: str | int,
        content: bytes,
        filename: str,
        mime_type: str | None,
        caption: str | None = None,
    ) -> str:
        """
        Upload a file to a chat as a document.

        Args:
            chat_id: Destination chat id
            content: Raw file bytes
            filename: Original filename
            mime_type: Content type, or None for application/octet-stream
            caption: Optional caption shown under the document

        Returns:
            Telegram's persistent file_id for the stored file

        Raises:
            TelegramAPIError: If the send fails or the response has no file_id
        """
        data = {"chat_id": str(chat_id)}
        if caption:
            data["caption"] = caption
        files = {"document": (filename, content, mime_type or "application/octet-stream")}

        message = await self._call("sendDocument", data=data, files=files, timeout=120.0)
        file_id = extract_file_id(message)
        if not file_id:
            raise TelegramAPIError("sendDocument", "response missing file_id")
        return file_id

    async def get_updates(self, offset: int | None = None, timeout: int = 30) -> list[dict]:
        """
        Long-poll for new updates.

        Args:
            offset: Identifier of the first update to return
            timeout: Seconds Telegram may hold the request open

        Returns:
            List of Update objects, possibly empty
        """
        payload: dict = {"timeout": timeout, "allowed_updates": ["message"]}
        if offset is not None:
            payload["offset"] = offset
        return await self._call("getUpdates", json=payload, timeout=timeout + 10.0)

    async def set_webhook(self, url: str, secret_token: str | None = None) -> bool:
        """Point Telegram at our webhook endpoint."""
        payload: dict = {"url": url, "allowed_updates": ["message"]}
        if secret_token:
            payload["secret_token"] = secret_token
        return await self._call("setWebhook", json=payload)

    async def delete_webhook(self) -> bool:
        """Remove any webhook so getUpdates can be used."""
        return await self._call("deleteWebhook", json={"drop_pending_updates": False})


telegram_bot = TelegramBot()
