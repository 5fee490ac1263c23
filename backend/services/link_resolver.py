"""Resolve a web session to its linked Telegram chat."""

from __future__ import annotations

import logging

from backend.models.telegram_link import TelegramLink
from backend.repos.telegram_link_repo import TelegramLinkRepo

logger = logging.getLogger(__name__)


class LinkStoreUnavailable(Exception):
    """The link table could not be read. Transient; distinct from 'not linked'."""


class LinkResolver:
    """Single-key lookups against user_telegram_settings."""

    def __init__(self, link_repo: TelegramLinkRepo | None = None) -> None:
        self._link_repo = link_repo or TelegramLinkRepo()

    async def get_link(self, user_id: str) -> TelegramLink | None:
        """
        Fetch the full link record for a user.

        Returns:
            TelegramLink, or None when the user has not linked a chat

        Raises:
            LinkStoreUnavailable: If the store lookup itself failed
        """
        try:
            return await self._link_repo.get(user_id)
        except Exception as e:
            logger.exception("Telegram link lookup failed for user %s", user_id)
            raise LinkStoreUnavailable(str(e)) from e

    async def resolve(self, user_id: str) -> str | None:
        """Return the linked chat id for a user, or None if not linked."""
        link = await self.get_link(user_id)
        return link.telegram_chat_id if link else None


link_resolver = LinkResolver()
