"""Repository for web account ↔ Telegram chat links."""

from __future__ import annotations

from datetime import UTC, datetime

import asyncpg

from backend.db import user_conn
from backend.models.telegram_link import TelegramLink


def _row_to_telegram_link(row: asyncpg.Record) -> TelegramLink:
    """Convert a database row to a TelegramLink model."""
    return TelegramLink(
        user_id=row["user_id"],
        telegram_chat_id=row["telegram_chat_id"],
        telegram_username=row["telegram_username"],
        updated_at=row["updated_at"],
    )


class TelegramLinkRepo:
    """All user_telegram_settings database operations."""

    async def upsert(
        self,
        user_id: str,
        telegram_chat_id: str,
        telegram_username: str | None = None,
    ) -> TelegramLink:
        """
        Link a user to a Telegram chat, replacing any existing link.

        Last writer wins: the row is keyed by user_id.

        Args:
            user_id: Session identity
            telegram_chat_id: Telegram chat id in string form
            telegram_username: Telegram @username without the @, if known

        Returns:
            The stored TelegramLink
        """
        now = datetime.now(UTC)
        async with user_conn(user_id) as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO user_telegram_settings (
                    user_id, telegram_chat_id, telegram_username, created_at, updated_at
                )
                VALUES ($1, $2, $3, $4, $4)
                ON CONFLICT (user_id) DO UPDATE
                SET telegram_chat_id = EXCLUDED.telegram_chat_id,
                    telegram_username = EXCLUDED.telegram_username,
                    updated_at = EXCLUDED.updated_at
                RETURNING *
                """,
                user_id,
                telegram_chat_id,
                telegram_username,
                now,
            )
            return _row_to_telegram_link(row)

    async def get(self, user_id: str) -> TelegramLink | None:
        """
        Get the Telegram link for a user.

        Args:
            user_id: Session identity

        Returns:
            TelegramLink if the user is linked, None otherwise
        """
        async with user_conn(user_id) as conn:
            row = await conn.fetchrow(
                "SELECT * FROM user_telegram_settings WHERE user_id = $1",
                user_id,
            )
            return _row_to_telegram_link(row) if row else None
