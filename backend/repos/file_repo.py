"""Repository for uploaded file metadata."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

import asyncpg

from backend.db import user_conn
from backend.models.file import StoredFile


def _row_to_stored_file(row: asyncpg.Record) -> StoredFile:
    """Convert a database row to a StoredFile model."""
    return StoredFile(
        id=row["id"],
        user_id=row["user_id"],
        telegram_file_id=row["telegram_file_id"],
        original_filename=row["original_filename"],
        mime_type=row["mime_type"],
        size_bytes=row["size_bytes"],
        uploaded_at=row["uploaded_at"],
    )


class FileRepo:
    """All files table operations. RLS scopes every query to its owner."""

    async def create(
        self,
        user_id: str,
        telegram_file_id: str,
        original_filename: str,
        mime_type: str | None,
        size_bytes: int | None = None,
    ) -> StoredFile:
        """
        Record a file that has already been stored in Telegram.

        Args:
            user_id: Owner's session identity
            telegram_file_id: Persistent file_id returned by sendDocument
            original_filename: Name the browser uploaded the file with
            mime_type: Content type reported by the browser
            size_bytes: Size of the relayed payload

        Returns:
            Newly created StoredFile
        """
        async with user_conn(user_id) as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO files (
                    id, user_id, telegram_file_id, original_filename,
                    mime_type, size_bytes, uploaded_at
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7)
                RETURNING *
                """,
                uuid4(),
                user_id,
                telegram_file_id,
                original_filename,
                mime_type,
                size_bytes,
                datetime.now(UTC),
            )
            return _row_to_stored_file(row)

    async def list_for_user(self, user_id: str) -> list[StoredFile]:
        """
        List all files for a user.

        Args:
            user_id: Owner's session identity

        Returns:
            List of StoredFile objects ordered by uploaded_at DESC
        """
        async with user_conn(user_id) as conn:
            rows = await conn.fetch("SELECT * FROM files ORDER BY uploaded_at DESC")
            return [_row_to_stored_file(row) for row in rows]
