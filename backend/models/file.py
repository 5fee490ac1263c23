"""File metadata models for uploads relayed to Telegram."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class StoredFile(BaseModel):
    """Core file model: maps 1:1 to files table."""

    id: UUID
    user_id: str
    telegram_file_id: str
    original_filename: str
    mime_type: str | None = None
    size_bytes: int | None = None
    uploaded_at: datetime


class FileResponse(BaseModel):
    """What the gallery returns per file. No owner id."""

    id: UUID
    telegram_file_id: str
    original_filename: str
    mime_type: str | None
    size_bytes: int | None
    uploaded_at: datetime

    @classmethod
    def from_model(cls, stored: StoredFile) -> FileResponse:
        """Convert internal StoredFile model to public API response."""
        return cls(
            id=stored.id,
            telegram_file_id=stored.telegram_file_id,
            original_filename=stored.original_filename,
            mime_type=stored.mime_type,
            size_bytes=stored.size_bytes,
            uploaded_at=stored.uploaded_at,
        )


class GalleryResponse(BaseModel):
    files: list[FileResponse]
    is_linked: bool


class UploadResponse(BaseModel):
    message: str
    filename: str
    telegram_id: str
