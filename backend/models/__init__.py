"""
Pydantic models for TeleGallery.

All data shapes defined here. No imports from db, repos, or routes.
"""

from backend.models.file import FileResponse, GalleryResponse, StoredFile, UploadResponse
from backend.models.telegram_link import (
    InitiateResult,
    LinkInitiateResponse,
    LinkStatusResponse,
    RedemptionResult,
    TelegramLink,
)
from backend.models.user import User

__all__ = [
    # User models
    "User",
    # Telegram link models
    "TelegramLink",
    "RedemptionResult",
    "InitiateResult",
    "LinkInitiateResponse",
    "LinkStatusResponse",
    # File models
    "StoredFile",
    "FileResponse",
    "GalleryResponse",
    "UploadResponse",
]
