"""
Repository layer for TeleGallery.

All SQL lives here and ONLY here. No database access outside this module.
"""

from backend.repos.file_repo import FileRepo
from backend.repos.telegram_link_repo import TelegramLinkRepo

__all__ = [
    "TelegramLinkRepo",
    "FileRepo",
]
