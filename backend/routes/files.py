"""File routes: relay uploads to Telegram and list the gallery."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from backend import config
from backend.auth import get_current_user
from backend.models.file import FileResponse, GalleryResponse, UploadResponse
from backend.models.user import User
from backend.repos.file_repo import FileRepo
from backend.services.link_resolver import LinkStoreUnavailable, link_resolver
from backend.services.telegram_bot import TelegramAPIError, telegram_bot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["files"])

file_repo = FileRepo()


async def _resolve_chat_id(user_id: str) -> str | None:
    try:
        return await link_resolver.resolve(user_id)
    except LinkStoreUnavailable as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Link store unavailable. Try again shortly.",
        ) from e


@router.post("/upload", status_code=201)
async def upload_file(
    file: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
) -> UploadResponse:
    """
    Store a file by sending it to the user's linked Telegram chat.

    The bytes go to Telegram as a document; only Telegram's file_id and the
    file's metadata are kept in the database.
    """
    if file is None or not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file provided.",
        )

    chat_id = await _resolve_chat_id(user.id)
    if not chat_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Telegram account not linked. Please link your account first.",
        )

    limit = config.settings.MAX_UPLOAD_BYTES
    too_large = HTTPException(
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        detail="File is larger than Telegram accepts from bots.",
    )
    if file.size is not None and file.size > limit:
        raise too_large

    # Never pull more than limit + 1 bytes into memory
    content = await file.read(limit + 1)
    if len(content) > limit:
        raise too_large

    try:
        telegram_file_id = await telegram_bot.send_document(
            chat_id,
            content,
            filename=file.filename,
            mime_type=file.content_type,
            caption=f"Uploaded from Web Gallery: {file.filename}",
        )
    except TelegramAPIError as e:
        logger.error("Telegram upload failed for user %s: %s", user.id, e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Upload failed: {e.description}",
        ) from e

    try:
        await file_repo.create(
            user.id,
            telegram_file_id=telegram_file_id,
            original_filename=file.filename,
            mime_type=file.content_type,
            size_bytes=len(content),
        )
    except Exception as e:
        # The file is already in Telegram but the app cannot list it
        logger.exception("Failed to save file metadata for user %s", user.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="File uploaded but failed to save metadata to the database.",
        ) from e

    return UploadResponse(
        message="File uploaded and metadata saved successfully.",
        filename=file.filename,
        telegram_id=telegram_file_id,
    )


@router.get("/gallery", status_code=200)
async def gallery(user: User = Depends(get_current_user)) -> GalleryResponse:
    """List the current user's files, newest first, with link status."""
    try:
        files = await file_repo.list_for_user(user.id)
    except Exception as e:
        logger.exception("Failed to list files for user %s", user.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve files from database.",
        ) from e

    chat_id = await _resolve_chat_id(user.id)
    return GalleryResponse(
        files=[FileResponse.from_model(f) for f in files],
        is_linked=chat_id is not None,
    )
