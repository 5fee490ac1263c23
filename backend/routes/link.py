"""Account linking routes: issue linking codes and report link status."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from backend.auth import get_current_user
from backend.models.telegram_link import LinkInitiateResponse, LinkStatusResponse
from backend.models.user import User
from backend.services.link_registry import link_registry
from backend.services.link_resolver import LinkStoreUnavailable, link_resolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/link", tags=["link"])


def _store_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Link store unavailable. Try again shortly.",
    )


@router.post("/initiate", status_code=200)
async def initiate_link(user: User = Depends(get_current_user)) -> LinkInitiateResponse:
    """
    Start linking the current user to a Telegram chat.

    Returns a 6-char code the user sends to the bot within the code TTL.
    Already-linked users get ``linked: true`` and no code.
    """
    try:
        result = await link_registry.initiate(user.id)
    except LinkStoreUnavailable as e:
        raise _store_unavailable() from e
    return LinkInitiateResponse.from_result(result)


@router.get("/status", status_code=200)
async def link_status(user: User = Depends(get_current_user)) -> LinkStatusResponse:
    """Report whether the current user has a linked Telegram chat."""
    try:
        chat_id = await link_resolver.resolve(user.id)
    except LinkStoreUnavailable as e:
        raise _store_unavailable() from e
    return LinkStatusResponse(linked=chat_id is not None, telegram_chat_id=chat_id)
