"""Telegram-facing routes: bot webhook and Login Widget callback."""

from __future__ import annotations

import hmac
import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from backend import config
from backend.auth import get_current_user
from backend.models.user import User
from backend.repos.telegram_link_repo import TelegramLinkRepo
from backend.services.telegram_updates import handle_update
from backend.utils.telegram_login import is_fresh, verify_login_widget

logger = logging.getLogger(__name__)

router = APIRouter(tags=["telegram"])

link_repo = TelegramLinkRepo()


def _verify_webhook_secret(received: str) -> bool:
    """Compare the X-Telegram-Bot-Api-Secret-Token header to our secret."""
    secret = config.settings.TELEGRAM_WEBHOOK_SECRET
    if not secret:
        # Skip verification if no secret is configured (dev/test only)
        return True
    return hmac.compare_digest(secret.encode("utf-8"), received.encode("utf-8", "surrogateescape"))


def _redirect(**params: str) -> RedirectResponse:
    return RedirectResponse(
        url=f"{config.settings.WEB_APP_URL}/?{urlencode(params)}",
        status_code=status.HTTP_303_SEE_OTHER,
    )


@router.post("/telegram/webhook", status_code=200)
async def telegram_webhook(request: Request) -> dict:
    """
    Receive updates pushed by Telegram when running in webhook mode.

    Unauthenticated, verified by the secret token header Telegram echoes
    back from setWebhook.
    """
    if not _verify_webhook_secret(request.headers.get("X-Telegram-Bot-Api-Secret-Token", "")):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook secret",
        )

    try:
        update = await request.json()
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON payload",
        ) from exc

    if not isinstance(update, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid update",
        )

    return await handle_update(update)


@router.get("/auth/telegram-callback")
async def telegram_login_callback(
    request: Request,
    user: User = Depends(get_current_user),
) -> RedirectResponse:
    """
    Finish a Telegram Login Widget sign-in and link the chat to the current user.

    The widget redirects here with id, first_name, username, auth_date, hash
    and friends as query parameters. Only a correctly signed, recent payload
    is trusted; on success the user is sent back to the web app.
    """
    payload = dict(request.query_params)

    if not verify_login_widget(payload, config.settings.TELEGRAM_BOT_TOKEN):
        logger.warning("Rejected Telegram login payload with invalid signature for user %s", user.id)
        return _redirect(telegram_error="invalid_signature")

    if not is_fresh(payload, config.settings.TELEGRAM_LOGIN_MAX_AGE_SECONDS):
        logger.warning("Rejected stale Telegram login payload for user %s", user.id)
        return _redirect(telegram_error="expired")

    chat_id = payload.get("id")
    if not chat_id:
        return _redirect(telegram_error="missing_id")

    try:
        await link_repo.upsert(user.id, chat_id, payload.get("username"))
    except Exception as e:
        logger.exception("Failed to save Telegram link for user %s", user.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save Telegram link.",
        ) from e

    logger.info("Linked user %s to Telegram chat %s via login widget", user.id, chat_id)
    return _redirect(telegram="linked")
