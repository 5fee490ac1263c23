"""Telegram Login Widget signature checks."""

from __future__ import annotations

import hashlib
import hmac
import time
from collections.abc import Mapping


def build_check_string(payload: Mapping[str, str]) -> str:
    """
    Build the data-check-string Telegram signs for the login widget.

    Every field except ``hash`` rendered as ``key=value``, sorted on the whole
    rendered string and joined with newlines.
    """
    return "\n".join(sorted(f"{key}={value}" for key, value in payload.items() if key != "hash"))


def verify_login_widget(payload: Mapping[str, str], bot_token: str) -> bool:
    """
    Check that a login widget callback was signed by our bot.

    The signing key is the raw SHA-256 digest of the bot token and the
    signature is HMAC-SHA256 of the check string, as lowercase hex.

    Args:
        payload: Query fields from the widget callback, including ``hash``
        bot_token: The bot's API token

    Returns:
        True only if ``payload["hash"]`` matches. An empty token or a missing
        hash always returns False, as does a non-ASCII hash.
    """
    received = payload.get("hash")
    if not bot_token or not received or not received.isascii():
        return False

    signing_key = hashlib.sha256(bot_token.encode("utf-8")).digest()
    calculated = hmac.new(
        signing_key,
        build_check_string(payload).encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return hmac.compare_digest(calculated, received)


def is_fresh(payload: Mapping[str, str], max_age_seconds: int, now: float | None = None) -> bool:
    """Return True if ``auth_date`` is present and no older than max_age_seconds."""
    try:
        auth_date = int(payload["auth_date"])
    except (KeyError, ValueError):
        return False
    current = time.time() if now is None else now
    return current - auth_date <= max_age_seconds
