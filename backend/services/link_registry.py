"""
In-memory registry of short-lived codes that pair a web session with a
Telegram chat.

The web app asks for a code, the user sends it to the bot, and the bot's
update handler redeems it against the chat the message came from. Codes live
only in process memory; pending codes are lost on restart.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from backend import config
from backend.models.telegram_link import InitiateResult, RedemptionResult
from backend.repos.telegram_link_repo import TelegramLinkRepo
from backend.services.link_resolver import LinkResolver
from backend.services.telegram_bot import TelegramBot, telegram_bot

logger = logging.getLogger(__name__)


def _generate_code() -> str:
    """Generate a 6-char uppercase hex code (e.g. 'A3B9C4')."""
    return secrets.token_hex(3).upper()


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class _PendingCode:
    owner_session_id: str
    created_at: datetime
    # Set while a redemption is writing the link; other redeemers must not match it
    claimed: bool = False


class LinkCodeRegistry:
    """
    Issues and redeems linking codes.

    Every read and write of the code map happens under ``_lock`` and the lock
    is never held across an await. Redemption claims the entry, writes the
    link, then removes the entry, so a code can link at most one chat and a
    failed write leaves it usable.
    """

    def __init__(
        self,
        link_repo: TelegramLinkRepo | None = None,
        bot: TelegramBot | None = None,
        ttl_seconds: int | None = None,
        persist_timeout_seconds: float | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._link_repo = link_repo or TelegramLinkRepo()
        self._resolver = LinkResolver(self._link_repo)
        self._bot = bot or telegram_bot
        self._ttl = timedelta(
            seconds=ttl_seconds if ttl_seconds is not None else config.settings.LINK_CODE_TTL_SECONDS
        )
        self._persist_timeout = (
            persist_timeout_seconds
            if persist_timeout_seconds is not None
            else config.settings.LINK_PERSIST_TIMEOUT_SECONDS
        )
        self._clock = clock
        self._codes: dict[str, _PendingCode] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._codes)

    def __contains__(self, code: str) -> bool:
        """True if ``code`` is live: registered, unexpired and not mid-redemption."""
        now = self._clock()
        with self._lock:
            entry = self._codes.get(code)
            return entry is not None and not entry.claimed and not self._expired(entry, now)

    def _expired(self, entry: _PendingCode, now: datetime) -> bool:
        return now - entry.created_at >= self._ttl

    async def initiate(self, owner_session_id: str) -> InitiateResult:
        """
        Start linking for a web user.

        Already-linked users get ``linked=True`` and no code. Otherwise a new
        code is registered; earlier pending codes for the same user stay valid.

        Args:
            owner_session_id: Session identity of the requesting user

        Returns:
            InitiateResult with the code and user-facing instructions

        Raises:
            LinkStoreUnavailable: If the existing-link check could not run
        """
        if await self._resolver.resolve(owner_session_id):
            return InitiateResult(linked=True)

        code = _generate_code()
        with self._lock:
            # A collision with a live code overwrites it
            self._codes[code] = _PendingCode(owner_session_id=owner_session_id, created_at=self._clock())

        username = await self._bot.get_username()
        bot_name = f"@{username}" if username else "your Telegram bot"
        minutes = int(self._ttl.total_seconds() // 60)
        instructions = f'Find {bot_name}, start a chat, and send the code "{code}" within {minutes} minutes.'

        logger.info("Issued link code for user %s", owner_session_id)
        return InitiateResult(linked=False, code=code, instructions=instructions)

    def _claim(self, code: str) -> _PendingCode | None:
        now = self._clock()
        with self._lock:
            entry = self._codes.get(code)
            if entry is None or entry.claimed:
                return None
            if self._expired(entry, now):
                del self._codes[code]
                return None
            entry.claimed = True
            return entry

    def _release(self, code: str, entry: _PendingCode) -> None:
        with self._lock:
            if self._codes.get(code) is entry:
                entry.claimed = False

    def _finalize(self, code: str, entry: _PendingCode) -> None:
        with self._lock:
            if self._codes.get(code) is entry:
                del self._codes[code]

    async def redeem(
        self,
        received_text: str,
        incoming_chat_id: str | int,
        username: str | None = None,
    ) -> RedemptionResult:
        """
        Redeem a code sent to the bot from a Telegram chat.

        Args:
            received_text: Raw message text; trimmed and uppercased before lookup
            incoming_chat_id: Chat the message came from
            username: Sender's Telegram username, stored with the link

        Returns:
            SUCCESS if the account was linked and the code consumed,
            UNRECOGNIZED if no live code matched,
            PERSISTENCE_FAILED if the link write failed (the code stays live)
        """
        code = received_text.strip().upper()
        entry = self._claim(code)
        if entry is None:
            return RedemptionResult.UNRECOGNIZED

        chat_id = str(incoming_chat_id)
        try:
            await asyncio.wait_for(
                self._link_repo.upsert(entry.owner_session_id, chat_id, username),
                timeout=self._persist_timeout,
            )
        except asyncio.CancelledError:
            self._release(code, entry)
            raise
        except Exception:
            logger.exception("Failed to save Telegram link for user %s", entry.owner_session_id)
            self._release(code, entry)
            return RedemptionResult.PERSISTENCE_FAILED

        self._finalize(code, entry)
        logger.info("Linked user %s to Telegram chat %s", entry.owner_session_id, chat_id)
        return RedemptionResult.SUCCESS

    def sweep(self) -> int:
        """
        Drop expired codes. Safe to run from a background task.

        Codes in the middle of a redemption are left for that redemption to finish.

        Returns:
            Number of codes removed
        """
        now = self._clock()
        with self._lock:
            expired = [
                code for code, entry in self._codes.items() if not entry.claimed and self._expired(entry, now)
            ]
            for code in expired:
                del self._codes[code]
        return len(expired)


link_registry = LinkCodeRegistry()
