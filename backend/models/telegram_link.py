"""Models for linking a web account to a Telegram chat."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class TelegramLink(BaseModel):
    """Core account link model: maps 1:1 to user_telegram_settings table."""

    user_id: str
    telegram_chat_id: str
    telegram_username: str | None = None
    updated_at: datetime | None = None


class RedemptionResult(str, Enum):
    """Outcome of a code sent to the bot in chat."""

    SUCCESS = "success"
    UNRECOGNIZED = "unrecognized"
    PERSISTENCE_FAILED = "persistence_failed"


@dataclass(frozen=True)
class InitiateResult:
    """What LinkCodeRegistry.initiate hands back to the route."""

    linked: bool
    code: str | None = None
    instructions: str | None = None


class LinkInitiateResponse(BaseModel):
    """Public response for POST /api/link/initiate."""

    message: str
    linked: bool
    code: str | None = None
    instructions: str | None = None

    @classmethod
    def from_result(cls, result: InitiateResult) -> LinkInitiateResponse:
        if result.linked:
            return cls(message="Telegram is already linked.", linked=True)
        return cls(
            message=f"Please send the following code to your Telegram Bot: **{result.code}**",
            linked=False,
            code=result.code,
            instructions=result.instructions,
        )


class LinkStatusResponse(BaseModel):
    """Public response for GET /api/link/status."""

    linked: bool
    telegram_chat_id: str | None = None
