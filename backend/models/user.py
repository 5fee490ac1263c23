"""User model for authenticated web sessions."""

from __future__ import annotations

from pydantic import BaseModel


class User(BaseModel):
    """
    The authenticated web-app user, built from verified Supabase JWT claims.

    Users live in Supabase's auth schema; this backend never writes them.
    """

    id: str
    email: str | None = None
    role: str | None = None
