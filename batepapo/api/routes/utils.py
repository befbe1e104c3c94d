# batepapo/api/routes/utils.py

from __future__ import annotations

from typing import Optional

from fastapi import Header

from batepapo.services.sanitizer import strip_markup


async def requester_name(user: Optional[str] = Header(default=None)) -> str:
    """
    Dependency resolving the `user` header into a participant name.

    The header goes through the same sanitizer as body fields before any
    lookup. A missing header resolves to "", which no participant can own,
    so presence and ownership checks reject it downstream.
    """
    return strip_markup(user) or ""
