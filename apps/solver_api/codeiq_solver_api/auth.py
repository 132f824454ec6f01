from __future__ import annotations

import re

from fastapi import HTTPException, Request


_USER_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,63}$")


def get_user_id(request: Request) -> str:
    """Return the current user id from the `X-User-Id` header."""

    user_id = request.headers.get("X-User-Id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id")

    if not _USER_RE.match(user_id):
        raise HTTPException(status_code=400, detail="Invalid user_id")

    return user_id
