"""Shared API dependencies."""
from typing import Optional

from fastapi import Header, HTTPException


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """
    Resolve the calling user.

    Authentication happens upstream; the gateway forwards the authenticated
    user ID in the ``X-User-Id`` header.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing user identity")
    return x_user_id.strip()
