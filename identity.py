"""
Authentication gate.

Callers identify themselves with the `user-id` header; nothing is signed and
nothing expires. Routes depend on `get_current_user`, so a token scheme can
replace it here without touching them.
"""

import logging
from typing import Optional

from fastapi import Header

from database import get_document
from errors import Forbidden, InternalError, Unauthenticated

logger = logging.getLogger(__name__)

USER_ID_HEADER = "user-id"


def get_current_user(header_user_id: Optional[str] = Header(None, alias=USER_ID_HEADER)) -> dict:
    # named apart from the {user_id} path params of the routes that depend on this
    if not header_user_id:
        raise Unauthenticated("User ID required")

    try:
        user = get_document("user", header_user_id)
    except Exception as e:
        logger.exception("Authentication error")
        raise InternalError("Server error", error=str(e))

    # unknown and malformed ids look the same to the caller
    if not user:
        raise Unauthenticated("User not found")
    return user


def require_owner(user: dict, owner_id: str) -> None:
    if str(user["_id"]) != owner_id:
        raise Forbidden("Access denied")
