"""
Request dependencies
"""
from typing import Optional

from fastapi import Header, HTTPException

from exambank.schemas.common import Caller


async def get_current_user(
    x_user_id: Optional[str] = Header(None),
    x_user_roles: Optional[str] = Header(None),
) -> Caller:
    """
    Caller identity resolved by the upstream gateway

    X-User-Id carries the user id, X-User-Roles a comma separated role list.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")

    roles = [role.strip() for role in (x_user_roles or "").split(",") if role.strip()]
    return Caller(id=x_user_id, roles=roles)
