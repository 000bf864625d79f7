"""
Session injection.

Authentication happens upstream (the gateway in front of this service);
it forwards the authenticated user id in X-User-Id.  Handlers receive a
CurrentSession through Depends() and pass its user_id explicitly into the
repositories, so nothing below the router looks up "the current user".
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Header, HTTPException


@dataclass(frozen=True)
class CurrentSession:
    user_id: str


async def get_current_session(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> CurrentSession:
    """Dependency: the authenticated user for this request, or 401."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return CurrentSession(user_id=user_id)
