"""Caller identity, as asserted by the upstream identity proxy.

The proxy authenticates the session and forwards the user as headers:
``X-User-Id``, ``X-User-Email`` and ``X-User-Role`` (``admin`` for staff).
"""

from dataclasses import dataclass

from fastapi import Depends, Header

from shared.errors import ForbiddenError, UnauthorizedError


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: str | None = None
    is_admin: bool = False


def get_current_user(
    x_user_id: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> CurrentUser | None:
    if not x_user_id:
        return None
    return CurrentUser(
        id=x_user_id,
        email=x_user_email,
        is_admin=(x_user_role or "").strip().lower() == "admin",
    )


def require_auth(user: CurrentUser | None = Depends(get_current_user)) -> CurrentUser:
    if user is None:
        raise UnauthorizedError("Authentication required")
    return user


def require_admin(user: CurrentUser = Depends(require_auth)) -> CurrentUser:
    if not user.is_admin:
        raise ForbiddenError("Admin access required")
    return user
