from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from .errors import AuthenticationError, NoAuthorizationError


@dataclass(frozen=True)
class CurrentUser:
    id: int
    is_blocked: bool = False
    is_removed: bool = False
    is_moderator: bool = False

    @classmethod
    def from_user(cls, user) -> "CurrentUser":
        return cls(
            id=user.id,
            is_blocked=user.is_blocked,
            is_removed=user.is_removed,
            is_moderator=user.is_moderator,
        )


@dataclass(frozen=True)
class AuthContext:
    """Who is calling. Passed explicitly into every mutating operation."""
    is_auth: bool
    current_user: Optional[CurrentUser] = None

    @classmethod
    def anonymous(cls) -> "AuthContext":
        return cls(is_auth=False)

    @classmethod
    def for_user(cls, user) -> "AuthContext":
        return cls(is_auth=True, current_user=CurrentUser.from_user(user))


def require_active(caller: AuthContext) -> CurrentUser:
    """Authenticated and neither blocked nor removed; checked before any DB access."""
    if not caller.is_auth or caller.current_user is None:
        raise AuthenticationError()
    user = caller.current_user
    if user.is_blocked or user.is_removed:
        raise NoAuthorizationError()
    return user


def can_manage(user: CurrentUser, created_by_id: Optional[int]) -> bool:
    return user.is_moderator or (created_by_id is not None and created_by_id == user.id)


def require_manager(user: CurrentUser, created_by_id: Optional[int]) -> None:
    if not can_manage(user, created_by_id):
        raise NoAuthorizationError()
