"""
Caller identity resolution.

The upstream gateway authenticates users and forwards their id in the
X-User-ID header. This module loads that user and enforces role gates.
"""
from typing import Callable, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from watukobu.core.exceptions import AuthenticationError, PermissionDeniedError
from watukobu.core.logging import bind_user, get_logger
from watukobu.database import get_db
from watukobu.models.database import User
from watukobu.models.enums import Role

logger = get_logger(__name__)


async def get_current_user(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-ID"),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the calling user; 401 when the header is missing or the user is unknown or inactive."""
    if not x_user_id:
        raise AuthenticationError("Missing X-User-ID header")

    user = db.get(User, x_user_id)
    if user is None or not user.is_active:
        logger.info("Rejected unknown or inactive user", user_id=x_user_id)
        raise AuthenticationError("Unknown or inactive user")

    bind_user(user.id, user.role)
    return user


def require_roles(*roles: Role) -> Callable:
    """Dependency factory allowing only the given roles through."""
    allowed = {role.value for role in roles}

    async def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise PermissionDeniedError(
                f"Role {user.role} is not allowed to perform this action", role=user.role
            )
        return user

    return checker


require_admin = require_roles(Role.ADMIN)
require_reviewer = require_roles(Role.ADMIN, Role.MANAGER)
require_management = require_roles(Role.ADMIN, Role.MANAGER)
require_collector = require_roles(Role.COLLECTOR)
