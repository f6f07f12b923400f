"""
EventHub Backend — Authentication Dependencies
================================================

What:  FastAPI dependencies that resolve the caller from a Bearer token and
       enforce role-based access.

Usage:
    @router.get("/me")
    async def me(user: User = Depends(get_current_user)): ...

    @router.post("/", dependencies=[Depends(require_roles(UserRole.HOST, UserRole.ADMIN))])
    async def create(...): ...

Failure modes:
    no / non-Bearer Authorization header → 401 "No token provided"
    bad signature, malformed, expired    → 401 "Invalid or expired token"
    token for a user that no longer exists → 401 "User not found"
    authenticated but wrong role         → 403 "Unauthorized access"
"""

import logging
import uuid
from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.database import get_db_session
from eventhub.exceptions import AuthenticationError, AuthorizationError
from eventhub.models.user import User, UserRole
from eventhub.security import verify_access_token

logger = logging.getLogger(__name__)

# auto_error=False: a missing header reaches our handler and gets our envelope
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token provided")

    payload = verify_access_token(credentials.credentials)

    try:
        user_id = uuid.UUID(str(payload["userId"]))
    except ValueError:
        logger.warning("Access token carries a malformed userId")
        raise AuthenticationError()

    user = await db.get(User, user_id)
    if user is None:
        raise AuthenticationError("User not found")
    return user


def require_roles(*roles: UserRole) -> Callable:
    """Build a dependency that admits only users holding one of `roles`."""

    async def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            logger.info(
                "User %s with role %s denied (requires %s)",
                user.id,
                user.role.value,
                ", ".join(r.value for r in roles),
            )
            raise AuthorizationError()
        return user

    return dependency
