"""
EventHub Backend — User Profile Service
=========================================

Own-profile read/update and public profile lookup for /api/users.
"""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.exceptions import NotFoundError
from eventhub.models.user import User
from eventhub.schemas.user import ProfileUpdate

logger = logging.getLogger(__name__)


class UserService:

    async def get_user(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="User", resource_id=str(user_id))
        return user

    async def update_profile(self, db: AsyncSession, user: User, payload: ProfileUpdate) -> User:
        """
        Apply only the fields present in the request body.

        full_name cannot be cleared; an explicit null for it is ignored.
        """
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("full_name") is None:
            changes.pop("full_name", None)

        for field, value in changes.items():
            setattr(user, field, value)
        await db.flush()

        logger.info("User %s updated profile fields: %s", user.id, ", ".join(sorted(changes)) or "none")
        return user


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
