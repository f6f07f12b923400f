"""
EventHub Backend — Admin Service
==================================

What:  Platform statistics and user management for the admin panel.
Who:   routes/admin.py; every caller has already passed the ADMIN role check.

Counts:
    `_count` blocks are filled with one grouped COUNT per relation for the
    whole page of users, never by loading the related rows.

Deletion:
    Removing a user cascades to their hosted events (and those events'
    children), registrations, reviews, vendor services and bids. An admin
    cannot delete their own account from here.
"""

import logging
import uuid
from typing import Dict, Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.database import LIKE_ESCAPE, contains_pattern
from eventhub.exceptions import ConflictError, NotFoundError, ValidationError
from eventhub.models.event import Event, EventAttendee
from eventhub.models.user import AuthProvider, User, UserRole
from eventhub.models.vendor import ServiceBid, VendorService
from eventhub.schemas.admin import (
    AdminStatsData,
    AdminUserCreate,
    AdminUserDetail,
    AdminUserListData,
    AdminUserListItem,
    AdminUserUpdate,
    RecentUser,
    UserActivityCount,
    UserDetailCount,
)
from eventhub.schemas.common import Pagination
from eventhub.security import hash_password

logger = logging.getLogger(__name__)

RECENT_USERS = 5


def _parse_role(value: Optional[str]) -> Optional[UserRole]:
    if not value or value.lower() == "all":
        return None
    try:
        return UserRole(value.upper())
    except ValueError:
        return None


class AdminService:

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    async def _count_by(db: AsyncSession, column, ids: Sequence[uuid.UUID]) -> Dict[uuid.UUID, int]:
        if not ids:
            return {}
        result = await db.execute(
            select(column, func.count()).where(column.in_(ids)).group_by(column)
        )
        return {key: count for key, count in result.all()}

    async def _get_user(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="User", resource_id=str(user_id))
        return user

    async def _email_owner(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    # ── Stats ─────────────────────────────────────────────────────────────

    async def stats(self, db: AsyncSession) -> AdminStatsData:
        role_counts = dict(
            (await db.execute(select(User.role, func.count(User.id)).group_by(User.role))).all()
        )
        total_events = await db.scalar(select(func.count(Event.id))) or 0
        recent = (
            await db.execute(select(User).order_by(User.created_at.desc()).limit(RECENT_USERS))
        ).scalars().all()

        return AdminStatsData(
            total_users=role_counts.get(UserRole.USER, 0),
            total_hosts=role_counts.get(UserRole.HOST, 0),
            total_vendors=role_counts.get(UserRole.VENDOR, 0),
            total_events=total_events,
            recent_users=[RecentUser.model_validate(u) for u in recent],
        )

    # ── Users ─────────────────────────────────────────────────────────────

    async def list_users(
        self,
        db: AsyncSession,
        *,
        role: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> AdminUserListData:
        conditions = []
        parsed_role = _parse_role(role)
        if parsed_role is not None:
            conditions.append(User.role == parsed_role)
        if search:
            pattern = contains_pattern(search)
            conditions.append(
                or_(
                    User.full_name.ilike(pattern, escape=LIKE_ESCAPE),
                    User.email.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )

        total = await db.scalar(select(func.count(User.id)).where(*conditions)) or 0
        users = (
            await db.execute(
                select(User)
                .where(*conditions)
                .order_by(User.created_at.desc(), User.id.asc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
        ).scalars().all()

        ids = [u.id for u in users]
        hosted = await self._count_by(db, Event.host_id, ids)
        attended = await self._count_by(db, EventAttendee.user_id, ids)

        return AdminUserListData(
            users=[
                AdminUserListItem.model_validate(u).model_copy(
                    update={
                        "count": UserActivityCount(
                            hosted_events=hosted.get(u.id, 0),
                            attended_events=attended.get(u.id, 0),
                        )
                    }
                )
                for u in users
            ],
            pagination=Pagination.build(total=total, page=page, limit=limit),
        )

    async def get_user_detail(self, db: AsyncSession, user_id: uuid.UUID) -> AdminUserDetail:
        user = await self._get_user(db, user_id)
        ids = [user.id]

        counts = UserDetailCount(
            hosted_events=(await self._count_by(db, Event.host_id, ids)).get(user.id, 0),
            attended_events=(await self._count_by(db, EventAttendee.user_id, ids)).get(user.id, 0),
            vendor_services=(await self._count_by(db, VendorService.vendor_id, ids)).get(user.id, 0),
            service_bids=(await self._count_by(db, ServiceBid.vendor_id, ids)).get(user.id, 0),
        )
        return AdminUserDetail.model_validate(user).model_copy(update={"count": counts})

    async def create_user(self, db: AsyncSession, payload: AdminUserCreate) -> User:
        """Admin-created accounts skip email verification."""
        if await self._email_owner(db, payload.email):
            raise ConflictError("Email already registered")

        user = User(
            email=payload.email,
            password_hash=await hash_password(payload.password),
            full_name=payload.full_name.strip(),
            phone=payload.phone,
            role=payload.role,
            email_verified=True,
            auth_provider=AuthProvider.EMAIL,
        )
        db.add(user)
        await db.flush()

        logger.info("Admin created user %s with role %s", user.id, user.role.value)
        return user

    async def update_user(self, db: AsyncSession, user_id: uuid.UUID, payload: AdminUserUpdate) -> User:
        user = await self._get_user(db, user_id)
        changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None or k == "phone"}

        if "email" in changes and changes["email"] != user.email:
            owner = await self._email_owner(db, changes["email"])
            if owner is not None and owner.id != user.id:
                raise ConflictError("Email already in use")

        for field, value in changes.items():
            setattr(user, field, value)
        await db.flush()

        logger.info("Admin updated user %s: %s", user.id, ", ".join(sorted(changes)) or "no changes")
        return user

    async def delete_user(self, db: AsyncSession, acting_admin: User, user_id: uuid.UUID) -> None:
        user = await self._get_user(db, user_id)
        if user.id == acting_admin.id:
            raise ValidationError("You cannot delete your own account", field="id")

        await db.delete(user)
        await db.flush()
        logger.info("Admin %s deleted user %s", acting_admin.id, user_id)


# ── Singleton Instance ────────────────────────────────────────────────────
admin_service = AdminService()
