"""
EventHub Backend — Admin Schemas
==================================

User management bodies and the user shapes of the admin API. Unlike
/api/auth/register, an admin may assign any role, including ADMIN.
"""

import uuid
from datetime import datetime
from typing import Any, List, Optional

from pydantic import EmailStr, Field, field_validator

from eventhub.models.user import UserRole
from eventhub.schemas.auth import PASSWORD_MAX, PASSWORD_MIN
from eventhub.schemas.common import CamelModel, Pagination
from eventhub.schemas.user import normalize_email, validate_phone


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class AdminUserCreate(CamelModel):
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN, max_length=PASSWORD_MAX)
    full_name: str = Field(min_length=1, max_length=255)
    phone: Optional[str] = None
    role: UserRole = UserRole.USER

    @field_validator("email", mode="before")
    @classmethod
    def normalize(cls, v):
        return normalize_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone(v)


class AdminUserUpdate(CamelModel):
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    phone: Optional[str] = None
    role: Optional[UserRole] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize(cls, v):
        return normalize_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone(v)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class UserActivityCount(CamelModel):
    hosted_events: int = 0
    attended_events: int = 0


class UserDetailCount(UserActivityCount):
    vendor_services: int = 0
    service_bids: int = 0


class AdminUserOut(CamelModel):
    id: uuid.UUID
    email: str
    full_name: str
    phone: Optional[str] = None
    role: UserRole
    email_verified: bool
    created_at: datetime
    updated_at: datetime


class AdminUserListItem(AdminUserOut):
    count: UserActivityCount = Field(default_factory=UserActivityCount, alias="_count")


class AdminUserDetail(AdminUserOut):
    location: Optional[str] = None
    preferences: Optional[Any] = None
    count: UserDetailCount = Field(default_factory=UserDetailCount, alias="_count")


class RecentUser(CamelModel):
    id: uuid.UUID
    full_name: str
    email: str
    role: UserRole
    created_at: datetime


class AdminStatsData(CamelModel):
    total_users: int
    total_hosts: int
    total_vendors: int
    total_events: int
    recent_users: List[RecentUser]


class AdminUserListData(CamelModel):
    users: List[AdminUserListItem]
    pagination: Pagination


class AdminUserData(CamelModel):
    user: AdminUserOut


class AdminUserDetailData(CamelModel):
    user: AdminUserDetail
