"""
EventHub Backend — User Schemas
=================================

Profile responses and the profile update body. The password hash and the
token digests on the ORM model are never declared here, so they can never
be serialized.
"""

import re
import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import Field, field_validator

from eventhub.models.user import AuthProvider, UserRole
from eventhub.schemas.common import CamelModel

# Leading + optional, up to 15 digits, no leading zero
E164_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")


def validate_phone(value: Optional[str]) -> Optional[str]:
    """Empty phone numbers are treated as absent; anything else must be E.164."""
    if value is None or value == "":
        return None
    if not E164_PATTERN.match(value):
        raise ValueError("Phone must be a valid E.164 number")
    return value


def normalize_email(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


class UserOut(CamelModel):
    """The authenticated user's own view of their account."""
    id: uuid.UUID
    email: str
    full_name: str
    phone: Optional[str] = None
    profile_picture: Optional[str] = None
    role: UserRole
    location: Optional[str] = None
    preferences: Optional[Any] = None
    email_verified: bool
    auth_provider: AuthProvider
    created_at: datetime
    updated_at: datetime


class UserPublic(CamelModel):
    """What any signed-in user may see about another account."""
    id: uuid.UUID
    full_name: str
    profile_picture: Optional[str] = None
    role: UserRole
    location: Optional[str] = None
    created_at: datetime


class UserSummary(CamelModel):
    id: uuid.UUID
    full_name: str
    profile_picture: Optional[str] = None


class HostDetail(UserSummary):
    email: str


class ProfileUpdate(CamelModel):
    """
    Partial profile update. Only fields present in the request body are
    applied (the service uses `model_dump(exclude_unset=True)`), so sending
    `"phone": null` clears the phone while omitting it leaves it unchanged.
    """
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    phone: Optional[str] = None
    profile_picture: Optional[str] = None
    location: Optional[str] = Field(default=None, max_length=255)
    preferences: Optional[Any] = None

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone(v)


class UserData(CamelModel):
    user: UserOut


class PublicUserData(CamelModel):
    user: UserPublic
