"""
EventHub Backend — Authentication Schemas
===========================================

Request bodies for /api/auth and the token payloads it returns.

Password length:
    min 8 matches the SPA's signup form; max 72 because bcrypt only looks at
    the first 72 bytes and bcrypt>=4.1 refuses longer input outright.
"""

from typing import Literal, Optional

from pydantic import EmailStr, Field, field_validator

from eventhub.models.user import UserRole
from eventhub.schemas.common import CamelModel
from eventhub.schemas.user import UserOut, normalize_email, validate_phone

PASSWORD_MIN = 8
PASSWORD_MAX = 72


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN, max_length=PASSWORD_MAX)
    full_name: str = Field(min_length=1, max_length=255)
    phone: Optional[str] = None
    role: Optional[UserRole] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize(cls, v):
        return normalize_email(v)

    @field_validator("full_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Full name is required")
        return v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone(v)

    @field_validator("role")
    @classmethod
    def no_self_admin(cls, v: Optional[UserRole]) -> Optional[UserRole]:
        # ADMIN is only ever granted by another admin
        if v == UserRole.ADMIN:
            raise ValueError("Role must be one of USER, HOST, VENDOR")
        return v


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=PASSWORD_MAX)

    @field_validator("email", mode="before")
    @classmethod
    def normalize(cls, v):
        return normalize_email(v)


class RefreshTokenRequest(CamelModel):
    refresh_token: str = Field(min_length=1)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def normalize(cls, v):
        return normalize_email(v)


class ResetPasswordRequest(CamelModel):
    password: str = Field(min_length=PASSWORD_MIN, max_length=PASSWORD_MAX)


class SocialAuthRequest(CamelModel):
    """
    Sign-in through an identity provider the SPA has already completed.

    The provider's own token is not verified here; the SPA is trusted to
    have done the OAuth dance.
    """
    provider: Literal["google", "facebook", "apple"]
    email: EmailStr
    full_name: str = Field(min_length=1, max_length=255)
    profile_picture: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize(cls, v):
        return normalize_email(v)


class TokenPair(CamelModel):
    token: str
    refresh_token: str


class AuthData(TokenPair):
    user: UserOut
