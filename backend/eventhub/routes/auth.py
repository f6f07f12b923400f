"""
EventHub Backend — Auth Routes
================================

What:  /api/auth endpoints: register, login, current user, token refresh,
       email verification, password reset and social sign-in.
Who:   The SPA's auth pages and its API client (which calls /refresh-token
       when an access token expires).

Emails are sent as FastAPI background tasks after the response, so SMTP
latency or failure never changes the HTTP outcome.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.database import get_db_session
from eventhub.dependencies import get_current_user
from eventhub.models.user import User
from eventhub.schemas.auth import (
    AuthData,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SocialAuthRequest,
    TokenPair,
)
from eventhub.schemas.common import Envelope, ErrorResponse
from eventhub.schemas.user import UserData, UserOut
from eventhub.services.auth_service import auth_service
from eventhub.services.email_service import email_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

FORGOT_PASSWORD_MESSAGE = "If an account exists with this email, you will receive a password reset link"


@router.post(
    "/register",
    status_code=201,
    response_model=Envelope[AuthData],
    response_model_exclude_none=True,
    responses={409: {"description": "Email already registered", "model": ErrorResponse}},
    summary="Create an account",
)
async def register(
    payload: RegisterRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[AuthData]:
    data, verification_token = await auth_service.register(db, payload)
    background_tasks.add_task(
        email_service.deliver_in_background,
        "verification",
        data.user.email,
        data.user.full_name,
        verification_token,
    )
    return Envelope(message="User registered successfully. Please verify your email.", data=data)


@router.post(
    "/login",
    response_model=Envelope[AuthData],
    response_model_exclude_none=True,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Log in with email and password",
)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db_session)) -> Envelope[AuthData]:
    data = await auth_service.login(db, payload)
    return Envelope(message="Login successful", data=data)


@router.get(
    "/me",
    response_model=Envelope[UserData],
    response_model_exclude_none=True,
    summary="Current user",
)
async def me(user: User = Depends(get_current_user)) -> Envelope[UserData]:
    return Envelope(data=UserData(user=UserOut.model_validate(user)))


@router.post(
    "/refresh-token",
    response_model=Envelope[TokenPair],
    response_model_exclude_none=True,
    summary="Exchange a refresh token for a new token pair",
)
async def refresh_token(
    payload: RefreshTokenRequest,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[TokenPair]:
    return Envelope(data=await auth_service.refresh(db, payload.refresh_token))


@router.get(
    "/verify-email/{token}",
    response_model=Envelope[None],
    response_model_exclude_none=True,
    summary="Confirm an email address",
)
async def verify_email(token: str, db: AsyncSession = Depends(get_db_session)) -> Envelope[None]:
    await auth_service.verify_email(db, token)
    return Envelope(message="Email verified successfully")


@router.post(
    "/forgot-password",
    response_model=Envelope[None],
    response_model_exclude_none=True,
    summary="Request a password reset link",
)
async def forgot_password(
    payload: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[None]:
    issued = await auth_service.forgot_password(db, payload.email)
    if issued is not None:
        user, reset_token = issued
        background_tasks.add_task(
            email_service.deliver_in_background,
            "password_reset",
            user.email,
            user.full_name,
            reset_token,
        )
    return Envelope(message=FORGOT_PASSWORD_MESSAGE)


@router.post(
    "/reset-password/{token}",
    response_model=Envelope[None],
    response_model_exclude_none=True,
    summary="Set a new password with a reset token",
)
async def reset_password(
    token: str,
    payload: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[None]:
    await auth_service.reset_password(db, token, payload.password)
    return Envelope(message="Password reset successfully")


@router.post(
    "/social-auth",
    response_model=Envelope[AuthData],
    response_model_exclude_none=True,
    responses={201: {"description": "Account created", "model": Envelope[AuthData]}},
    summary="Sign in with Google, Facebook or Apple",
)
async def social_auth(
    payload: SocialAuthRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[AuthData]:
    data, created = await auth_service.social_auth(db, payload)
    if created:
        response.status_code = 201
    return Envelope(message="Authentication successful", data=data)
