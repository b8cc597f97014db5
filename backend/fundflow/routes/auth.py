"""
FundFlow Backend — Auth Routes
================================

What:  Registration, sign-in, SSO login, token verification and email OTP.

Route Inventory:
    POST /api/auth/register      create a local account (409 if email taken)
    POST /api/auth/signin        email + password → JWT
    POST /api/auth/login         SSO bearer token → claims + local user
    POST /api/auth/verify        bearer token → decoded claims
    POST /api/auth/otp/request   email a 6-digit code
    POST /api/auth/otp/verify    check the code, mark the user verified
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.database import get_db_session
from fundflow.schemas.auth import (
    OtpRequest,
    OtpVerifyRequest,
    RegisterRequest,
    RegisterResponse,
    SignInRequest,
    TokenResponse,
    UserPublic,
    login_payload,
)
from fundflow.schemas.common import ApiResponse, ErrorResponse, MessageResponse
from fundflow.security import get_token_claims
from fundflow.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    responses={
        400: {"description": "Invalid registration data", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Register a new user",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> RegisterResponse:
    user = await auth_service.register(db, payload)
    return RegisterResponse(message="Registration successful", user=UserPublic.model_validate(user))


@router.post(
    "/signin",
    response_model=TokenResponse,
    responses={401: {"description": "Invalid email or password", "model": ErrorResponse}},
    summary="Sign in with email and password",
)
async def sign_in(
    payload: SignInRequest,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    token, user = await auth_service.sign_in(db, payload)
    return TokenResponse(token=token, user=UserPublic.model_validate(user))


@router.post(
    "/login",
    responses={401: {"description": "Missing, invalid or expired token", "model": ErrorResponse}},
    summary="Log in with an SSO token",
    description=(
        "Verifies a bearer token signed with the shared secret, provisions the "
        "user on first login, and returns the token claims plus the local user."
    ),
)
async def login(
    claims: Dict[str, Any] = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    user = await auth_service.login_from_claims(db, claims)
    return login_payload(claims, UserPublic.model_validate(user))


@router.post(
    "/verify",
    responses={401: {"description": "Missing, invalid or expired token", "model": ErrorResponse}},
    summary="Decode the caller's token",
)
async def verify(claims: Dict[str, Any] = Depends(get_token_claims)) -> Dict[str, Any]:
    return claims


@router.post(
    "/otp/request",
    response_model=MessageResponse,
    responses={
        404: {"description": "No user with this email", "model": ErrorResponse},
        500: {"description": "Email could not be sent", "model": ErrorResponse},
    },
    summary="Email a verification code",
)
async def request_otp(
    payload: OtpRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.request_otp(db, payload.email)
    return MessageResponse(message="OTP sent to your email")


@router.post(
    "/otp/verify",
    response_model=ApiResponse[UserPublic],
    responses={400: {"description": "Wrong or expired code", "model": ErrorResponse}},
    summary="Verify an emailed code",
)
async def verify_otp(
    payload: OtpVerifyRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[UserPublic]:
    user = await auth_service.confirm_otp(db, payload.email, payload.otp)
    return ApiResponse(message="Email verified", data=UserPublic.model_validate(user))
