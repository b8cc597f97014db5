"""
FundFlow Backend — Auth Schemas
=================================

Request bodies for register / sign-in / OTP, and the public user shapes.
UserPublic never carries the password hash or OTP fields.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import EmailStr, Field

from fundflow.schemas.common import CamelModel


class RegisterRequest(CamelModel):
    email: EmailStr
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=6, max_length=128)


class SignInRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class OtpRequest(CamelModel):
    email: EmailStr


class OtpVerifyRequest(CamelModel):
    email: EmailStr
    otp: str = Field(min_length=4, max_length=10)


class UserSummary(CamelModel):
    """Compact user shape embedded in approvals and transactions."""

    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None
    role: str


class UserPublic(UserSummary):
    is_verified: bool = False
    created_at: datetime
    updated_at: datetime


class RegisterResponse(CamelModel):
    message: str
    user: UserPublic


class TokenResponse(CamelModel):
    success: bool = True
    token: str
    user: UserPublic


def login_payload(claims: Dict[str, Any], user: UserPublic) -> Dict[str, Any]:
    """Body returned by /auth/login: the token claims plus the local user."""
    return {
        **claims,
        "userId": user.id,
        "dbUser": user.model_dump(mode="json", by_alias=True),
    }
