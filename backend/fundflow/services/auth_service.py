"""
FundFlow Backend — Auth Service
=================================

What:  Registration, password sign-in, SSO login provisioning and email
       verification by one-time passcode.
Who:   routes/auth.py.

Login provisioning:
    A token minted by the SSO front end (same JWT secret) may belong to a
    person who has never called this API. /auth/login looks the user up by
    email and, when missing, creates the row from the token claims, keeping
    the token's `id` as the primary key so later lookups by id succeed.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.config import settings
from fundflow.database import utcnow
from fundflow.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from fundflow.models.user import User
from fundflow.schemas.auth import RegisterRequest, SignInRequest
from fundflow.security import (
    create_access_token,
    generate_otp,
    hash_otp,
    hash_password,
    pwd_context,
    verify_otp,
    verify_password,
)
from fundflow.services.email_service import email_service

logger = logging.getLogger(__name__)


class AuthService:
    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def register(self, db: AsyncSession, payload: RegisterRequest) -> User:
        """Raises ConflictError when the email is already registered."""
        if await self.get_by_email(db, payload.email) is not None:
            raise ConflictError(
                "This email is already in use, please use another one",
                context={"field": "email"},
            )

        user = User(
            email=payload.email,
            first_name=payload.first_name,
            last_name=payload.last_name,
            password=hash_password(payload.password),
        )
        db.add(user)
        await db.flush()
        logger.info("User %s registered", user.id)
        return user

    async def sign_in(self, db: AsyncSession, payload: SignInRequest) -> Tuple[str, User]:
        user = await self.get_by_email(db, payload.email)
        if user is None or not verify_password(payload.password, user.password):
            raise AuthenticationError("Invalid email or password")

        if pwd_context.needs_update(user.password):
            user.password = hash_password(payload.password)
            await db.flush()
            logger.info("Rehashed password for user %s", user.id)

        return create_access_token(user), user

    async def login_from_claims(self, db: AsyncSession, claims: Dict[str, Any]) -> User:
        """Find the user named by SSO token claims, creating them if needed."""
        email = claims.get("email")
        if not email:
            raise AuthenticationError("Token does not carry an email")

        user = await self.get_by_email(db, email)
        if user is not None:
            return user

        user = User(
            email=email,
            first_name=claims.get("firstName") or None,
            last_name=claims.get("lastName") or None,
            avatar=claims.get("avatar") or None,
        )
        token_id = claims.get("id")
        if token_id:
            user.id = str(token_id)
        db.add(user)
        await db.flush()
        logger.info("Provisioned user %s from login token", user.id)
        return user

    # ── Email verification ────────────────────────────────────────────────

    async def request_otp(self, db: AsyncSession, email: str) -> None:
        """
        Store a fresh OTP hash for the user and email the code.

        Raises:
            NotFoundError: no user with this email
            IntegrationError: the email could not be sent (the stored hash
                is rolled back with the request)
        """
        user = await self.get_by_email(db, email)
        if user is None:
            raise NotFoundError(resource="User", context={"email": email})

        otp = generate_otp()
        user.otp_hash = hash_otp(otp)
        user.otp_expires_at = utcnow() + timedelta(minutes=settings.otp_expire_minutes)
        await db.flush()

        await email_service.send_otp_email(user.email, otp)
        logger.info("OTP issued for user %s", user.id)

    async def confirm_otp(self, db: AsyncSession, email: str, otp: str) -> User:
        user = await self.get_by_email(db, email)
        if user is None:
            raise NotFoundError(resource="User", context={"email": email})

        expires_at = user.otp_expires_at
        if expires_at is not None and expires_at.tzinfo is None:
            # SQLite hands back naive datetimes
            expires_at = expires_at.replace(tzinfo=utcnow().tzinfo)

        if expires_at is None or expires_at < utcnow():
            raise ValidationError("OTP has expired, please request a new code", field="otp")
        if not verify_otp(otp, user.otp_hash):
            raise ValidationError("Invalid OTP code", field="otp")

        user.is_verified = True
        user.otp_hash = None
        user.otp_expires_at = None
        await db.flush()
        logger.info("User %s verified their email", user.id)
        return user


auth_service = AuthService()
