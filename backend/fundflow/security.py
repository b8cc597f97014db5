"""
FundFlow Backend — Tokens, Passwords and Auth Dependencies
============================================================

What:  JWT issuance/verification against the shared secret, password and OTP
       hashing, and the FastAPI dependencies that resolve the caller.
How:   Tokens are HS256 JWTs carrying the user's id, email, names, avatar and
       role. The same secret is shared with the SSO front end, so a token
       minted there is accepted here and vice versa.

Dependency chain:
    get_token_claims  → Authorization: Bearer <jwt> → decoded claims (401)
    get_current_user  → claims → User row                          (401)
    require_admin     → User with role ADMIN                       (403)
    require_api_key   → X-API-Key header matches API_KEY           (401)
"""

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.config import settings
from fundflow.database import get_db_session
from fundflow.exceptions import AuthenticationError, PermissionDeniedError
from fundflow.models.user import User

logger = logging.getLogger(__name__)

# New hashes use bcrypt; pbkdf2_sha256 hashes still verify and are flagged
# for rehash on the next sign-in.
pwd_context = CryptContext(schemes=["bcrypt", "pbkdf2_sha256"], deprecated="auto")

bearer = HTTPBearer(auto_error=False)


# ══════════════════════════════════════════════════════════════════════════
# Passwords & OTP
# ══════════════════════════════════════════════════════════════════════════

def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        # Unrecognized hash format
        return False


def generate_otp(length: int = 6) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(length))


def hash_otp(otp: str) -> str:
    return hmac.new(settings.jwt_secret_key.encode(), otp.encode(), hashlib.sha256).hexdigest()


def verify_otp(otp: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    return hmac.compare_digest(hash_otp(otp), hashed)


# ══════════════════════════════════════════════════════════════════════════
# JWT
# ══════════════════════════════════════════════════════════════════════════

def create_access_token(user: User, expires_minutes: Optional[int] = None) -> str:
    now = datetime.now(timezone.utc)
    minutes = expires_minutes if expires_minutes is not None else settings.jwt_expire_minutes
    payload = {
        "sub": user.id,
        "id": user.id,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "avatar": user.avatar,
        "role": user.role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=minutes)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Dict[str, Any]:
    """
    Verify signature and expiry and return the claims.

    Raises:
        AuthenticationError: "Token expired" or "Invalid token"
    """
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError as e:
        logger.info("Rejected bearer token: %s", e)
        raise AuthenticationError("Invalid token")


# ══════════════════════════════════════════════════════════════════════════
# Dependencies
# ══════════════════════════════════════════════════════════════════════════

def get_token_claims(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> Dict[str, Any]:
    if not creds or not creds.credentials:
        raise AuthenticationError("No token provided")
    return decode_token(creds.credentials)


async def get_current_user(
    claims: Dict[str, Any] = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """Resolve the token to a stored user, by id first and then by email."""
    user: Optional[User] = None
    user_id = claims.get("id") or claims.get("sub")
    if user_id:
        user = await db.get(User, str(user_id))
    if user is None and claims.get("email"):
        result = await db.execute(select(User).where(User.email == claims["email"]))
        user = result.scalar_one_or_none()
    if user is None:
        raise AuthenticationError("User for this token does not exist; call /api/auth/login first")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise PermissionDeniedError("Admin role required")
    return user


def require_api_key(x_api_key: Optional[str] = Header(default=None, alias="X-API-Key")) -> None:
    """Guards endpoints called by the external scheduler."""
    if not settings.api_key or not x_api_key or not hmac.compare_digest(x_api_key, settings.api_key):
        raise AuthenticationError("Invalid API key")
