"""Authentication service: DB-backed sessions and bcrypt passwords."""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

import bcrypt
from fastapi import Request
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from repairshop.config import get_settings
from repairshop.models.base import utcnow
from repairshop.models.enums import Role
from repairshop.models.user import User, UserSession

SESSION_COOKIE_NAME = "session_token"
SESSION_MAX_AGE_DAYS = get_settings().session_max_age_days


@dataclass
class AuthContext:
    user_id: str
    role: Role
    email: str
    display_name: str

    @classmethod
    def from_user(cls, user: User) -> "AuthContext":
        return cls(
            user_id=user.id,
            role=Role(user.role),
            email=user.email,
            display_name=user.full_name or user.email,
        )


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


def _hash_token(token: str) -> str:
    """SHA-256 hash of a session token for DB storage."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


async def authenticate(db: AsyncSession, email: str, password: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    user = result.scalars().first()
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        return None
    return user


async def create_session(user: User, db: AsyncSession, ip_address: str = "") -> str:
    """Create a DB-backed session. Returns the raw token (not the hash)."""
    token = secrets.token_urlsafe(48)
    session = UserSession(
        user_id=user.id,
        token_hash=_hash_token(token),
        expires_at=utcnow() + timedelta(days=SESSION_MAX_AGE_DAYS),
        ip_address=ip_address,
    )
    db.add(session)
    user.last_login_at = utcnow()
    await db.commit()
    return token


async def validate_session(token: str, db: AsyncSession) -> User | None:
    """Look up session by token hash, return User if valid."""
    result = await db.execute(
        select(UserSession).where(
            UserSession.token_hash == _hash_token(token),
            UserSession.expires_at > utcnow(),
        )
    )
    session = result.scalars().first()
    if not session:
        return None

    user = await db.get(User, session.user_id)
    if not user or not user.is_active:
        return None
    return user


async def remove_session(token: str, db: AsyncSession) -> None:
    await db.execute(delete(UserSession).where(UserSession.token_hash == _hash_token(token)))
    await db.commit()


async def get_optional_user(request: Request, db: AsyncSession) -> AuthContext | None:
    """Read the session cookie; None when absent or expired."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        return None
    user = await validate_session(token, db)
    if not user:
        return None
    return AuthContext.from_user(user)
