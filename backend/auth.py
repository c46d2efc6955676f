# auth.py — Authentication & role checks for the IMF Gadget API
# Features:
# - Salted bcrypt password hashes
# - HS256 JWT bearer tokens carrying {id, username, role}
# - Two-role RBAC (admin, agent)
# - Identical error for unknown user and wrong password

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import bcrypt
from jose import jwt, JWTError, ExpiredSignatureError
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config import JWT_SECRET_KEY, JWT_ALGORITHM, JWT_EXPIRE_HOURS
from errors import ConflictError, ForbiddenError, UnauthorizedError
from models import User, UserRole

logger = logging.getLogger("imf-gadgets.auth")

BCRYPT_ROUNDS = 10

security = HTTPBearer(auto_error=False)


# ============================================================
# PYDANTIC SCHEMAS
# ============================================================

class CurrentUser(BaseModel):
    id: str
    username: str
    role: UserRole


# ============================================================
# AUTH SERVICE
# ============================================================

class AuthService:
    """Credential store access and token handling"""

    @staticmethod
    def hash_password(password: str) -> str:
        salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))

    @staticmethod
    def create_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
        now = datetime.now(timezone.utc)
        role = user.role.value if isinstance(user.role, UserRole) else user.role
        to_encode: Dict[str, Any] = {
            "id": user.id,
            "username": user.username,
            "role": role,
            "iat": now,
            "exp": now + (expires_delta or timedelta(hours=JWT_EXPIRE_HOURS)),
        }
        return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)

    @staticmethod
    def verify_token(token: str) -> CurrentUser:
        try:
            payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
        except ExpiredSignatureError:
            raise UnauthorizedError("Token expired.")
        except JWTError:
            raise UnauthorizedError("Invalid token.")

        try:
            return CurrentUser(
                id=payload["id"],
                username=payload["username"],
                role=payload["role"],
            )
        except (KeyError, ValueError):
            raise UnauthorizedError("Invalid token.")

    @staticmethod
    async def register(
        db: AsyncSession,
        username: str,
        password: str,
        role: Optional[UserRole] = None,
    ) -> Tuple[User, str]:
        result = await db.execute(select(User).where(User.username == username))
        if result.scalar_one_or_none():
            raise ConflictError("Username already exists")

        user = User(
            username=username,
            password_hash=AuthService.hash_password(password),
            role=role or UserRole.AGENT,
        )
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same name
            await db.rollback()
            logger.warning(f"Registration of {username} hit the unique constraint")
            raise ConflictError("Username already exists")
        await db.refresh(user)

        logger.info(f"Registered user {user.username} ({user.role.value})")
        return user, AuthService.create_token(user)

    @staticmethod
    async def login(db: AsyncSession, username: str, password: str) -> Tuple[User, str]:
        result = await db.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()

        if not user or not AuthService.verify_password(password, user.password_hash):
            logger.warning(f"Failed login for {username!r}")
            raise UnauthorizedError("Invalid credentials")

        return user, AuthService.create_token(user)


# ============================================================
# FASTAPI DEPENDENCIES
# ============================================================

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Access denied. No token provided.")
    return AuthService.verify_token(credentials.credentials)


def require_role(*roles: UserRole):
    """Dependency factory: require user to have one of the specified roles"""
    async def _check(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in roles:
            raise ForbiddenError("Access forbidden")
        return user
    return _check


require_admin = require_role(UserRole.ADMIN)
