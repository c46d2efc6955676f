# routers/auth.py — Registration & login endpoints
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from auth import AuthService
from database import get_db_session
from errors import InternalError
from models import UserRole

logger = logging.getLogger("imf-gadgets.auth")

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    role: Optional[UserRole] = None


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    message: str
    token: str


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
):
    """Register a new user account"""
    try:
        _, token = await AuthService.register(db, body.username, body.password, body.role)
    except SQLAlchemyError:
        logger.exception("Registration failed")
        raise InternalError("Registration failed")
    return TokenResponse(message="User registered successfully", token=token)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
):
    """Authenticate and receive a token"""
    try:
        _, token = await AuthService.login(db, body.username, body.password)
    except SQLAlchemyError:
        logger.exception("Login failed")
        raise InternalError("Login failed")
    return TokenResponse(message="Login successful", token=token)
