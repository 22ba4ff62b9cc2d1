"""
Auth API routes — register, obtain token pair, refresh access token.

Route prefix: /api
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auth.dependencies import db_session, get_current_user
from auth.jwt import REFRESH, create_access_token, create_token_pair, decode_token
from auth.password import hash_password, verify_password
from database.models import User

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


# ── Request / response schemas ─────────────────────────────────────────


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=150)
    email: str = Field("", max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class TokenRequest(BaseModel):
    username: str
    password: str


class RefreshRequest(BaseModel):
    refresh: str


class TokenPairResponse(BaseModel):
    access: str
    refresh: str


class AccessTokenResponse(BaseModel):
    access: str


class ProfileResponse(BaseModel):
    user_id: str
    username: str
    email: str


async def _get_user(session: AsyncSession, username: str) -> User | None:
    result = await session.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


# ── Endpoints ──────────────────────────────────────────────────────────


@router.post(
    "/register/",
    response_model=TokenPairResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    req: RegisterRequest,
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    """Create an account and issue a token pair for it."""
    if await _get_user(session, req.username) is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A user with that username already exists.",
        )

    user = User(
        user_id=uuid.uuid4(),
        username=req.username,
        email=req.email,
        password_hash=hash_password(req.password),
    )
    session.add(user)
    try:
        await session.flush()
    except IntegrityError:
        # Lost a race against a concurrent registration of the same name.
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A user with that username already exists.",
        )

    logger.info("Registered user %s (%s)", user.username, user.user_id)
    return create_token_pair(str(user.user_id), user.username)


@router.post("/token/", response_model=TokenPairResponse)
async def obtain_token(
    req: TokenRequest,
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    """Exchange username + password for an access / refresh pair."""
    user = await _get_user(session, req.username)

    if user is None or not verify_password(req.password, user.password_hash):
        logger.info("Rejected credentials for %s", req.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No active account found with the given credentials",
        )

    logger.info("Issued token pair: %s (%s)", user.username, user.user_id)
    return create_token_pair(str(user.user_id), user.username)


@router.post("/token/refresh/", response_model=AccessTokenResponse)
async def refresh_token(
    req: RefreshRequest,
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    """Issue a new access token for a valid refresh token."""
    claims = decode_token(req.refresh, REFRESH)

    user = await _get_user(session, claims.get("username", ""))
    if user is None or str(user.user_id) != claims.get("user_id"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    logger.debug("Refreshed access token for %s", user.username)
    return {"access": create_access_token(str(user.user_id), user.username)}


@router.get("/me/", response_model=ProfileResponse)
async def me(
    claims: Dict[str, Any] = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    """Return the profile of the bearer of the access token."""
    user = await _get_user(session, claims.get("username", ""))
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return {
        "user_id": str(user.user_id),
        "username": user.username,
        "email": user.email,
    }
