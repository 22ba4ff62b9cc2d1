"""
JWT access / refresh token creation and verification.

Tokens are HS256 JWTs signed with ``config.jwt_secret`` (env var:
``JWT_SECRET``).  Each token carries a ``token_type`` claim so a refresh
token can never be presented as an access token and vice versa.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from fastapi import HTTPException, status

from config.settings import config

ACCESS = "access"
REFRESH = "refresh"

_LIFETIMES = {
    ACCESS: config.access_token_lifetime_seconds,
    REFRESH: config.refresh_token_lifetime_seconds,
}


def _encode(user_id: str, username: str, token_type: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user_id,
        "username": username,
        "token_type": token_type,
        "iat": now,
        "exp": now + timedelta(seconds=_LIFETIMES[token_type]),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, config.jwt_secret, algorithm=config.jwt_algorithm)


def create_access_token(user_id: str, username: str) -> str:
    return _encode(user_id, username, ACCESS)


def create_token_pair(user_id: str, username: str) -> Dict[str, str]:
    """Return ``{"access": ..., "refresh": ...}`` for a user."""
    return {
        "access": _encode(user_id, username, ACCESS),
        "refresh": _encode(user_id, username, REFRESH),
    }


def decode_token(token: str, expected_type: str) -> Dict[str, Any]:
    """
    Verify signature, expiry and token type; return the claims.

    Raises ``HTTPException(401)`` on invalid, expired or wrong-type tokens.
    """
    try:
        payload = jwt.decode(
            token,
            config.jwt_secret,
            algorithms=[config.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is invalid or expired",
        )
    except jwt.InvalidTokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token is invalid or expired: {exc}",
        )

    if payload.get("token_type") != expected_type:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has wrong type",
        )
    return payload
