"""
Pydantic schemas for the client session.
"""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict


class Anonymous(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["anonymous"] = "anonymous"


class Authenticated(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["authenticated"] = "authenticated"
    identity: str
    access_token: str
    refresh_token: Optional[str] = None


SessionState = Union[Anonymous, Authenticated]


class TokenPair(BaseModel):
    """Successful response body of ``/token/`` and ``/register/``."""

    access: str
    refresh: str


class AuthResult(BaseModel):
    """Outcome of a network-backed session operation, for the UI."""

    ok: bool
    message: str = ""
    cancelled: bool = False
