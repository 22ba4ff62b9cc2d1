"""Plain-text renderings of the client pages."""

from __future__ import annotations

from typing import List

from client import router
from client.schemas import Anonymous, Authenticated, SessionState

TITLE = "JWT Auth Example"


def home(state: SessionState) -> str:
    match state:
        case Authenticated(identity=name):
            return f"Welcome, {name}! You're logged in."
        case Anonymous():
            return "Hi, please log in (or register) to use the site"


def private(state: SessionState) -> str:
    match state:
        case Authenticated(identity=name):
            return f"Welcome {name}! This is the private section for authenticated users"
        case Anonymous():
            return ""


def not_found(state: SessionState) -> str:
    return "404 Not Found"


def login(state: SessionState) -> str:
    return "Log in with: login USERNAME"


def register(state: SessionState) -> str:
    return "Create an account with: register USERNAME EMAIL"


def nav_links(state: SessionState) -> List[str]:
    match state:
        case Authenticated():
            return [router.PRIVATE, "logout"]
        case Anonymous():
            return [router.REGISTER, router.LOGIN]


_VIEWS = {
    "home": home,
    "private": private,
    "login": login,
    "register": register,
    "not_found": not_found,
}


def render(view: str, state: SessionState) -> str:
    """Render ``view`` under a navigation header."""
    header = f"{TITLE}  [{' | '.join(nav_links(state))}]"
    body = _VIEWS[view](state)
    return f"{header}\n\n{body}" if body else header
