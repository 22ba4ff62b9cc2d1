"""
Client route table and the login gate in front of private routes.
"""

from __future__ import annotations

from typing import Dict, NamedTuple

from client.schemas import Anonymous, Authenticated, SessionState

HOME = "/"
REGISTER = "/register"
LOGIN = "/login"
PRIVATE = "/private"

ROUTES: Dict[str, str] = {
    HOME: "home",
    REGISTER: "register",
    LOGIN: "login",
    PRIVATE: "private",
}
GATED = frozenset({PRIVATE})


class RouteDecision(NamedTuple):
    path: str
    view: str
    redirected: bool = False


def _normalise(path: str) -> str:
    path = "/" + path.strip().strip("/")
    return path


def resolve(path: str, state: SessionState) -> RouteDecision:
    """Map ``path`` to a view, sending anonymous users away from gated routes."""
    path = _normalise(path)
    view = ROUTES.get(path)
    if view is None:
        return RouteDecision(path, "not_found")

    if path in GATED:
        match state:
            case Authenticated():
                pass
            case Anonymous():
                return RouteDecision(LOGIN, ROUTES[LOGIN], redirected=True)

    return RouteDecision(path, view)
