"""
Command line front end for the session client.

Usage:
    jwt-session status
    jwt-session register alice alice@example.com
    jwt-session login alice
    jwt-session open /private
    jwt-session refresh
    jwt-session whoami
    jwt-session logout

The session persists between invocations in ``SESSION_STORE_PATH``.
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import sys
from typing import List, Optional

from client import router, views
from client.controller import Scope, SessionController
from client.identity import IdentityClient, IdentityServiceError
from client.storage import FileStorage, SessionStore, StorageError
from config.settings import config

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jwt-session", description="JWT session client")
    parser.add_argument("--api-url", default=config.api_url, help="identity service base URL")
    parser.add_argument("--store", default=config.session_store_path, help="session storage file")
    parser.add_argument("--namespace", default=config.session_namespace)
    parser.add_argument("-v", "--verbose", action="store_true")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("status", help="show the current session")

    p = sub.add_parser("register", help="create an account and log in")
    p.add_argument("username")
    p.add_argument("email")
    p.add_argument("--password")

    p = sub.add_parser("login", help="log in")
    p.add_argument("username")
    p.add_argument("--password")

    sub.add_parser("logout", help="forget the stored session")
    sub.add_parser("refresh", help="get a new access token")
    sub.add_parser("whoami", help="call the authenticated /me/ endpoint")

    p = sub.add_parser("open", help="render a client route")
    p.add_argument("path", nargs="?", default=router.HOME)
    return parser


async def _run(args: argparse.Namespace) -> int:
    store = SessionStore(FileStorage(args.store), namespace=args.namespace)

    async with IdentityClient(args.api_url) as identity:
        session = SessionController(store, identity)

        with Scope() as scope:
            if args.command == "status":
                print(views.render("home", session.state))
                return 0

            if args.command == "open":
                decision = router.resolve(args.path, session.state)
                if decision.redirected:
                    print(f"(redirected to {decision.path})")
                print(views.render(decision.view, session.state))
                return 0

            if args.command == "logout":
                session.logout()
                print("Logout successful")
                return 0

            if args.command == "whoami":
                token = session.get_access_token()
                if token is None:
                    print("You are not logged in.")
                    return 1
                try:
                    profile = await identity.whoami(token)
                except IdentityServiceError as exc:
                    print(f"Request failed: {exc.detail}")
                    return 1
                print(f"{profile['username']} <{profile.get('email', '')}> ({profile['user_id']})")
                return 0

            if args.command == "refresh":
                result = await session.refresh(scope=scope)
            else:
                password = args.password or getpass.getpass("Password: ")
                if args.command == "login":
                    result = await session.sign_in(args.username, password, scope=scope)
                else:
                    result = await session.sign_up(
                        args.username, args.email, password, scope=scope
                    )

        print(result.message)
        return 0 if result.ok else 1


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
        stream=sys.stderr,
    )
    for _noisy in ("httpcore", "httpx"):
        logging.getLogger(_noisy).setLevel(logging.WARNING)

    try:
        return asyncio.run(_run(args))
    except StorageError as exc:
        logger.error("Session storage failure: %s", exc)
        print(f"Session storage error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
