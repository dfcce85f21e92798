#!/usr/bin/env python3
"""
socialgraph -- command-line access to the social graph.

Runs the same GraphQL schema as the HTTP API, in-process, against the
configured database. Handy for seeding accounts and checking feeds.

Usage:
  python main.py register Ada Lovelace ada@example.com s3cret
  python main.py token ada@example.com s3cret
  python main.py feed ada@example.com s3cret
  python main.py --db sqlite:///dev.db feed ada@example.com s3cret
  python main.py serve --port 8000

Environment variables:
  SECRET_KEY     Signing key for session tokens (>= 32 chars). Required unless DEBUG=true.
  DATABASE_URL   SQLAlchemy URL. Defaults to socialgraph.db next to the code.
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Optional

from strawberry.types import ExecutionResult

from auth.context import RequestContext
from auth.tokens import TokenCodec
from core.config import get_settings
from graph.schema import schema
from social.store import SocialStore

REGISTER = """
mutation Register($firstName: String!, $lastName: String!, $email: String!, $password: String!) {
  register(firstName: $firstName, lastName: $lastName, email: $email, password: $password) {
    token
    user { id }
  }
}
"""

LOGIN = """
mutation Login($email: String!, $password: String!) {
  login(email: $email, password: $password) { token }
}
"""

FEED = """
query Feed {
  feed { id title likes createdAt creator { displayName } }
}
"""


def _run(ctx: RequestContext, query: str, variables: Optional[dict[str, Any]] = None) -> ExecutionResult:
    return asyncio.run(schema.execute(query, variable_values=variables, context_value=ctx))


def _report_errors(result: ExecutionResult) -> bool:
    """Print any GraphQL errors. Returns True if there were errors."""
    for error in result.errors or []:
        operation = error.path[0] if error.path else "request"
        code = (error.extensions or {}).get("code", "invalid_query")
        print(f"  [!] {operation}: {error.message} ({code})")
    return bool(result.errors)


def _login(ctx: RequestContext, email: str, password: str) -> Optional[str]:
    result = _run(ctx, LOGIN, {"email": email, "password": password})
    if _report_errors(result):
        return None
    return result.data["login"]["token"]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="socialgraph",
        description="socialgraph command-line tool.",
    )
    parser.add_argument("--db", metavar="URL", help="SQLAlchemy database URL (overrides DATABASE_URL)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_register = sub.add_parser("register", help="Create an account and print its session token")
    p_register.add_argument("first_name")
    p_register.add_argument("last_name")
    p_register.add_argument("email")
    p_register.add_argument("password")

    p_token = sub.add_parser("token", help="Log in and print a session token")
    p_token.add_argument("email")
    p_token.add_argument("password")

    p_feed = sub.add_parser("feed", help="Log in and print the feed")
    p_feed.add_argument("email")
    p_feed.add_argument("password")
    p_feed.add_argument("--json", action="store_true", help="Print the raw feed as JSON")

    p_serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    p_serve.add_argument("--host", default="127.0.0.1")
    p_serve.add_argument("--port", type=int, default=8000)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    if args.command == "serve":
        import uvicorn

        uvicorn.run("asgi:app", host=args.host, port=args.port)
        return 0

    settings = get_settings()
    store = SocialStore(args.db or settings.database_url)
    codec = TokenCodec(settings.secret_key, settings.token_expire_seconds)
    ctx = RequestContext(store=store, tokens=codec, settings=settings)

    try:
        if args.command == "register":
            result = _run(
                ctx,
                REGISTER,
                {
                    "firstName": args.first_name,
                    "lastName": args.last_name,
                    "email": args.email,
                    "password": args.password,
                },
            )
            if _report_errors(result):
                return 1
            registered = result.data["register"]
            print(f"  Registered {args.email} (id {registered['user']['id']})")
            print(registered["token"])
            return 0

        token = _login(ctx, args.email, args.password)
        if token is None:
            return 1
        if args.command == "token":
            print(token)
            return 0

        ctx.caller_id = codec.verify(token)
        result = _run(ctx, FEED)
        if _report_errors(result):
            return 1
        posts = result.data["feed"]
        if args.json:
            print(json.dumps(posts, indent=2))
        elif not posts:
            print("  Feed is empty. Follow someone first.")
        else:
            for item in posts:
                author = (item.get("creator") or {}).get("displayName", "unknown")
                print(f"  {item['createdAt']}  {author}: {item['title']}  ({item['likes']} likes)")
        return 0
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
