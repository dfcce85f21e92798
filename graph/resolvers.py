"""
graph/resolvers.py -- Relationship resolvers and root operations.

Each function resolves exactly one GraphQL field. strawberry passes the parent
object as `root` (a domain entity from social/models.py) and the request
context as `info.context`. Resolvers share no state with each other and may
run zero, one or many times per request, in any order, depending on what the
caller selected. Relations are read from the repository on demand; nothing is
joined up front.

Repository calls are synchronous, so resolvers hand them to a worker thread
(asyncio.to_thread). Sibling fields therefore overlap their reads; mutations
run one after another as GraphQL requires.

Mutations follow fetch -> modify -> save against the caller's own records.
There is no version check, so two concurrent likes on one post may race
(last write wins). A failed save propagates as RepositoryUnavailable and the
mutation reports failure.

Authorization is not checked here: graph/schema.py attaches
auth.policy.IsAuthenticated to the protected root fields.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

import strawberry
from strawberry.types import Info

from auth.context import RequestContext
from auth.tokens import authenticate_user, hash_password
from core.errors import Conflict, DuplicateEmail, InvalidCredentials, InvalidInput, NotFound
from social.models import Comment, Post, User
from social.store import ASC, In

logger = logging.getLogger("socialgraph.graph")

_BY_CREATION = [("created_at", ASC)]


@dataclass
class Avatar:
    url: Optional[str]


@dataclass
class UserLogged:
    """Result of register and login: the account and its fresh session token."""

    user: User
    token: str


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------


def user_display_name(root: User) -> str:
    return f"{root.first_name} {root.last_name}"


def user_avatar(root: User) -> Avatar:
    return Avatar(url=root.avatar)


async def user_friends(root: User, info: Info) -> list[User]:
    """All followed users in one set-membership query."""
    store = info.context.store
    return await asyncio.to_thread(store.users.find, {"id": In(root.friends or [])})


async def user_posts(root: User, info: Info) -> list[Post]:
    store = info.context.store
    return await asyncio.to_thread(store.posts.find, {"creator": root.id}, _BY_CREATION)


# ---------------------------------------------------------------------------
# Post
# ---------------------------------------------------------------------------


async def post_creator(root: Post, info: Info) -> Optional[User]:
    store = info.context.store
    return await asyncio.to_thread(store.users.find_one, {"id": root.creator})


async def post_comments(root: Post, info: Info) -> list[Comment]:
    store = info.context.store
    return await asyncio.to_thread(store.comments.find, {"post_id": root.id}, _BY_CREATION)


def post_likes(root: Post) -> int:
    return len(root.likes) if root.likes else 0


# ---------------------------------------------------------------------------
# Comment
# ---------------------------------------------------------------------------


async def comment_creator(root: Comment, info: Info) -> Optional[User]:
    store = info.context.store
    return await asyncio.to_thread(store.users.find_one, {"id": root.creator})


async def comment_parent_post(root: Comment, info: Info) -> Optional[Post]:
    store = info.context.store
    return await asyncio.to_thread(store.posts.find_one, {"id": root.post_id})


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def me(info: Info) -> Optional[User]:
    ctx: RequestContext = info.context
    return await asyncio.to_thread(ctx.store.users.find_one, {"id": ctx.caller_id})


async def profile(info: Info, user_id: Optional[strawberry.ID] = None) -> Optional[User]:
    """Another member's profile; without userId, the caller's own."""
    ctx: RequestContext = info.context
    return await asyncio.to_thread(ctx.store.users.find_one, {"id": user_id or ctx.caller_id})


def _feed(ctx: RequestContext) -> list[Post]:
    caller = ctx.store.users.find_one({"id": ctx.caller_id})
    if caller is None:
        return []
    creators = list(caller.friends)
    if ctx.settings.feed_includes_self:
        creators.append(caller.id)
    return ctx.store.posts.find({"creator": In(creators)}, sort=_BY_CREATION)


async def feed(info: Info) -> list[Post]:
    """Posts by the users the caller follows, oldest first.

    Two dependent reads: the caller's friends list, then their posts.
    Whether the caller's own posts are included is a setting
    (FEED_INCLUDES_SELF).
    """
    return await asyncio.to_thread(_feed, info.context)


async def post_by_id(info: Info, post_id: strawberry.ID) -> Optional[Post]:
    store = info.context.store
    return await asyncio.to_thread(store.posts.find_one, {"id": post_id})


async def comments_for_post(info: Info, post_id: strawberry.ID) -> list[Comment]:
    store = info.context.store
    return await asyncio.to_thread(store.comments.find, {"post_id": post_id}, _BY_CREATION)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


def _require_text(**values: Any) -> None:
    """Raise InvalidInput unless every value is a non-blank string."""
    for name, value in values.items():
        if not isinstance(value, str) or not value.strip():
            raise InvalidInput(f"{name} must be a non-empty string.")


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _caller(ctx: RequestContext) -> User:
    user = ctx.store.users.find_one({"id": ctx.caller_id})
    if user is None:
        # A valid token for a user that no longer exists.
        raise NotFound("User not found.")
    return user


def _no_store(info: Info) -> None:
    # Responses carrying a session token must not be cached [M5].
    response = getattr(info.context, "response", None)
    if response is not None:
        response.headers["Cache-Control"] = "no-store"


def _register(ctx: RequestContext, first_name: str, last_name: str, email: str, password: str) -> UserLogged:
    _require_text(firstName=first_name, lastName=last_name, email=email, password=password)
    email = _normalize_email(email)
    if "@" not in email:
        raise InvalidInput("A valid email address is required.")
    if ctx.store.users.find_one({"email": email}) is not None:
        raise DuplicateEmail()
    try:
        password_hash = hash_password(password, rounds=ctx.settings.bcrypt_rounds)
    except ValueError as exc:
        raise InvalidInput(str(exc)) from exc
    try:
        user = ctx.store.users.create(
            first_name=first_name,
            last_name=last_name,
            email=email,
            password_hash=password_hash,
        )
    except Conflict:
        # Only a concurrent registration for the same email is a duplicate;
        # any other constraint violation stays a plain Conflict.
        if ctx.store.users.find_one({"email": email}) is not None:
            raise DuplicateEmail() from None
        raise
    logger.info("Registered user %s", user.id)
    return UserLogged(user=user, token=ctx.tokens.mint(user.id))


async def register(info: Info, first_name: str, last_name: str, email: str, password: str) -> UserLogged:
    """Create an account and return it with a fresh session token."""
    result = await asyncio.to_thread(_register, info.context, first_name, last_name, email, password)
    _no_store(info)
    return result


def _login(ctx: RequestContext, email: str, password: str) -> UserLogged:
    _require_text(email=email, password=password)
    user = authenticate_user(ctx.store, _normalize_email(email), password, rounds=ctx.settings.bcrypt_rounds)
    if user is None:
        logger.info("Failed login attempt")
        raise InvalidCredentials()
    return UserLogged(user=user, token=ctx.tokens.mint(user.id))


async def login(info: Info, email: str, password: str) -> UserLogged:
    """Exchange an email/password pair for a session token.

    Unknown email and wrong password raise the same InvalidCredentials so the
    response does not reveal which emails are registered.
    """
    result = await asyncio.to_thread(_login, info.context, email, password)
    _no_store(info)
    return result


def _update_avatar(ctx: RequestContext, url: str) -> User:
    _require_text(url=url)
    user = _caller(ctx)
    user.avatar = url
    return ctx.store.users.save(user)


async def update_avatar(info: Info, url: str) -> User:
    return await asyncio.to_thread(_update_avatar, info.context, url)


def _create_post(ctx: RequestContext, title: str, content: str) -> Post:
    _require_text(title=title, content=content)
    creator = _caller(ctx)
    return ctx.store.posts.create(title=title, content=content, creator=creator.id)


async def create_post(info: Info, title: str, content: str) -> Post:
    return await asyncio.to_thread(_create_post, info.context, title, content)


def _like_post(ctx: RequestContext, post_id: str) -> Post:
    target = ctx.store.posts.find_one({"id": post_id})
    if target is None:
        raise NotFound("Post not found.")
    target.likes.append(ctx.caller_id)
    return ctx.store.posts.save(target)


async def like_post(info: Info, post_id: strawberry.ID) -> Post:
    """Append the caller to the post's likes.

    Not idempotent: liking twice counts twice.
    """
    return await asyncio.to_thread(_like_post, info.context, post_id)


def _comment_post(ctx: RequestContext, post_id: str, message: str) -> Comment:
    _require_text(message=message)
    creator = _caller(ctx)
    if ctx.store.posts.find_one({"id": post_id}) is None:
        raise NotFound("Post not found.")
    return ctx.store.comments.create(message=message, post_id=post_id, creator=creator.id)


async def comment_post(info: Info, post_id: strawberry.ID, message: str) -> Comment:
    return await asyncio.to_thread(_comment_post, info.context, post_id, message)


def _follow(ctx: RequestContext, friend: str) -> User:
    user = _caller(ctx)
    if ctx.store.users.find_one({"id": friend}) is None:
        raise NotFound("User not found.")
    user.friends.append(friend)
    return ctx.store.users.save(user)


async def follow(info: Info, friend: strawberry.ID) -> User:
    """Append friend to the caller's friends list. Repeated follows append again."""
    return await asyncio.to_thread(_follow, info.context, friend)
