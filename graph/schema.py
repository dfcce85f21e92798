"""
graph/schema.py -- The strawberry GraphQL schema: root operations and extensions.

Root fields bind a resolver from graph/resolvers.py to a GraphQL type from
graph/types.py. Authorization is declared here and nowhere else: protected
fields list IsAuthenticated in their permission_classes.

Error reporting:
  - SocialError subclasses surface with their message and extensions.code.
  - Any other exception is logged with its traceback and masked as
    "internal_error" so no internal detail reaches the client.
  - A failed field resolves to null; sibling fields keep resolving.

Usage:
    result = await schema.execute("{ me { displayName } }", context_value=ctx)
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import strawberry
from graphql import GraphQLError
from strawberry.extensions import MaskErrors, QueryDepthLimiter
from strawberry.utils.str_converters import to_camel_case

from auth.policy import IsAuthenticated, is_protected
from core.errors import SocialError
from graph import resolvers
from graph.types import CommentType, PostType, UserLoggedType, UserType

logger = logging.getLogger("socialgraph.graph")

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred."


def _protected(resolver: Any) -> Any:
    return strawberry.field(resolver=resolver, permission_classes=[IsAuthenticated])


def _protected_mutation(resolver: Any) -> Any:
    return strawberry.mutation(resolver=resolver, permission_classes=[IsAuthenticated])


@strawberry.type
class Query:
    me: Optional[UserType] = _protected(resolvers.me)
    profile: Optional[UserType] = _protected(resolvers.profile)
    feed: Optional[list[PostType]] = _protected(resolvers.feed)
    post: Optional[PostType] = _protected(resolvers.post_by_id)
    comments: Optional[list[CommentType]] = _protected(resolvers.comments_for_post)


@strawberry.type
class Mutation:
    register: Optional[UserLoggedType] = strawberry.mutation(resolver=resolvers.register)
    login: Optional[UserLoggedType] = strawberry.mutation(resolver=resolvers.login)
    update_avatar: Optional[UserType] = _protected_mutation(resolvers.update_avatar)
    create_post: Optional[PostType] = _protected_mutation(resolvers.create_post)
    like_post: Optional[PostType] = _protected_mutation(resolvers.like_post)
    comment_post: Optional[CommentType] = _protected_mutation(resolvers.comment_post)
    follow: Optional[UserType] = _protected_mutation(resolvers.follow)


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------


def _is_unexpected(error: GraphQLError) -> bool:
    """True for errors raised by something other than the domain or GraphQL layer."""
    original = error.original_error
    return original is not None and not isinstance(original, (SocialError, GraphQLError))


class MaskUnexpectedErrors(MaskErrors):
    """MaskErrors that also tags the masked error with code internal_error."""

    def __init__(self) -> None:
        super().__init__(should_mask_error=_is_unexpected, error_message=UNEXPECTED_ERROR_MESSAGE)

    def anonymise_error(self, error: GraphQLError) -> GraphQLError:
        return GraphQLError(
            UNEXPECTED_ERROR_MESSAGE,
            nodes=error.nodes,
            source=error.source,
            positions=error.positions,
            path=error.path,
            extensions={"code": "internal_error"},
        )


class SocialSchema(strawberry.Schema):
    def process_errors(self, errors: list[GraphQLError], execution_context: Any = None) -> None:
        for error in errors:
            if _is_unexpected(error):
                logger.error("Resolver failed at %s", error.path, exc_info=error.original_error)
            else:
                logger.info("GraphQL error at %s: %s", error.path, error.message)


schema = SocialSchema(
    query=Query,
    mutation=Mutation,
    extensions=[
        # friends { friends { friends ... } } would otherwise be unbounded.
        QueryDepthLimiter(max_depth=10),
        MaskUnexpectedErrors,
    ],
)


def protected_operations() -> list[str]:
    """Wire names of the root operations that require a caller."""
    names = []
    for root in (Query, Mutation):
        for field in root.__strawberry_definition__.fields:
            if is_protected(field):
                names.append(field.graphql_name or to_camel_case(field.python_name))
    return names
