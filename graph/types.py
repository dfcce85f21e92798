"""
graph/types.py -- GraphQL object types.

The parent value behind every type is the domain object itself (social/models.py
or the small result dataclasses in graph/resolvers.py), so plain attributes
resolve by name and relations go through the resolver functions. strawberry
camel-cases the Python names on the wire (first_name -> firstName).

User has no password_hash field: the hash can never be selected.
"""

from __future__ import annotations

from typing import Optional

import strawberry

from graph import resolvers


@strawberry.type(name="Avatar")
class AvatarType:
    url: Optional[str]


@strawberry.type(name="User")
class UserType:
    id: strawberry.ID
    first_name: str
    last_name: str
    email: str
    created_at: str
    display_name: str = strawberry.field(resolver=resolvers.user_display_name)
    avatar: AvatarType = strawberry.field(resolver=resolvers.user_avatar)
    friends: Optional[list[UserType]] = strawberry.field(resolver=resolvers.user_friends)
    posts: Optional[list[PostType]] = strawberry.field(resolver=resolvers.user_posts)


@strawberry.type(name="Post")
class PostType:
    id: strawberry.ID
    title: str
    content: str
    created_at: str
    likes: int = strawberry.field(resolver=resolvers.post_likes)
    creator: Optional[UserType] = strawberry.field(resolver=resolvers.post_creator)
    comments: Optional[list[CommentType]] = strawberry.field(resolver=resolvers.post_comments)


@strawberry.type(name="Comment")
class CommentType:
    id: strawberry.ID
    message: str
    post_id: strawberry.ID
    created_at: str
    creator: Optional[UserType] = strawberry.field(resolver=resolvers.comment_creator)
    post: Optional[PostType] = strawberry.field(resolver=resolvers.comment_parent_post)


@strawberry.type(name="UserLogged")
class UserLoggedType:
    user: UserType
    token: str
