"""
social/models.py -- Domain dataclasses for the social graph.

These are pure data containers with zero logic. Relationship resolution lives
in graph/resolvers.py; persistence in social/store.py. References between
entities are plain id strings -- nothing is embedded.

id is None before the record is written to the database.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class User:
    """A registered member.

    password_hash is never part of any outward projection: graph/resolvers.py
    registers no field that reads it.

    friends is append-only and may contain duplicates (follow is not idempotent).
    """

    first_name: str
    last_name: str
    email: str
    password_hash: str
    id: Optional[str] = None
    avatar: Optional[str] = None  # URL
    friends: list[str] = field(default_factory=list)
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""


@dataclass
class Post:
    """A post owned by one user. likes holds liker ids, duplicates included."""

    title: str
    content: str
    creator: str  # User.id
    id: Optional[str] = None
    likes: list[str] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Comment:
    message: str
    post_id: str  # Post.id
    creator: str  # User.id
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
