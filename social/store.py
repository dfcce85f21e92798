"""
social/store.py -- SQLAlchemy Core persistence layer for users, posts and comments.

Uses SQLAlchemy Core (not ORM) so the dataclasses in social/models.py remain
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change.

Pattern: Repository + Data Mapper. SocialStore owns one Collection per entity;
each Collection offers the same document-style contract:

    find_one(criteria)         -> entity | None
    find(criteria, sort=None)  -> list[entity]
    create(**fields)           -> entity   (assigns id and timestamps)
    save(entity)               -> entity   (upsert keyed by id, last write wins)

Criteria are dicts of attribute name -> value (equality) or In(values)
(set membership). The _row_to_* / _*_values functions are the mappers.
Resolver code never touches SQL directly.

Errors: IntegrityError becomes core.errors.Conflict; any other SQLAlchemy
error becomes RepositoryUnavailable. Nothing is retried here.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = SocialStore("sqlite:///:memory:")
    user = store.users.create(first_name="Ada", last_name="L", email="a@x.com", password_hash=h)
    posts = store.posts.find({"creator": In(user.friends)}, sort=[("created_at", ASC)])
    store.close()
"""

import json
import logging
import uuid
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Generic, Optional, TypeVar

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.errors import Conflict, RepositoryUnavailable
from social.models import Comment, Post, User

logger = logging.getLogger("socialgraph.store")

ASC = 1
DESC = -1

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Schema
#
# seq is the physical primary key: it gives a stable insertion order that
# breaks created_at ties. id is the opaque identifier exposed to callers.
# ---------------------------------------------------------------------------

metadata = MetaData()

_users = Table(
    "users",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String(32), nullable=False, unique=True),
    Column("first_name", String(255), nullable=False),
    Column("last_name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True, index=True),
    Column("password_hash", Text, nullable=False),
    Column("avatar", Text),
    Column("friends", Text, nullable=False, server_default="[]"),  # JSON array of user ids
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_posts = Table(
    "posts",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String(32), nullable=False, unique=True),
    Column("title", String(255), nullable=False),
    Column("content", Text, nullable=False),
    Column("creator", String(32), nullable=False),
    Column("likes", Text, nullable=False, server_default="[]"),  # JSON array of user ids
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Index("ix_posts_creator", "creator"),
)

_comments = Table(
    "comments",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String(32), nullable=False, unique=True),
    Column("message", Text, nullable=False),
    Column("post_id", String(32), nullable=False),
    Column("creator", String(32), nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Index("ix_comments_post_id", "post_id"),
)


# ---------------------------------------------------------------------------
# Criteria
# ---------------------------------------------------------------------------


class In:
    """Set-membership predicate: In(["a", "b"]) matches rows whose field is a or b."""

    def __init__(self, values: Iterable[Any]) -> None:
        self.values = list(values)

    def __repr__(self) -> str:
        return f"In({self.values!r})"


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


class Collection(Generic[T]):
    """Document-style access to one table.

    to_values maps an entity to column values; from_row maps a row back.
    Both are plain functions so each entity keeps an explicit mapper.
    """

    def __init__(
        self,
        engine: Engine,
        table: Table,
        entity_cls: type[T],
        to_values: Callable[[T], dict],
        from_row: Callable[[Any], T],
    ) -> None:
        self._engine = engine
        self._table = table
        self._entity_cls = entity_cls
        self._to_values = to_values
        self._from_row = from_row

    @property
    def name(self) -> str:
        return self._table.name

    @contextmanager
    def _translate_errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError as exc:
            logger.info("%s on %s rejected by a constraint", action, self.name)
            raise Conflict() from exc
        except SQLAlchemyError as exc:
            logger.error("%s on %s failed: %s", action, self.name, exc.__class__.__name__)
            raise RepositoryUnavailable() from exc

    def _select(self, criteria: dict):
        query = self._table.select()
        for key, value in criteria.items():
            if key not in self._table.c or key == "seq":
                raise ValueError(f"Unknown criteria field for {self.name}: {key!r}")
            column = self._table.c[key]
            if isinstance(value, In):
                query = query.where(column.in_(value.values))
            else:
                query = query.where(column == value)
        return query

    def find_one(self, criteria: dict) -> Optional[T]:
        """Return the first matching entity, or None."""
        query = self._select(criteria).order_by(self._table.c.seq).limit(1)
        with self._translate_errors("find_one"), self._engine.connect() as conn:
            row = conn.execute(query).fetchone()
        return self._from_row(row) if row is not None else None

    def find(self, criteria: dict, sort: Optional[list[tuple[str, int]]] = None) -> list[T]:
        """Return every matching entity.

        sort is a list of (field, ASC|DESC). Insertion order breaks ties and is
        the order used when no sort is given.
        """
        order = []
        for key, direction in sort or []:
            if key not in self._table.c:
                raise ValueError(f"Unknown sort field for {self.name}: {key!r}")
            column = self._table.c[key]
            order.append(column.desc() if direction == DESC else column.asc())
        order.append(self._table.c.seq)
        query = self._select(criteria).order_by(*order)
        with self._translate_errors("find"), self._engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [self._from_row(r) for r in rows]

    def create(self, **fields) -> T:
        """Build an entity from fields, assign id and timestamps, and insert it.

        Raises Conflict if a unique column (e.g. users.email) already holds the value.
        """
        entity = self._entity_cls(**fields)
        now = _now_iso()
        entity.id = _new_id()
        entity.created_at = now
        entity.updated_at = now
        with self._translate_errors("create"), self._engine.connect() as conn:
            conn.execute(self._table.insert().values(**self._to_values(entity)))
            conn.commit()
        return entity

    def save(self, entity: T) -> T:
        """Persist the entity: update by id, or insert when no row has that id.

        Last write wins. There is no version check, so concurrent
        read-modify-write sequences on the same row may lose updates.
        """
        now = _now_iso()
        if entity.id is None:
            entity.id = _new_id()
        if not entity.created_at:
            entity.created_at = now
        entity.updated_at = now
        values = self._to_values(entity)
        with self._translate_errors("save"), self._engine.connect() as conn:
            result = conn.execute(self._table.update().where(self._table.c.id == entity.id).values(**values))
            if result.rowcount == 0:
                conn.execute(self._table.insert().values(**values))
            conn.commit()
        return entity


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SocialStore:
    """Repository for User, Post and Comment entities.

    Usage:
        store = SocialStore(settings.database_url)
        ada = store.users.create(first_name="Ada", last_name="Lovelace", email="ada@x.com", password_hash=h)
        store.posts.create(title="Hi", content="First post", creator=ada.id)
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # Resolvers run in worker threads (asyncio.to_thread), so pooled
            # connections are shared across threads.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

        self.users: Collection[User] = Collection(self.engine, _users, User, _user_values, _row_to_user)
        self.posts: Collection[Post] = Collection(self.engine, _posts, Post, _post_values, _row_to_post)
        self.comments: Collection[Comment] = Collection(
            self.engine, _comments, Comment, _comment_values, _row_to_comment
        )

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.warning("Database ping failed", exc_info=True)
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Mappers (Data Mapper pattern -- domain dataclass <-> DB row)
# ---------------------------------------------------------------------------


def _user_values(user: User) -> dict:
    values = asdict(user)
    values["friends"] = json.dumps(user.friends)
    return values


def _post_values(post: Post) -> dict:
    values = asdict(post)
    values["likes"] = json.dumps(post.likes)
    return values


def _comment_values(comment: Comment) -> dict:
    return asdict(comment)


def _row_to_user(row) -> User:
    friends: list[str] = json.loads(row.friends) if row.friends else []
    return User(
        id=row.id,
        first_name=row.first_name,
        last_name=row.last_name,
        email=row.email,
        password_hash=row.password_hash,
        avatar=row.avatar,
        friends=friends,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_post(row) -> Post:
    likes: list[str] = json.loads(row.likes) if row.likes else []
    return Post(
        id=row.id,
        title=row.title,
        content=row.content,
        creator=row.creator,
        likes=likes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_comment(row) -> Comment:
    return Comment(
        id=row.id,
        message=row.message,
        post_id=row.post_id,
        creator=row.creator,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
