"""
auth/context.py -- Per-request context handed to every GraphQL resolver.

Pattern: Context object. The context is built once per request by
auth/dependencies.get_request_context() and reaches resolvers as
info.context. caller_id is the only authorization input: None means the
request is anonymous, which is legal until a protected field is reached.

It subclasses strawberry's BaseContext so GraphQLRouter can attach the
request and the sub-response (used to set response headers). Outside HTTP
(CLI, tests) both stay None.

Layer rule: no imports from api/ or graph/.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from strawberry.fastapi import BaseContext

if TYPE_CHECKING:
    from auth.tokens import TokenCodec
    from core.config import Settings
    from social.store import SocialStore


class RequestContext(BaseContext):
    """Everything a resolver may consult while serving one request."""

    def __init__(
        self,
        store: SocialStore,
        tokens: TokenCodec,
        settings: Settings,
        caller_id: Optional[str] = None,
    ) -> None:
        super().__init__()
        self.store = store
        self.tokens = tokens
        self.settings = settings
        self.caller_id = caller_id

    @property
    def is_authenticated(self) -> bool:
        return self.caller_id is not None
