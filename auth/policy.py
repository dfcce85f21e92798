"""
auth/policy.py -- Access policy enforcement for GraphQL fields.

A field is marked protected once, where it is declared in the schema
(graph/schema.py), by listing IsAuthenticated in its permission_classes.
strawberry evaluates the permission before the resolver, so every protected
field shares this single check and a new protected operation needs no
authorization code of its own.

Per invocation the check ends in exactly one of:
  rejected   -- no caller identity in the context; the field resolves to null
                with an "unauthenticated" error and the resolver never runs.
  authorized -- the resolver runs; its result or error passes through
                untouched.

Layer rule: no imports from api/ or graph/.
"""

from __future__ import annotations

import logging
from typing import Any

from strawberry.permission import BasePermission
from strawberry.types import Info

from core.errors import Unauthenticated

logger = logging.getLogger("socialgraph.auth")


class IsAuthenticated(BasePermission):
    """Allow the field only when the request carries a valid session token.

    Usage:
        me: Optional[UserType] = strawberry.field(resolver=me, permission_classes=[IsAuthenticated])
    """

    message = Unauthenticated.message
    error_extensions = {"code": Unauthenticated.code}

    def has_permission(self, source: Any, info: Info, **kwargs: Any) -> bool:
        if info.context.is_authenticated:
            return True
        logger.info("Rejected anonymous call to %s", info.field_name)
        return False


def is_protected(field: Any) -> bool:
    """True if a strawberry field is guarded by IsAuthenticated."""
    return any(permission is IsAuthenticated for permission in getattr(field, "permission_classes", []))
