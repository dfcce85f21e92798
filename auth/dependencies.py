"""
auth/dependencies.py -- FastAPI Depends() helpers for caller identity.

The credential travels in the Authorization header, either as a bare token or
as "Bearer <token>". Resolution is soft: a missing, expired or tampered token
yields an anonymous context, never an HTTP error. Rejection happens later and
per field, in auth/policy.IsAuthenticated, so public operations (register,
login) share the endpoint with protected ones.

Layer rule: no imports from graph/. auth/dependencies.py may import from
fastapi because it is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request

from auth.context import RequestContext


def resolve_caller(request: Request) -> Optional[str]:
    """Return the user id bound to the request's token, or None. Never raises."""
    codec = request.app.state.tokens
    return codec.bearer_subject(request.headers.get("Authorization"))


def get_request_context(request: Request) -> RequestContext:
    """Build the per-request resolver context.

    Used as the GraphQLRouter context_getter, which resolves it like any
    FastAPI dependency:
        GraphQLRouter(schema, context_getter=get_request_context)
    """
    state = request.app.state
    return RequestContext(
        store=state.store,
        tokens=state.tokens,
        settings=state.settings,
        caller_id=resolve_caller(request),
    )
