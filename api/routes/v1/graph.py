"""
api/routes/v1/graph.py -- GraphQL endpoint.

Routes:
  POST /api/v1/graph  -- execute a GraphQL query or mutation document

Auth policy:
  The endpoint itself is public. The caller identity is resolved softly by
  get_request_context(); protected fields reject anonymous callers
  individually (see auth/policy.py), so register/login and protected fields
  can share one request.

A failed field is null in "data" and described in "errors" with
extensions.code, while its siblings still resolve. GET queries and the
in-browser IDE are disabled.
"""

from __future__ import annotations

from strawberry.fastapi import GraphQLRouter

from auth.dependencies import get_request_context
from graph.schema import schema

router = GraphQLRouter(
    schema,
    path="/graph",
    context_getter=get_request_context,
    graphql_ide=None,
    allow_queries_via_get=False,
)
