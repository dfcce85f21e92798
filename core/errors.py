"""
core/errors.py -- Domain exception hierarchy for socialgraph.

Every failure a caller can observe is a SocialError subclass carrying a
machine-readable `code` and a client-safe `message`. Raised inside a GraphQL
resolver, the error becomes an entry in the response `errors` list and
`extensions` carries the code there. Nothing below api/ knows about HTTP.

Layer rule: core/ is the kernel. No imports from api/, auth/, graph/ or social/.
"""

from __future__ import annotations

from typing import Optional


class SocialError(Exception):
    """Base class for all domain errors."""

    code: str = "error"
    message: str = "The operation failed."

    def __init__(self, message: Optional[str] = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    @property
    def extensions(self) -> dict[str, str]:
        return {"code": self.code}


class Unauthenticated(SocialError):
    """A protected operation was invoked without a valid caller identity."""

    code = "unauthenticated"
    message = "You are not authorized to access this resource."


class InvalidCredentials(SocialError):
    """Login failed. Unknown email and wrong password are indistinguishable."""

    code = "invalid_credentials"
    message = "Invalid email or password."


class Conflict(SocialError):
    """A write violated a uniqueness constraint."""

    code = "conflict"
    message = "The record conflicts with an existing one."


class DuplicateEmail(Conflict):
    code = "duplicate_email"
    message = "This email is already registered."


class NotFound(SocialError):
    code = "not_found"
    message = "The requested record does not exist."


class RepositoryUnavailable(SocialError):
    """The database could not serve the request. Not retried here."""

    code = "repository_unavailable"
    message = "The data store is unavailable."


class InvalidInput(SocialError):
    """Argument values were well-formed but unacceptable (e.g. an empty password)."""

    code = "invalid_input"
    message = "The input is not acceptable."
