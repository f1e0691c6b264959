"""
slrp_economy.errors — Ledger error taxonomy
============================================

Services raise these; :mod:`slrp_economy.api.dispatcher` turns them into
JSON responses.  Business-rule rejections travel with HTTP 200 and an
``error`` field (the contract existing clients read), everything else gets
a real status code.  ``code`` is a stable machine-readable tag so clients
don't have to match on message text.
"""

from __future__ import annotations


class EconomyError(Exception):
    """Base class for every expected ledger failure."""

    status_code: int = 400
    code: str = "error"

    def __init__(self, message: str, *, code: str | None = None, **extra: object) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.extra = extra

    def to_body(self) -> dict:
        body: dict = {"error": self.message, "code": self.code}
        body.update(self.extra)
        return body


class AuthError(EconomyError):
    """Missing or invalid bearer credential."""

    status_code = 401
    code = "unauthenticated"


class AuthorizationError(EconomyError):
    """Authenticated, but not allowed (owner-only reads and edits)."""

    status_code = 403
    code = "forbidden"


class ValidationError(EconomyError):
    """Malformed request: bad amount, missing field, unknown action."""

    status_code = 400
    code = "invalid_request"


class BusinessRuleViolation(EconomyError):
    """A precondition of the action does not hold.  Nothing was mutated."""

    status_code = 200
    code = "rejected"


class ConcurrencyConflict(EconomyError):
    """An optimistic write kept losing to concurrent writers."""

    status_code = 409
    code = "conflict"
