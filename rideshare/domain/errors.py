"""
Domain error taxonomy.

Every expected, user-facing failure is a ``DomainError`` tagged with an
``ErrorKind``.  Each kind carries a stable code, a fixed ``ErrorCategory``
and a default message; the HTTP layer maps the category to a status code
through a lookup table.

Anything that is *not* a ``DomainError`` (lost connections, serialisation
failures, broken invariants) is an infrastructure failure and propagates
untouched.
"""

from __future__ import annotations

import enum
from typing import Optional


class ErrorCategory(str, enum.Enum):
    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"


class ErrorKind(enum.Enum):
    INVALID_INPUT = ("invalid_input", ErrorCategory.INVALID_INPUT, "Invalid input")
    RIDE_NOT_FOUND = ("ride_not_found", ErrorCategory.NOT_FOUND, "Ride not found")
    REQUEST_NOT_FOUND = (
        "request_not_found",
        ErrorCategory.NOT_FOUND,
        "Ride request not found",
    )
    UNAUTHORIZED = (
        "unauthorized",
        ErrorCategory.FORBIDDEN,
        "You are not authorized to perform this action",
    )
    SELF_REQUEST = (
        "self_request",
        ErrorCategory.CONFLICT,
        "You cannot request your own ride",
    )
    RIDE_INACTIVE = (
        "ride_inactive",
        ErrorCategory.CONFLICT,
        "This ride is not accepting requests",
    )
    RIDE_FULL = ("ride_full", ErrorCategory.CONFLICT, "This ride has no available seats")
    DUPLICATE_REQUEST = (
        "duplicate_request",
        ErrorCategory.CONFLICT,
        "You have already requested this ride",
    )
    REQUEST_ALREADY_ACCEPTED = (
        "request_already_accepted",
        ErrorCategory.CONFLICT,
        "Request is already accepted",
    )
    REQUEST_NOT_ACCEPTED = (
        "request_not_accepted",
        ErrorCategory.CONFLICT,
        "Request is not currently accepted",
    )

    def __init__(self, code: str, category: ErrorCategory, default_message: str):
        self.code = code
        self.category = category
        self.default_message = default_message


class DomainError(Exception):
    """An expected failure of a domain operation."""

    def __init__(self, kind: ErrorKind, message: Optional[str] = None):
        self.kind = kind
        self.message = message or kind.default_message
        super().__init__(self.message)

    @property
    def category(self) -> ErrorCategory:
        return self.kind.category

    def __repr__(self) -> str:
        return f"DomainError({self.kind.name}, {self.message!r})"


def invalid_input(message: str) -> DomainError:
    return DomainError(ErrorKind.INVALID_INPUT, message)
