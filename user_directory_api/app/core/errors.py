"""
Error taxonomy shared by the service layer.

Services raise these exceptions instead of HTTP errors so that they
can be called from any boundary.  Each error carries a ``kind`` and a
human readable message; the API layer maps the kind to a status code
(see ``api/v1/errors.py``).  All errors derive from ``ValueError`` so
existing ``except ValueError`` handlers keep working.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class ErrorKind(str, Enum):
    BAD_REQUEST = "bad_request"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Violation:
    """A single failed check on an input field."""

    field: str
    message: str

    def as_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


class DirectoryError(ValueError):
    """Base class for locally detected, non‑retryable failures."""

    kind: ErrorKind = ErrorKind.BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BadRequestError(DirectoryError):
    """Malformed or contradictory input.

    ``violations`` holds the structured result of input validation when
    the error was produced by one of the ``validate_*`` functions.
    """

    kind = ErrorKind.BAD_REQUEST

    def __init__(self, message: str, violations: Optional[List[Violation]] = None) -> None:
        super().__init__(message)
        self.violations = violations or []


class ForbiddenError(DirectoryError):
    kind = ErrorKind.FORBIDDEN


class ConflictError(DirectoryError):
    kind = ErrorKind.CONFLICT


class NotFoundError(DirectoryError):
    kind = ErrorKind.NOT_FOUND

