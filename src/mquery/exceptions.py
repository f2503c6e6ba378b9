"""
Exceptions and exit statuses for mquery.

Every failure that ends a query is an ``MQueryError`` subclass carrying the
``QueryLevel`` the process exits with.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .core.document_model import Position


class QueryLevel(IntEnum):
    """Exit statuses. The ordinals are stable and used by scripts."""
    OK = 0          # successful query
    NOTFOUND = 1    # failed query
    ERROR = 2       # invalid input document
    UNSUPP = 3      # input needs unimplemented features
    BADARG = 4      # bad argument in invocation
    SYSERR = 5      # system error


class MQueryError(Exception):
    """Base exception for mquery operations."""

    level: QueryLevel = QueryLevel.ERROR

    def __init__(self, message: str, position: Optional[Position] = None):
        super().__init__(message)
        self.message = message
        self.position = position

    def __str__(self) -> str:
        if self.position is not None:
            return f"{self.position}: {self.message}"
        return self.message


class NotFoundError(MQueryError):
    """A required section, macro or list item is absent."""
    level = QueryLevel.NOTFOUND


class MalformedDocumentError(MQueryError):
    """The document violates a structural assumption."""
    level = QueryLevel.ERROR


class UnsupportedOptionError(MQueryError):
    """The query option is recognized but not implemented."""
    level = QueryLevel.UNSUPP


class BadArgumentError(MQueryError):
    """Invocation-level misuse."""
    level = QueryLevel.BADARG


class OutputError(MQueryError):
    """Writing to the output stream failed."""
    level = QueryLevel.SYSERR
