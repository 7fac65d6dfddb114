"""
Error types raised by place-reverse.

Every error derives from PlaceReverseError and from the builtin exception
that best describes it, so callers may catch either.
"""

from typing import Optional


class PlaceReverseError(Exception):
    """Base class for all place-reverse errors."""


class EmptyDatasetError(PlaceReverseError, ValueError):
    """Raised when an index is built from zero records."""


class EmptyIndexError(PlaceReverseError, LookupError):
    """Raised when a query is issued against an index with no records."""


class MalformedRecordError(PlaceReverseError, ValueError):
    """Raised when a dataset line cannot be parsed into a valid record."""

    def __init__(self, message: str, line_number: Optional[int] = None, line: Optional[str] = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number
        self.line = line


class MalformedDatasetError(PlaceReverseError, ValueError):
    """Raised when a dataset container holds no usable data entry."""
