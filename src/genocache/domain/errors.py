# genocache/domain/errors.py
from __future__ import annotations


class GenocacheError(Exception):
    """Base class for every error raised by genocache."""


class InvalidRangeError(GenocacheError, ValueError):
    """A range request that spans zero or fewer units."""


class RequestTooLargeError(GenocacheError, ValueError):
    """A range request above the fetcher's span ceiling. Never sent."""


class RemoteRequestError(GenocacheError):
    """Transport failure, HTTP status >= 400, or an errorCode in the body."""

    def __init__(self, message: str, *, url: str = "", status: int | None = None, text: str = "") -> None:
        super().__init__(message)
        self.url = url
        self.status = status
        self.text = text
