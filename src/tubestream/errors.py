"""Exceptions raised while resolving and delivering audio streams."""

from __future__ import annotations

from typing import Optional


class StreamError(Exception):
    """Base class for every tubestream failure."""


class NotStreamable(StreamError):
    """The resource exposes no encodings at all."""


class InvalidArgument(StreamError):
    """A stream option has an unusable value."""


class ResourceUnavailable(StreamError):
    """The origin of an encoding or manifest could not be reached."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class OutOfRange(StreamError):
    """A seek offset falls outside the playable duration."""

    def __init__(self, requested: float, lower: int, upper: int) -> None:
        super().__init__(f"Seeking beyond limit. [ {lower} - {upper}] (requested {requested})")
        self.requested = requested
        self.lower = lower
        self.upper = upper


class UnsupportedOperation(StreamError):
    """The requested operation is not available for this stream."""
