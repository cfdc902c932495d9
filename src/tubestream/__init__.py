"""tubestream: resolve extracted video metadata into playable audio streams."""

from .errors import (
    InvalidArgument,
    NotStreamable,
    OutOfRange,
    ResourceUnavailable,
    StreamError,
    UnsupportedOperation,
)
from .live import LiveStream
from .models import ClientConfig, ResourceMetadata, StrategyKind, StreamOptions, StreamType
from .resolver import stream, stream_from_info
from .seekable import SeekStream
from .sequential import Stream
from .transport import AiohttpTransport

__all__ = [
    "AiohttpTransport",
    "ClientConfig",
    "InvalidArgument",
    "LiveStream",
    "NotStreamable",
    "OutOfRange",
    "ResourceMetadata",
    "ResourceUnavailable",
    "SeekStream",
    "StrategyKind",
    "Stream",
    "StreamError",
    "StreamOptions",
    "StreamType",
    "UnsupportedOperation",
    "stream",
    "stream_from_info",
]
