"""Dataclasses and enums shared by the resolver and the delivery streams."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .errors import InvalidArgument


class StreamType(str, Enum):
    """Payload layout a downstream player should expect."""

    ARBITRARY = "arbitrary"
    RAW = "raw"
    WEBM_OPUS = "webm/opus"


class StrategyKind(str, Enum):
    """Delivery strategy a resolved stream uses."""

    LIVE = "live"
    SEEKABLE = "seekable"
    SEQUENTIAL = "sequential"


@dataclass(frozen=True)
class ByteRange:
    """Inclusive byte range declared by the extractor."""

    start: int
    end: int

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> Optional["ByteRange"]:
        if not raw:
            return None
        start = _maybe_int(raw.get("start"))
        end = _maybe_int(raw.get("end"))
        if start is None or end is None:
            return None
        return cls(start=start, end=end)


@dataclass(frozen=True)
class EncodingDescriptor:
    """One rendition of a resource as reported by the extractor."""

    mime_type: str
    url: str
    content_length: Optional[int] = None
    bitrate: Optional[int] = None
    itag: Optional[int] = None
    index_range: Optional[ByteRange] = None
    init_range: Optional[ByteRange] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "EncodingDescriptor":
        """Build a descriptor from an extractor format dict (camelCase keys)."""
        return cls(
            mime_type=str(raw.get("mimeType") or ""),
            url=str(raw.get("url") or ""),
            content_length=_maybe_int(raw.get("contentLength")),
            bitrate=_maybe_int(raw.get("bitrate")),
            itag=_maybe_int(raw.get("itag")),
            index_range=ByteRange.from_dict(raw.get("indexRange")),
            init_range=ByteRange.from_dict(raw.get("initRange")),
        )


@dataclass(frozen=True)
class AudioEncoding(EncodingDescriptor):
    """Audio-only descriptor with codec and container parsed from its MIME type."""

    codec: str = ""
    container: str = ""

    @property
    def stream_type(self) -> StreamType:
        if self.codec == "opus" and self.container == "webm":
            return StreamType.WEBM_OPUS
        return StreamType.ARBITRARY


@dataclass(frozen=True)
class LiveStreamData:
    """Live status flags of a resource."""

    is_live: bool = False
    dash_manifest_url: Optional[str] = None
    hls_manifest_url: Optional[str] = None


@dataclass(frozen=True)
class ResourceMetadata:
    """Everything the resolver needs to know about one resource."""

    formats: Tuple[EncodingDescriptor, ...]
    duration: int
    url: str
    live: LiveStreamData = field(default_factory=LiveStreamData)

    @classmethod
    def from_dict(cls, info: Dict[str, Any]) -> "ResourceMetadata":
        """Build metadata from the extractor's info payload.

        Expected keys are ``format`` (list of format dicts),
        ``LiveStreamData`` and ``video_details``.  Entries of ``format``
        that are not mappings are ignored.
        """
        raw_formats = info.get("format") or []
        formats = tuple(
            EncodingDescriptor.from_dict(entry)
            for entry in raw_formats
            if isinstance(entry, dict)
        )

        live_raw = info.get("LiveStreamData") or {}
        live = LiveStreamData(
            is_live=bool(live_raw.get("isLive", False)),
            dash_manifest_url=live_raw.get("dashManifestUrl") or None,
            hls_manifest_url=live_raw.get("hlsManifestUrl") or None,
        )

        details = info.get("video_details") or {}
        return cls(
            formats=formats,
            duration=_maybe_int(details.get("durationInSec")) or 0,
            url=str(details.get("url") or ""),
            live=live,
        )


@dataclass(frozen=True)
class StreamOptions:
    """Per-request stream options.

    Instances are immutable; :meth:`normalized` returns a validated copy.
    """

    quality: Optional[float] = None
    seek: Optional[float] = None
    language: Optional[str] = None
    precache: Optional[int] = None
    player_compatibility: bool = False

    def normalized(self) -> "StreamOptions":
        """Return a copy with an integral quality and a numeric seek offset."""
        quality = self.quality
        if quality is not None:
            if isinstance(quality, bool) or not isinstance(quality, (int, float)):
                raise InvalidArgument("Quality must be set to an integer.")
            if isinstance(quality, float):
                if not quality.is_integer():
                    raise InvalidArgument("Quality must be set to an integer.")
                quality = int(quality)

        seek = self.seek if self.seek is not None else 0
        if isinstance(seek, bool) or not isinstance(seek, (int, float)):
            raise InvalidArgument("Seek must be a number of seconds.")
        return replace(self, quality=quality, seek=seek)


@dataclass
class ClientConfig:
    """Transport and delivery tuning."""

    chunk_size: int = 64 * 1024
    queue_size: int = 16
    poll_interval: float = 4.0
    max_manifest_failures: int = 5
    connect_timeout: float = 30.0
    read_timeout: float = 60.0
    headers: Dict[str, str] | None = None
    probe_path: str = "/generate_204"
    default_precache: int = 3


def _maybe_int(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
