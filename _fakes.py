"""In-memory stand-ins for the HTTP transport used by the test modules."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Union


class FakeTransport:
    """Serves byte payloads and manifests from dictionaries and records calls."""

    def __init__(
        self,
        resources: Optional[Dict[str, bytes]] = None,
        texts: Optional[Dict[str, Union[str, List[str], Exception]]] = None,
        *,
        reachable: bool = True,
        lengths: Optional[Dict[str, int]] = None,
        chunk_size: int = 64,
    ) -> None:
        self.resources = resources or {}
        self.texts = texts or {}
        self.reachable = reachable
        self.lengths = lengths or {}
        self.chunk_size = chunk_size
        self.calls: list[tuple] = []

    async def probe(self, url: str) -> bool:
        self.calls.append(("probe", url))
        return self.reachable

    async def iter_range(self, url: str, start: int = 0, end: Optional[int] = None):
        self.calls.append(("range", url, start, end))
        data = self._slice(url, start, end)
        for offset in range(0, len(data), self.chunk_size):
            await asyncio.sleep(0)
            yield data[offset:offset + self.chunk_size]

    async def fetch(self, url: str, start: Optional[int] = None, end: Optional[int] = None) -> bytes:
        self.calls.append(("fetch", url, start, end))
        if start is None:
            return self.resources[url]
        return self._slice(url, start, end)

    async def fetch_text(self, url: str) -> str:
        self.calls.append(("text", url))
        value = self.texts[url]
        if isinstance(value, Exception):
            raise value
        if isinstance(value, list):
            return value.pop(0) if len(value) > 1 else value[0]
        return value

    async def content_length(self, url: str) -> int:
        self.calls.append(("length", url))
        return self.lengths[url]

    def _slice(self, url: str, start: int, end: Optional[int]) -> bytes:
        data = self.resources[url]
        return data[start:] if end is None else data[start:end + 1]


class StallingTransport(FakeTransport):
    """Sends one chunk per range request, then hangs until cancelled."""

    def __init__(self) -> None:
        super().__init__()
        self.cancelled = False

    async def iter_range(self, url: str, start: int = 0, end: Optional[int] = None):
        self.calls.append(("range", url, start, end))
        yield b"first"
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise


def ebml_element(element_id: bytes, payload: bytes) -> bytes:
    """Encode one EBML element with a one or two byte size."""
    size = len(payload)
    if size < 0x7F:
        encoded = bytes([0x80 | size])
    else:
        encoded = bytes([0x40 | (size >> 8), size & 0xFF])
    return element_id + encoded + payload


def webm_header(cues: List[tuple[int, int]], timecode_scale: int = 1_000_000) -> bytes:
    """Build an EBML header, an unknown-size Segment, Info and Cues.

    *cues* holds ``(time_in_ticks, cluster_position)`` pairs.
    """
    ebml = ebml_element(b"\x1a\x45\xdf\xa3", b"")
    segment_start = b"\x18\x53\x80\x67" + b"\x01\xff\xff\xff\xff\xff\xff\xff"
    info = ebml_element(
        b"\x15\x49\xa9\x66",
        ebml_element(b"\x2a\xd7\xb1", timecode_scale.to_bytes(3, "big")),
    )
    points = b"".join(
        ebml_element(
            b"\xbb",
            ebml_element(b"\xb3", time.to_bytes(2, "big"))
            + ebml_element(b"\xb7", ebml_element(b"\xf1", position.to_bytes(2, "big"))),
        )
        for time, position in cues
    )
    return ebml + segment_start + info + ebml_element(b"\x1c\x53\xbb\x6b", points)


# Bytes before the Segment payload in ``webm_header`` output.
WEBM_SEGMENT_OFFSET = 5 + 4 + 8
