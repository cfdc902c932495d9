"""Range-addressed delivery of WebM/Opus encodings."""

from __future__ import annotations

import logging
import math
from typing import AsyncGenerator, Optional

from .delivery import DeliveryStream
from .errors import OutOfRange
from .models import AudioEncoding, ClientConfig, StrategyKind, StreamOptions, StreamType
from .transport import Transport
from .webm import WebmParseError, parse_cues

logger = logging.getLogger(__name__)


def validate_seek(seek: float, duration: int) -> None:
    """Raise :class:`OutOfRange` unless ``0 <= seek <= duration - 1``."""
    if seek < 0 or seek >= duration:
        raise OutOfRange(seek, 0, duration - 1)


class SeekStream(DeliveryStream):
    """WebM/Opus stream that can start at any second of the encoding.

    Seeking fetches the header up to the end of the index range, looks the
    target time up in the WebM cues and continues from that cluster.  If
    the cues are unreadable the offset is estimated from the bitrate.

    ``bytes_count`` counts the bytes delivered since the last (re)start and
    ``cursor`` is the file offset of the next byte to fetch.
    """

    kind = StrategyKind.SEEKABLE

    def __init__(
        self,
        transport: Transport,
        encoding: AudioEncoding,
        duration: int,
        header_length: int,
        content_length: int,
        bitrate: int,
        video_url: str,
        options: Optional[StreamOptions] = None,
        config: Optional[ClientConfig] = None,
    ) -> None:
        super().__init__(
            transport,
            url=encoding.url,
            stream_type=StreamType.WEBM_OPUS,
            video_url=video_url,
            config=config,
        )
        self.encoding = encoding
        self.duration = duration
        self.header_length = header_length
        self.content_length = content_length
        self.per_sec_bytes = math.ceil(bitrate / 8) if bitrate else 0
        self.options = options or StreamOptions()
        self.seek_time: float = self.options.seek or 0
        validate_seek(self.seek_time, duration)
        self.bytes_count = 0
        self.cursor = 0

    async def seek(self, seconds: float) -> None:
        """Restart delivery at *seconds* without rebuilding the stream."""
        validate_seek(seconds, self.duration)
        await self._restart()
        self.seek_time = seconds
        logger.info("Seeking %s to %ss", self.video_url, seconds)

    async def _chunks(self) -> AsyncGenerator[bytes, None]:
        last = self.content_length - 1
        self.bytes_count = 0
        if self.seek_time == 0:
            async for chunk in self._range(0, last):
                yield chunk
            return

        header = await self.transport.fetch(self.url, 0, min(self.header_length, last))
        self.bytes_count = len(header)
        self.cursor = min(self.header_length, last) + 1
        yield header

        offset = self._locate(header, self.seek_time)
        if offset > last:
            logger.warning("Header of %s covers the whole encoding", self.video_url)
            return
        logger.debug("Seek to %ss of %s maps to byte %s", self.seek_time, self.video_url, offset)
        async for chunk in self._range(offset, last):
            yield chunk

    async def _range(self, start: int, end: int) -> AsyncGenerator[bytes, None]:
        self.cursor = start
        async for chunk in self.transport.iter_range(self.url, start, end):
            self.bytes_count += len(chunk)
            self.cursor += len(chunk)
            yield chunk

    def _locate(self, header: bytes, seconds: float) -> int:
        offset: Optional[int] = None
        try:
            offset = parse_cues(header).offset_for(seconds)
        except WebmParseError as exc:
            logger.warning("Unreadable WebM cues for %s: %s", self.video_url, exc)
        if offset is None:
            offset = self.header_length + 1 + int(seconds * self.per_sec_bytes)
        return max(min(offset, self.content_length - 1), self.header_length + 1)
