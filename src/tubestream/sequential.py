"""Forward-only delivery of a whole encoding."""

from __future__ import annotations

import logging
from typing import AsyncGenerator, Optional

from .delivery import DeliveryStream
from .models import ClientConfig, EncodingDescriptor, StrategyKind, StreamOptions, StreamType
from .transport import Transport

logger = logging.getLogger(__name__)


class Stream(DeliveryStream):
    """Streams ``bytes=0-(content_length - 1)`` of an encoding in one request."""

    kind = StrategyKind.SEQUENTIAL

    def __init__(
        self,
        transport: Transport,
        encoding: EncodingDescriptor,
        stream_type: StreamType,
        duration: int,
        content_length: int,
        video_url: str,
        options: Optional[StreamOptions] = None,
        config: Optional[ClientConfig] = None,
    ) -> None:
        super().__init__(
            transport,
            url=encoding.url,
            stream_type=stream_type,
            video_url=video_url,
            config=config,
        )
        self.encoding = encoding
        self.duration = duration
        self.content_length = content_length
        self.options = options or StreamOptions()
        self.bytes_count = 0

    async def _chunks(self) -> AsyncGenerator[bytes, None]:
        if self.content_length <= 0:
            return
        logger.info("Streaming %s bytes of %s", self.content_length, self.video_url)
        async for chunk in self.transport.iter_range(self.url, 0, self.content_length - 1):
            self.bytes_count += len(chunk)
            yield chunk
