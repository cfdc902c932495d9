"""Choose an encoding and a delivery strategy for a resource."""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Union
from urllib.parse import urlparse

from .errors import NotStreamable, ResourceUnavailable, UnsupportedOperation
from .formats import select_format
from .live import LiveStream
from .models import (
    AudioEncoding,
    ClientConfig,
    EncodingDescriptor,
    ResourceMetadata,
    StreamOptions,
    StreamType,
)
from .seekable import SeekStream, validate_seek
from .sequential import Stream
from .transport import Transport

logger = logging.getLogger(__name__)

ResolvedStream = Union[LiveStream, SeekStream, Stream]


class MetadataExtractor(Protocol):
    """Source of :class:`ResourceMetadata` for a resource URL."""

    async def fetch_info(self, url: str, *, language: Optional[str] = None) -> ResourceMetadata:
        ...


def probe_url(encoding_url: str, config: ClientConfig) -> str:
    """Reachability endpoint on the host serving *encoding_url*."""
    return f"https://{urlparse(encoding_url).netloc}{config.probe_path}"


async def stream(
    url: str,
    extractor: MetadataExtractor,
    transport: Transport,
    options: Optional[StreamOptions] = None,
    config: Optional[ClientConfig] = None,
) -> ResolvedStream:
    """Fetch metadata for *url* and resolve it into a delivery stream."""
    options = options or StreamOptions()
    info = await extractor.fetch_info(url, language=options.language)
    return await stream_from_info(info, transport, options, config)


async def stream_from_info(
    info: ResourceMetadata,
    transport: Transport,
    options: Optional[StreamOptions] = None,
    config: Optional[ClientConfig] = None,
) -> ResolvedStream:
    """Resolve already extracted metadata into a delivery stream.

    Raises
    ------
    NotStreamable
        The resource has no formats (upcoming or premiere videos).
    InvalidArgument
        ``options.quality`` is not a whole number, or ``options.seek`` is
        not a number.
    ResourceUnavailable
        The origin host failed the reachability probe, or the content
        length could not be determined.
    OutOfRange
        ``options.seek`` lies outside ``[0, duration - 1]``.
    UnsupportedOperation
        A seek was requested with ``player_compatibility`` set, or on a
        WebM/Opus encoding without a declared index range.
    """
    config = config or ClientConfig()
    if not info.formats:
        raise NotStreamable(
            "Upcoming and premiere videos that are not currently live cannot be streamed."
        )
    options = (options or StreamOptions()).normalized()

    if info.live.is_live and info.live.dash_manifest_url is not None and info.duration == 0:
        logger.info("Resolved %s as a live stream", info.url)
        return LiveStream(
            transport,
            info.formats[-1],
            info.live.dash_manifest_url,
            info.url,
            precache=options.precache,
            config=config,
        )

    final = select_format(info.formats, options.quality)
    stream_type = _stream_type(final)

    probe = probe_url(final.url, config)
    if not await transport.probe(probe):
        raise ResourceUnavailable(f"Origin of the selected format is unreachable: {probe}", url=probe)

    if stream_type is StreamType.WEBM_OPUS:
        if options.player_compatibility:
            if options.seek:
                raise UnsupportedOperation(
                    "Can not seek with player_compatibility set to true."
                )
        else:
            validate_seek(options.seek, info.duration)
            if final.index_range is not None:
                content_length = final.content_length or await transport.content_length(final.url)
                logger.info("Resolved %s as a seekable %s stream", info.url, final.mime_type)
                return SeekStream(
                    transport,
                    final,
                    info.duration,
                    final.index_range.end,
                    content_length,
                    final.bitrate or 0,
                    info.url,
                    options,
                    config=config,
                )
            if options.seek:
                raise UnsupportedOperation(
                    f"Can not seek in {final.url}: no index range was declared."
                )

    if final.content_length:
        content_length = final.content_length
    else:
        content_length = await transport.content_length(final.url)

    logger.info("Resolved %s as a sequential %s stream", info.url, final.mime_type)
    return Stream(
        transport,
        final,
        stream_type,
        info.duration,
        content_length,
        info.url,
        options,
        config=config,
    )


def _stream_type(encoding: EncodingDescriptor) -> StreamType:
    if isinstance(encoding, AudioEncoding):
        return encoding.stream_type
    return StreamType.ARBITRARY
