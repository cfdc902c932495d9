"""Manifest-driven delivery of live broadcasts."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncGenerator, List, Optional

from lxml import etree

from .dash_parser import DashManifest, DashParser, DashRepresentation, DashSegment
from .delivery import DeliveryStream
from .errors import ResourceUnavailable
from .models import ClientConfig, EncodingDescriptor, StrategyKind, StreamType
from .transport import Transport

logger = logging.getLogger(__name__)


class LiveStream(DeliveryStream):
    """Follows the live edge of a DASH manifest.

    The manifest is re-fetched on every poll; segments after the last
    delivered one are streamed in order.  The first poll starts
    ``precache`` segments behind the edge.

    The queue holds at most ``max(queue_size, 4 * precache)`` segments.  A
    reader that falls further behind pauses polling, and segments that
    leave the manifest window meanwhile are skipped.
    """

    kind = StrategyKind.LIVE

    def __init__(
        self,
        transport: Transport,
        encoding: EncodingDescriptor,
        manifest_url: str,
        video_url: str,
        precache: Optional[int] = None,
        config: Optional[ClientConfig] = None,
    ) -> None:
        super().__init__(
            transport,
            url=encoding.url,
            stream_type=StreamType.ARBITRARY,
            video_url=video_url,
            config=config,
        )
        self.encoding = encoding
        self.manifest_url = manifest_url
        self.precache = max(1, precache if precache else self.config.default_precache)
        self.queue_size = max(self.config.queue_size, 4 * self.precache)
        self.last_sequence: Optional[int] = None
        self.last_url: Optional[str] = None
        self._init_sent = False

    async def _chunks(self) -> AsyncGenerator[bytes, None]:
        failures = 0
        while True:
            poll = self.config.poll_interval
            try:
                manifest = await self._resolve_manifest()
                representation = self._select_representation(manifest)
                if representation is None:
                    raise ResourceUnavailable(
                        "No usable representation in live manifest", url=self.manifest_url
                    )

                if representation.segments:
                    poll = manifest.min_update_period or representation.segments[-1].duration or poll

                if not self._init_sent and representation.init_url:
                    yield await self.transport.fetch(representation.init_url)
                    self._init_sent = True

                for segment in self._new_segments(representation.segments):
                    payload = await self.transport.fetch(segment.url)
                    self.last_sequence = segment.number
                    self.last_url = segment.url
                    logger.debug("Live segment %s of %s", segment.number, self.video_url)
                    yield payload
                failures = 0
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                failures += 1
                logger.warning(
                    "Live refresh %s/%s for %s failed: %s",
                    failures, self.config.max_manifest_failures, self.video_url, exc,
                )
                if failures >= self.config.max_manifest_failures:
                    raise ResourceUnavailable(
                        f"Live manifest failed {failures} times in a row: {exc}",
                        url=self.manifest_url,
                    ) from exc

            await asyncio.sleep(poll)

    async def _resolve_manifest(self) -> DashManifest:
        text = await self.transport.fetch_text(self.manifest_url)
        try:
            return DashParser.parse(text, self.manifest_url)
        except etree.XMLSyntaxError as exc:
            raise ResourceUnavailable(f"Malformed live manifest: {exc}", url=self.manifest_url) from exc

    def _select_representation(self, manifest: DashManifest) -> Optional[DashRepresentation]:
        if self.encoding.itag is not None:
            match = manifest.find(str(self.encoding.itag))
            if match is not None:
                return match
        return manifest.best_audio()

    def _new_segments(self, segments: List[DashSegment]) -> List[DashSegment]:
        if self.last_sequence is None:
            return segments[-self.precache:]
        urls = [segment.url for segment in segments]
        if self.last_url in urls:
            return segments[urls.index(self.last_url) + 1:]
        # window moved past the last delivered segment
        return [segment for segment in segments if segment.number > self.last_sequence]
