"""Common machinery of the three delivery streams."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import AsyncGenerator, AsyncIterator, ClassVar, Optional, Union

from .models import ClientConfig, StrategyKind, StreamType
from .transport import Transport

logger = logging.getLogger(__name__)

_EOF = object()

_QueueItem = Union[bytes, BaseException, object]


class DeliveryStream(ABC):
    """A byte stream produced by a background task and read by one consumer.

    The producer starts on the first :meth:`read`.  :meth:`stop` cancels it,
    which also aborts any HTTP request in flight.
    """

    kind: ClassVar[StrategyKind]
    queue_size: ClassVar[Optional[int]] = None

    def __init__(
        self,
        transport: Transport,
        *,
        url: str,
        stream_type: StreamType,
        video_url: str,
        config: Optional[ClientConfig] = None,
    ) -> None:
        self.transport = transport
        self.url = url
        self.type = stream_type
        self.video_url = video_url
        self.config = config or ClientConfig()

        self._queue: Optional[asyncio.Queue[_QueueItem]] = None
        self._task: Optional[asyncio.Task] = None
        self._exhausted = False
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    @abstractmethod
    def _chunks(self) -> AsyncGenerator[bytes, None]:
        """Yield the payload in order; runs inside the producer task."""

    async def read(self) -> bytes:
        """Return the next chunk, or ``b""`` once the stream has ended."""
        if self._stopped or self._exhausted:
            return b""
        queue = self._ensure_started()
        item = await queue.get()
        if item is _EOF:
            self._exhausted = True
            return b""
        if isinstance(item, BaseException):
            self._exhausted = True
            raise item
        return item

    async def __aiter__(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self.read()
            if not chunk:
                return
            yield chunk

    async def stop(self) -> None:
        """Stop producing bytes and release the connection.  Safe to repeat."""
        if self._stopped:
            return
        self._stopped = True
        queue = self._queue
        await self._cancel_producer()
        if queue is not None and queue.empty():
            # wake a reader blocked on the cancelled producer
            queue.put_nowait(_EOF)
        logger.debug("Stopped %s stream for %s", self.kind.value, self.video_url)

    async def __aenter__(self) -> "DeliveryStream":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    def _ensure_started(self) -> asyncio.Queue[_QueueItem]:
        if self._task is None or self._queue is None:
            maxsize = self.config.queue_size if self.queue_size is None else self.queue_size
            self._queue = asyncio.Queue(maxsize=maxsize)
            self._task = asyncio.create_task(
                self._produce(self._queue), name=f"tubestream-{self.kind.value}"
            )
        return self._queue

    async def _restart(self) -> None:
        """Drop the current producer so the next read starts a fresh one."""
        await self._cancel_producer()
        self._exhausted = False

    async def _cancel_producer(self) -> None:
        task, self._task, self._queue = self._task, None, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _produce(self, queue: asyncio.Queue[_QueueItem]) -> None:
        chunks = self._chunks()
        try:
            async for chunk in chunks:
                if chunk:
                    await queue.put(chunk)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("%s stream for %s failed: %s", self.kind.value, self.video_url, exc)
            await queue.put(exc)
            return
        finally:
            # closes any response the generator still holds open
            await chunks.aclose()
        await queue.put(_EOF)
