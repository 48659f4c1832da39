"""Typed progress events and the channel that delivers them.

The orchestrator produces ScrapeEvents into an EventChannel; the transport
drains the channel and writes each event as one line of JSON as soon as it
arrives. Every request's stream ends with exactly one terminal event,
``complete`` or ``fatal_error``.

Wire format (one JSON object per line):

    {"type": "progress", "message": ..., "current": 1, "total": 3, "currentUrl": ...}
    {"type": "record", "data": {...}}
    {"type": "record_error", "message": ..., "url": ...}
    {"type": "complete", "message": ..., "totalScraped": 3, "totalFound": 3}
    {"type": "fatal_error", "message": ..., "details": ..., "debug": {...}}
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from ycscrape.common.exceptions import ChannelClosedError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from ycscrape.data_types import CompanyRecord

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    """Kinds of events in a scrape stream."""

    PROGRESS = "progress"
    RECORD = "record"
    RECORD_ERROR = "record_error"
    COMPLETE = "complete"
    FATAL_ERROR = "fatal_error"

    @property
    def is_terminal(self) -> bool:
        return self in (EventKind.COMPLETE, EventKind.FATAL_ERROR)


@dataclass(frozen=True)
class ScrapeEvent:
    """One unit of the output stream.

    Attributes:
        kind: Event kind.
        payload: Kind-specific fields, already in wire naming.
        record: The scraped record, for ``record`` events only.
    """

    kind: EventKind
    payload: dict[str, Any] = field(default_factory=dict)
    record: CompanyRecord | None = None

    @property
    def is_terminal(self) -> bool:
        return self.kind.is_terminal

    @classmethod
    def progress(
        cls,
        message: str,
        current: int,
        total: int,
        current_url: str | None = None,
    ) -> ScrapeEvent:
        payload: dict[str, Any] = {
            "message": message,
            "total": total,
            "current": current,
        }
        if current_url is not None:
            payload["currentUrl"] = current_url
        return cls(EventKind.PROGRESS, payload)

    @classmethod
    def for_record(cls, record: CompanyRecord) -> ScrapeEvent:
        return cls(EventKind.RECORD, {"data": record.to_dict()}, record)

    @classmethod
    def record_error(cls, message: str, url: str) -> ScrapeEvent:
        return cls(EventKind.RECORD_ERROR, {"message": message, "url": url})

    @classmethod
    def complete(
        cls, message: str, total_scraped: int, total_found: int
    ) -> ScrapeEvent:
        return cls(
            EventKind.COMPLETE,
            {
                "message": message,
                "totalScraped": total_scraped,
                "totalFound": total_found,
            },
        )

    @classmethod
    def fatal_error(
        cls,
        message: str,
        details: str | None = None,
        debug: dict[str, Any] | None = None,
    ) -> ScrapeEvent:
        payload: dict[str, Any] = {"message": message}
        if details is not None:
            payload["details"] = details
        if debug is not None:
            payload["debug"] = debug
        return cls(EventKind.FATAL_ERROR, payload)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind.value, **self.payload}

    def to_json(self) -> str:
        """Serialize to a single line of JSON."""
        return json.dumps(self.to_dict())


class EventChannel:
    """Single-producer, single-consumer channel of ScrapeEvents.

    emit() returns only once the consumer has taken the event and asked for
    the next one, so a consumer flushing each event sees item N's result
    before the producer starts on item N+1.

    Example:
        channel = EventChannel()
        # producer task
        await channel.emit(ScrapeEvent.progress("Working", 0, 3))
        # consumer
        async for event in channel:
            print(event.to_json())
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[ScrapeEvent] = asyncio.Queue(maxsize=1)
        self.closed = False
        self.emitted_count = 0

    async def emit(self, event: ScrapeEvent) -> None:
        """Send an event and wait until the consumer has handled it.

        Raises:
            ChannelClosedError: If a terminal event was already emitted.
        """
        if self.closed:
            raise ChannelClosedError(
                f"Cannot emit {event.kind.value} event after terminal event"
            )
        if event.is_terminal:
            self.closed = True
        self.emitted_count += 1
        await self._queue.put(event)
        await self._queue.join()

    async def __aiter__(self) -> AsyncIterator[ScrapeEvent]:
        while True:
            event = await self._queue.get()
            try:
                yield event
            finally:
                self._queue.task_done()
            if event.is_terminal:
                return


async def _run_producer(
    producer: Callable[[EventChannel], Awaitable[None]],
    channel: EventChannel,
) -> None:
    try:
        await producer(channel)
    except Exception as e:
        logger.error(f"Scrape producer failed: {e}", exc_info=True)
        if not channel.closed:
            await channel.emit(
                ScrapeEvent.fatal_error("Failed to scrape companies", str(e))
            )
        return

    if not channel.closed:
        logger.error("Scrape producer finished without a terminal event")
        await channel.emit(
            ScrapeEvent.fatal_error(
                "Failed to scrape companies",
                "Scrape ended without a result",
            )
        )


async def stream_events(
    producer: Callable[[EventChannel], Awaitable[None]],
) -> AsyncIterator[ScrapeEvent]:
    """Run a producer in its own task and yield its events in order.

    The stream always ends with exactly one terminal event. If the consumer
    stops early (for example the client disconnected) the producer task is
    cancelled, which still runs its cleanup.

    Args:
        producer: Coroutine function that emits events into the channel.

    Yields:
        Events in emission order, ending with the terminal event.
    """
    channel = EventChannel()
    task = asyncio.create_task(_run_producer(producer, channel))
    drained = False
    try:
        async for event in channel:
            yield event
        drained = True
    finally:
        if drained:
            await task
        elif not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


async def to_ndjson(events: AsyncIterator[ScrapeEvent]) -> AsyncIterator[bytes]:
    """Encode events as newline-delimited JSON chunks, one per event."""
    async for event in events:
        yield (event.to_json() + "\n").encode("utf-8")
