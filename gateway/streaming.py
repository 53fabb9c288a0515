"""Streaming responder — relays orchestrator events to the HTTP response as they happen.

The orchestrator runs in its own task and pushes events into a bounded queue;
the response body drains the queue. A slow caller therefore blocks the
producer instead of events being dropped, and a caller that goes away closes
the responder and cancels the producer.
"""
import asyncio
import json
import logging
from typing import AsyncIterator, Dict, Optional

from fastapi.responses import StreamingResponse

from .events import Done, ErrorEvent, StreamEvent, TextDelta

logger = logging.getLogger(__name__)

FRAMINGS = ("text", "sse")


class StreamResponder:
    def __init__(self, framing: str = "text", max_pending: int = 64, session=None):
        if framing not in FRAMINGS:
            raise ValueError(f"Unknown stream framing: {framing}")
        self.framing = framing
        self.session = session
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_pending)
        self._opened = False
        self._closed = False
        self._producer: Optional[asyncio.Task] = None
        self._finished = False
        self.events_sent = 0

    @property
    def _prefix(self) -> str:
        return f"[{self.session.request_id}] " if self.session else ""

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def media_type(self) -> str:
        return "text/event-stream" if self.framing == "sse" else "text/plain; charset=utf-8"

    def headers(self) -> Dict[str, str]:
        return {
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # nginx: do not buffer the stream
        }

    def encode(self, event: StreamEvent) -> bytes:
        if self.framing == "sse":
            data = json.dumps(event.model_dump(exclude={"type"}), ensure_ascii=False)
            return f"event: {event.type}\ndata: {data}\n\n".encode("utf-8")
        if isinstance(event, TextDelta):
            return event.text.encode("utf-8")
        if isinstance(event, ErrorEvent):
            return f"\n[error] {event.message}\n".encode("utf-8")
        return b""

    async def push(self, event: StreamEvent) -> bool:
        """Queue an event for the caller; blocks while the queue is full.

        Returns False, without queueing, once the responder is closed.
        """
        if self._closed:
            logger.debug(f"{self._prefix}push after close dropped: {event.type}")
            return False
        await self._queue.put(event)
        return True

    def close(self):
        if self._closed:
            return
        self._closed = True
        if self._finished:
            return
        if self.session is not None:
            self.session.cancelled = True
        if self._producer is not None and not self._producer.done():
            # Cleanup (subprocess reaping, model stream close) runs inside the task
            self._producer.cancel()
            idle = f", idle {self.session.idle_seconds():.1f}s" if self.session else ""
            logger.info(f"{self._prefix}Stream closed early{idle}; producer cancelled")

    async def _pump(self, events: AsyncIterator[StreamEvent]):
        finished = False
        try:
            async for event in events:
                if not await self.push(event):
                    return
                if isinstance(event, Done):
                    finished = True
                    return
        except Exception as e:
            logger.error(f"{self._prefix}Event producer failed: {e}", exc_info=True)
            await self.push(ErrorEvent(message="Internal error while generating response"))
        finally:
            aclose = getattr(events, "aclose", None)
            if aclose is not None and not finished:
                await asyncio.shield(aclose())
        if not finished:
            await self.push(Done())

    async def body(self) -> AsyncIterator[bytes]:
        try:
            while True:
                event = await self._queue.get()
                chunk = self.encode(event)
                if chunk:
                    yield chunk
                self.events_sent += 1
                if isinstance(event, Done):
                    self._finished = True
                    break
        finally:
            self.close()

    def open(self, events: AsyncIterator[StreamEvent]) -> StreamingResponse:
        """Start producing and return the response. Framing is written once."""
        if self._opened:
            raise RuntimeError("Stream already opened")
        self._opened = True
        self._producer = asyncio.create_task(self._pump(events))
        return StreamingResponse(
            self.body(), status_code=200, media_type=self.media_type, headers=self.headers(),
        )
