"""
Session Event Bus - fans session events out to live subscribers (SSE).

Each subscriber gets its own bounded asyncio queue. A slow subscriber loses
its oldest events rather than blocking the publisher; ``logs`` events carry
the whole accumulated list, so the newest one is always enough.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Iterable, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 256
DEFAULT_KEEPALIVE = 15.0


@dataclass
class BusEvent:
    type: str  # render, logs, ping
    data: Any = None

    def to_dict(self) -> dict:
        return {"type": self.type, "data": self.data}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


class SessionEventBus:
    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self._queue_size = queue_size
        self._subscribers: List[asyncio.Queue] = []
        self._closed = False

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, type: str, data: Any = None) -> None:
        if self._closed:
            return
        event = BusEvent(type=type, data=data)
        for queue in list(self._subscribers):
            self._offer(queue, event)

    def _offer(self, queue: asyncio.Queue, event: Optional[BusEvent]) -> None:
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            try:
                queue.get_nowait()
            except asyncio.QueueEmpty:
                pass
            queue.put_nowait(event)

    async def subscribe(
        self,
        initial: Iterable[BusEvent] = (),
        keepalive: float = DEFAULT_KEEPALIVE,
    ) -> AsyncGenerator[BusEvent, None]:
        """
        Yield events until the bus is closed.

        ``initial`` events are queued right after registration, so nothing
        published in between is lost. A ``ping`` is yielded after
        ``keepalive`` seconds of silence.
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.append(queue)
        for event in initial:
            self._offer(queue, event)
        try:
            while not self._closed or not queue.empty():
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=keepalive)
                except asyncio.TimeoutError:
                    if self._closed:
                        break
                    yield BusEvent(type="ping")
                    continue
                if event is None:  # End signal
                    break
                yield event
        finally:
            if queue in self._subscribers:
                self._subscribers.remove(queue)

    def close(self) -> None:
        self._closed = True
        for queue in list(self._subscribers):
            self._offer(queue, None)
