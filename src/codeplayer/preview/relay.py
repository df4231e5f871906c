"""
Relay Channel - one-way, best-effort delivery from the sandbox to the host.

Messages are delivered to a single persistent subscriber in the order they
were posted. Anything that is not a well-formed console message is dropped
silently; stale execution ids are the subscriber's business.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from codeplayer.core.errors import CodePlayerError, RelayMessageError
from codeplayer.domain import LogKind
from codeplayer.preview.shim import CONSOLE_MESSAGE_TYPE

logger = logging.getLogger(__name__)

MAX_MESSAGE_CHARS = 100_000


@dataclass(frozen=True)
class RelayMessage:
    """``{type: "console", logType, executionId, message}`` from the shim."""

    type: str
    log_type: LogKind
    execution_id: int
    message: str

    @classmethod
    def parse(cls, payload: Any) -> "RelayMessage":
        if not isinstance(payload, dict):
            raise RelayMessageError(message="Relay payload is not an object")
        if payload.get("type") != CONSOLE_MESSAGE_TYPE:
            raise RelayMessageError(
                message="Not a console message",
                context={"type": payload.get("type")},
            )
        kind = LogKind.parse(payload.get("logType"))
        if kind is None:
            raise RelayMessageError(
                message="Unknown log type",
                context={"logType": payload.get("logType")},
            )
        execution_id = payload.get("executionId")
        # bool is an int subclass; a true/false id is malformed.
        if not isinstance(execution_id, int) or isinstance(execution_id, bool):
            raise RelayMessageError(
                message="executionId must be an integer",
                context={"executionId": execution_id},
            )
        message = payload.get("message", "")
        if not isinstance(message, str):
            message = str(message)
        return cls(
            type=CONSOLE_MESSAGE_TYPE,
            log_type=kind,
            execution_id=execution_id,
            message=message[:MAX_MESSAGE_CHARS],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "logType": self.log_type.value,
            "executionId": self.execution_id,
            "message": self.message,
        }


RelayHandler = Callable[[RelayMessage], Union[None, Awaitable[None]]]


class RelayChannel:
    """
    asyncio-backed relay with exactly one subscriber per session.

    ``post`` never blocks and never raises for bad input; the pump task hands
    queued messages to the subscriber one at a time, FIFO.
    """

    def __init__(self, maxsize: int = 0):
        self._queue: asyncio.Queue[RelayMessage] = asyncio.Queue(maxsize=maxsize)
        self._handler: Optional[RelayHandler] = None
        self._pump: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def subscribe(self, handler: RelayHandler) -> None:
        if self._handler is not None:
            raise CodePlayerError(message="Relay channel already has a subscriber", code="RELAY_SUBSCRIBED")
        if self._closed:
            raise CodePlayerError(message="Relay channel is closed", code="RELAY_CLOSED")
        self._handler = handler
        self._pump = asyncio.get_running_loop().create_task(self._run())

    def post(self, payload: Any) -> bool:
        """Queue a raw payload. Returns False when it was dropped."""
        if self._closed:
            return False
        try:
            message = payload if isinstance(payload, RelayMessage) else RelayMessage.parse(payload)
        except RelayMessageError as e:
            logger.debug(f"Dropping relay payload: {e}")
            return False
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.debug("Relay queue full, dropping message for execution %s", message.execution_id)
            return False
        return True

    async def join(self) -> None:
        """Wait until every queued message has been handed to the subscriber."""
        await self._queue.join()

    async def _run(self) -> None:
        while True:
            message = await self._queue.get()
            try:
                result = self._handler(message)  # type: ignore[misc]
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                logger.exception("Relay subscriber failed")
            finally:
                self._queue.task_done()

    async def close(self) -> None:
        self._closed = True
        if self._pump is not None:
            self._pump.cancel()
            try:
                await self._pump
            except asyncio.CancelledError:
                pass
            self._pump = None
