"""
Streaming utilities for Server-Sent Events (SSE)
"""

import json
from dataclasses import dataclass
from typing import Any, AsyncGenerator

from fastapi.responses import StreamingResponse

from codeplayer.infrastructure.streaming import BusEvent

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@dataclass
class StreamEvent:
    """SSE event structure"""
    type: str  # render, logs, ping, error, done
    data: Any = None
    message: str | None = None

    @classmethod
    def from_bus(cls, event: BusEvent) -> "StreamEvent":
        return cls(type=event.type, data=event.data)

    def to_sse(self) -> str:
        payload = {
            "type": self.type,
            "data": self.data,
            "message": self.message,
        }
        return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


def sse_done() -> str:
    """Return SSE done signal"""
    return "data: [DONE]\n\n"


async def wrap_generator(
    generator: AsyncGenerator[StreamEvent, None]
) -> AsyncGenerator[str, None]:
    """Wrap a StreamEvent generator to SSE strings; errors end the stream as an error event."""
    try:
        async for event in generator:
            yield event.to_sse()
        yield sse_done()
    except Exception as e:
        yield StreamEvent(type="error", message=str(e)).to_sse()
        yield sse_done()


def sse_response(generator: AsyncGenerator[StreamEvent, None]) -> StreamingResponse:
    return StreamingResponse(
        wrap_generator(generator),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
