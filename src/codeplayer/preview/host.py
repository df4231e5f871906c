"""
Isolated Execution Host implementations and the bounded render retry.

- FrameExecutionHost: backs a browser iframe served from its own sandboxed
  origin; ready once a frame has attached.
- InMemoryExecutionHost: records documents (useful for tests/evals).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

from codeplayer.application.ports import ExecutionHostPort
from codeplayer.core.errors import SandboxNotReadyError
from codeplayer.preview.composer import BLANK_DOCUMENT

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 20
DEFAULT_NOT_READY_DELAY = 0.05
DEFAULT_ERROR_DELAY = 0.1

# CSP sandbox puts the frame document on an opaque origin: scripts run, but
# they cannot reach host state. postMessage is the only way out.
FRAME_HEADERS = {
    "Content-Security-Policy": "sandbox allow-scripts allow-modals",
    "Cache-Control": "no-store",
    "X-Content-Type-Options": "nosniff",
}


class FrameExecutionHost(ExecutionHostPort):
    """
    Server side of the preview iframe.

    Each render swaps the whole document and bumps ``revision``; the page is
    told to reload the iframe, which throws away every global, timer and DOM
    node of the previous run.
    """

    def __init__(self):
        self._document = BLANK_DOCUMENT
        self._revision = 0
        self._frames = 0

    @property
    def document(self) -> str:
        return self._document

    @property
    def revision(self) -> int:
        return self._revision

    def attach(self) -> None:
        self._frames += 1

    def detach(self) -> None:
        self._frames = max(0, self._frames - 1)

    def is_ready(self) -> bool:
        return self._frames > 0

    def render(self, document: str) -> None:
        if not self.is_ready():
            raise SandboxNotReadyError(message="No preview frame attached")
        self._document = document
        self._revision += 1


class InMemoryExecutionHost(ExecutionHostPort):
    """Records rendered documents; can refuse the first ``not_ready_for`` renders."""

    def __init__(self, not_ready_for: int = 0):
        self.documents: List[str] = []
        self._not_ready_remaining = not_ready_for

    @property
    def last_document(self) -> Optional[str]:
        return self.documents[-1] if self.documents else None

    def is_ready(self) -> bool:
        return self._not_ready_remaining <= 0

    def render(self, document: str) -> None:
        if self._not_ready_remaining > 0:
            self._not_ready_remaining -= 1
            raise SandboxNotReadyError(message="Sandbox document not attached yet")
        self.documents.append(document)


async def render_with_retry(
    host: ExecutionHostPort,
    document: str,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    not_ready_delay: float = DEFAULT_NOT_READY_DELAY,
    error_delay: float = DEFAULT_ERROR_DELAY,
    still_wanted: Optional[Callable[[], bool]] = None,
) -> bool:
    """
    Render with a bounded number of attempts.

    Returns True once the document landed. Never raises: when attempts run
    out (or ``still_wanted`` says a newer render took over) the preview just
    stays as it was.
    """
    for attempt in range(1, max_attempts + 1):
        if still_wanted is not None and not still_wanted():
            logger.debug("Render superseded before attempt %d", attempt)
            return False
        try:
            host.render(document)
            return True
        except SandboxNotReadyError:
            delay = not_ready_delay
        except Exception as e:
            logger.debug(f"Preview render failed on attempt {attempt}: {e}")
            delay = error_delay
        if attempt < max_attempts:
            await asyncio.sleep(delay)

    logger.warning("Preview render gave up after %d attempts", max_attempts)
    return False
