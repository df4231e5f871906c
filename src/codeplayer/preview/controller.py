"""
Execution Controller - owns execution identity, the capture flag and the
accumulated console records for one editing session.

States:
- IDLE
- SILENT_RUN_PENDING: an edit triggered a non-capturing re-render
- CAPTURING_RUN_PENDING: an explicit run is in flight (re-entrancy guarded)

A record is accepted only if its execution id equals the current id at the
time it arrives. ``run()`` and ``clear()`` both move the id forward, which is
what keeps output of superseded runs out of the console.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable, List, Optional, Set

from codeplayer.application.ports import ExecutionHostPort
from codeplayer.config import PreviewConfig
from codeplayer.domain import ExecutionRequest, LogRecord, SourceBundle
from codeplayer.preview.composer import SILENT_EXECUTION_ID, compose
from codeplayer.preview.host import render_with_retry
from codeplayer.preview.relay import RelayMessage

logger = logging.getLogger(__name__)

LogListener = Callable[[List[LogRecord]], None]
RenderListener = Callable[[ExecutionRequest], None]


class ControllerState(str, Enum):
    IDLE = "idle"
    SILENT_RUN_PENDING = "silent_run_pending"
    CAPTURING_RUN_PENDING = "capturing_run_pending"


class ExecutionController:
    def __init__(
        self,
        host: ExecutionHostPort,
        sources: Callable[[], SourceBundle],
        config: Optional[PreviewConfig] = None,
    ):
        self._host = host
        self._sources = sources
        self._config = config or PreviewConfig()

        self._state = ControllerState.IDLE
        self._execution_id = 0
        self._capture_console = False
        self._records: List[LogRecord] = []
        self._listeners: List[LogListener] = []
        self._render_listeners: List[RenderListener] = []

        # Bumped on every scheduled render so a late retry cannot overwrite a
        # newer document.
        self._render_seq = 0
        self._tasks: Set[asyncio.Task] = set()

    # ---- read side ----

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def execution_id(self) -> int:
        return self._execution_id

    @property
    def capture_console(self) -> bool:
        return self._capture_console

    @property
    def records(self) -> List[LogRecord]:
        return list(self._records)

    def add_listener(self, listener: LogListener) -> None:
        self._listeners.append(listener)

    def add_render_listener(self, listener: RenderListener) -> None:
        """Called with the request whose document just landed in the host."""
        self._render_listeners.append(listener)

    # ---- commands ----

    def sources_changed(self) -> bool:
        """Silent re-render after an edit. Skipped while a capturing run is pending."""
        if self._state == ControllerState.CAPTURING_RUN_PENDING:
            logger.debug("Edit during capturing run, silent render skipped")
            return False
        self._state = ControllerState.SILENT_RUN_PENDING
        self._capture_console = False
        self._spawn(self._silent_run())
        return True

    def run(self) -> bool:
        """Explicit capturing run. Returns False when one is already in flight."""
        if self._state == ControllerState.CAPTURING_RUN_PENDING:
            logger.debug("Run ignored, execution %d still in flight", self._execution_id)
            return False
        self._state = ControllerState.CAPTURING_RUN_PENDING
        self._execution_id += 1
        self._capture_console = True
        self._spawn(self._capturing_run(self._execution_id))
        return True

    def clear(self) -> None:
        self._records = []
        self._notify()
        # Anything still in flight from the cleared run is now stale.
        self._execution_id += 1

    def receive(self, message: RelayMessage) -> bool:
        if message.execution_id != self._execution_id:
            logger.debug(
                "Dropping stale console message (execution %d, current %d)",
                message.execution_id,
                self._execution_id,
            )
            return False
        self._records.append(
            LogRecord(
                kind=message.log_type,
                message=message.message,
                execution_id=message.execution_id,
            )
        )
        self._notify()
        return True

    async def wait_idle(self) -> None:
        """Wait for every scheduled render and settle timer to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()
        self._listeners.clear()
        self._render_listeners.clear()

    # ---- internals ----

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _notify(self) -> None:
        snapshot = list(self._records)
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Console listener failed")

    async def _render(self, request: ExecutionRequest) -> bool:
        self._render_seq += 1
        seq = self._render_seq
        document = compose(request)
        cfg = self._config
        landed = await render_with_retry(
            self._host,
            document,
            max_attempts=cfg.max_render_attempts,
            not_ready_delay=cfg.not_ready_delay,
            error_delay=cfg.error_delay,
            still_wanted=lambda: seq == self._render_seq,
        )
        if landed:
            # No await since host.render, so the host still holds this document.
            for listener in list(self._render_listeners):
                try:
                    listener(request)
                except Exception:
                    logger.exception("Render listener failed")
        return landed

    async def _silent_run(self) -> None:
        await asyncio.sleep(self._config.render_delay)
        if self._state != ControllerState.SILENT_RUN_PENDING:
            return
        request = ExecutionRequest(
            sources=self._sources(),
            capture_console=False,
            execution_id=SILENT_EXECUTION_ID,
        )
        # Fire-and-forget: back to idle as soon as the render is issued.
        self._state = ControllerState.IDLE
        await self._render(request)

    async def _capturing_run(self, execution_id: int) -> None:
        try:
            await asyncio.sleep(self._config.run_start_delay)
            if self._execution_id == execution_id:
                request = ExecutionRequest(
                    sources=self._sources(),
                    capture_console=True,
                    execution_id=execution_id,
                )
                self._spawn(self._render(request))
            else:
                logger.debug("Execution %d superseded before render", execution_id)
            await asyncio.sleep(self._config.settle_delay)
        finally:
            if self._state == ControllerState.CAPTURING_RUN_PENDING:
                self._state = ControllerState.IDLE
