"""
Playground sessions - one per open editor - and the registry that expires them.

A session wires the preview pipeline together:

    buffers -> ExecutionController -> composer -> FrameExecutionHost
    sandbox -> RelayChannel -> ExecutionController -> SessionEventBus
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator, Dict, List, Optional

from codeplayer.config import PreviewConfig, SessionConfig
from codeplayer.core.errors import SessionNotFoundError
from codeplayer.domain import ExecutionRequest, LogRecord, SourceBuffers, SourceBundle
from codeplayer.infrastructure.streaming import BusEvent, SessionEventBus
from codeplayer.preview.composer import BLANK_DOCUMENT, SILENT_EXECUTION_ID, compose_document
from codeplayer.preview.console_view import present
from codeplayer.preview.controller import ExecutionController
from codeplayer.preview.host import FrameExecutionHost
from codeplayer.preview.relay import RelayChannel

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_session_id() -> str:
    return uuid.uuid4().hex


class PlaygroundSession:
    def __init__(
        self,
        session_id: str,
        config: Optional[PreviewConfig] = None,
        sources: Optional[SourceBundle] = None,
        share_id: Optional[str] = None,
    ):
        sources = sources or SourceBundle()
        self.session_id = session_id
        self.share_id = share_id
        self.buffers = SourceBuffers(markup=sources.markup, styles=sources.styles, script=sources.script)
        self.events = SessionEventBus()
        self.host = FrameExecutionHost()
        self.relay = RelayChannel()
        self.controller = ExecutionController(self.host, self.buffers.snapshot, config)
        self.controller.add_listener(self._on_logs)
        self.controller.add_render_listener(self._on_render)
        self._rendered: Optional[ExecutionRequest] = None
        self._served_revision = 0
        self.created_at = utcnow()
        self.last_seen = self.created_at
        self._started = False

    def start(self) -> None:
        """Open the single relay subscription. Must run inside the event loop."""
        if self._started:
            return
        self.relay.subscribe(self.controller.receive)
        self._started = True

    def touch(self) -> None:
        self.last_seen = utcnow()

    # ---- editor commands ----

    def update_sources(
        self,
        markup: Optional[str] = None,
        styles: Optional[str] = None,
        script: Optional[str] = None,
    ) -> bool:
        changed = self.buffers.update(markup=markup, styles=styles, script=script)
        if changed:
            self.controller.sources_changed()
        return changed

    def run(self) -> bool:
        return self.controller.run()

    def clear(self) -> None:
        self.controller.clear()

    def relay_post(self, payload: Any) -> bool:
        return self.relay.post(payload)

    # ---- preview frame ----

    def frame_document(self, revision: Optional[int]) -> str:
        """
        Document for one iframe load of ``revision``.

        Only the current revision is served; a load for any other revision
        gets a blank page. A capturing document runs at most once: loading its
        revision again gets the same sources with capture off, so no record
        is delivered twice under one execution id.
        """
        rendered = self._rendered
        if rendered is None or revision != self.host.revision:
            return BLANK_DOCUMENT
        if revision == self._served_revision and rendered.capture_console:
            return compose_document(
                rendered.sources,
                capture_console=False,
                execution_id=SILENT_EXECUTION_ID,
            )
        self._served_revision = revision
        return self.host.document

    # ---- event stream ----

    def _on_render(self, request: ExecutionRequest) -> None:
        self._rendered = request
        self.events.publish(
            "render",
            {
                "revision": self.host.revision,
                "execution_id": request.execution_id,
                "capture": request.capture_console,
            },
        )

    def _on_logs(self, records: List[LogRecord]) -> None:
        self.events.publish("logs", present(records))

    async def stream_events(self) -> AsyncGenerator[BusEvent, None]:
        """
        Event stream for one attached preview frame.

        Subscribing attaches the frame (the host becomes ready) and triggers a
        silent render so the frame shows the current buffers.
        """
        initial = [BusEvent(type="logs", data=present(self.controller.records))]
        self.host.attach()
        try:
            self.controller.sources_changed()
            async for event in self.events.subscribe(initial=initial):
                self.touch()
                yield event
        finally:
            self.host.detach()

    def snapshot(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "share_id": self.share_id,
            "sources": self.buffers.snapshot().to_dict(),
            "state": self.controller.state.value,
            "execution_id": self.controller.execution_id,
            "revision": self.host.revision,
            "console": present(self.controller.records),
        }

    async def close(self) -> None:
        self.events.close()
        await self.relay.close()
        await self.controller.close()


class SessionRegistry:
    """
    In-memory session store with an explicit TTL sweep.

    Sessions with an attached preview frame never expire; the rest expire
    ``ttl_minutes`` after they were last touched.
    """

    def __init__(
        self,
        preview_config: Optional[PreviewConfig] = None,
        session_config: Optional[SessionConfig] = None,
    ):
        self._preview_config = preview_config or PreviewConfig()
        self._session_config = session_config or SessionConfig()
        self._sessions: Dict[str, PlaygroundSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def create(self, sources: Optional[SourceBundle] = None, share_id: Optional[str] = None) -> PlaygroundSession:
        session = PlaygroundSession(
            new_session_id(),
            config=self._preview_config,
            sources=sources,
            share_id=share_id,
        )
        session.start()
        self._sessions[session.session_id] = session
        logger.info("Session %s created (share_id=%s)", session.session_id, share_id)
        return session

    def get(self, session_id: str) -> PlaygroundSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(message=f"Session not found: {session_id}")
        session.touch()
        return session

    async def remove(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        await session.close()
        logger.info("Session %s closed", session_id)
        return True

    def is_expired(self, session: PlaygroundSession, now: Optional[datetime] = None) -> bool:
        if session.host.is_ready():
            return False
        now = now or utcnow()
        return now - session.last_seen > timedelta(minutes=self._session_config.ttl_minutes)

    async def sweep_expired(self, now: Optional[datetime] = None) -> int:
        expired = [sid for sid, s in self._sessions.items() if self.is_expired(s, now)]
        for sid in expired:
            await self.remove(sid)
        if expired:
            logger.info("Swept %d expired sessions", len(expired))
        return len(expired)

    async def run_sweeper(self) -> None:
        interval = self._session_config.sweep_interval_seconds
        while True:
            await asyncio.sleep(interval)
            try:
                await self.sweep_expired()
            except Exception:
                logger.exception("Session sweep failed")

    async def close_all(self) -> None:
        for sid in list(self._sessions):
            await self.remove(sid)
