"""
Playground Session API Routes

Provides endpoints for:
- Session lifecycle (create/inspect/close)
- Editor buffers (silent re-render on change)
- Explicit run / console clear
- Relay intake for sandbox console messages
- Sandboxed preview frame document
- Session event streaming (SSE)
- Project export
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, Response
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from codeplayer.domain import SourceBundle
from codeplayer.preview.console_view import present
from codeplayer.preview.export import make_zip_bytes
from codeplayer.preview.host import FRAME_HEADERS
from codeplayer.preview.session import PlaygroundSession

from ..deps import get_registry, get_session
from ..streaming import StreamEvent, sse_response

router = APIRouter()


# --- Request/Response Models ---

class SourcesRequest(BaseModel):
    """Editor buffers; omitted fields are left unchanged."""
    html: Optional[str] = None
    css: Optional[str] = None
    js: Optional[str] = None


class RunResponse(BaseModel):
    accepted: bool
    execution_id: int


# --- Lifecycle ---

@router.post("/sessions", status_code=201)
async def create_session(http_request: Request, body: Optional[SourcesRequest] = None):
    body = body or SourcesRequest()
    session = get_registry(http_request).create(
        sources=SourceBundle.of(body.html, body.css, body.js),
    )
    return session.snapshot()


@router.get("/sessions/{session_id}")
async def get_session_info(session: PlaygroundSession = Depends(get_session)):
    return session.snapshot()


@router.delete("/sessions/{session_id}")
async def close_session(session_id: str, http_request: Request):
    removed = await get_registry(http_request).remove(session_id)
    return {"session_id": session_id, "closed": removed}


# --- Editor commands ---

@router.put("/sessions/{session_id}/sources")
async def update_sources(body: SourcesRequest, session: PlaygroundSession = Depends(get_session)):
    changed = session.update_sources(markup=body.html, styles=body.css, script=body.js)
    return {"changed": changed, "sources": session.buffers.snapshot().to_dict()}


@router.post("/sessions/{session_id}/run")
async def run_code(session: PlaygroundSession = Depends(get_session)) -> RunResponse:
    accepted = session.run()
    return RunResponse(accepted=accepted, execution_id=session.controller.execution_id)


@router.post("/sessions/{session_id}/clear")
async def clear_console(session: PlaygroundSession = Depends(get_session)):
    session.clear()
    return {"cleared": True, "execution_id": session.controller.execution_id}


@router.get("/sessions/{session_id}/logs")
async def get_logs(session: PlaygroundSession = Depends(get_session)):
    return present(session.controller.records)


# --- Relay ---

@router.post("/sessions/{session_id}/relay", status_code=202)
async def relay_message(payload: Any = Body(None), session: PlaygroundSession = Depends(get_session)):
    """
    Sandbox console message forwarded by the host page.

    Always 202: malformed or stale messages are dropped without an error.
    """
    queued = session.relay_post(payload)
    return {"queued": queued}


# --- Preview frame ---

@router.get("/sessions/{session_id}/frame")
async def preview_frame(
    rev: Optional[int] = Query(None),
    session: PlaygroundSession = Depends(get_session),
):
    """Sandboxed preview document for revision ``rev``; stale revisions get a blank page."""
    return HTMLResponse(content=session.frame_document(rev), headers=FRAME_HEADERS)


# --- Event streaming ---

async def _event_stream_generator(session: PlaygroundSession):
    """Generate SSE events for one attached preview frame."""
    async for event in session.stream_events():
        yield StreamEvent.from_bus(event)

    yield StreamEvent(type="done", message="Session closed")


@router.get("/sessions/{session_id}/events")
async def stream_events(session: PlaygroundSession = Depends(get_session)):
    """
    Stream render and console events (SSE).

    While a stream is open the preview frame counts as attached.
    """
    return sse_response(_event_stream_generator(session))


# --- Export ---

@router.get("/sessions/{session_id}/export")
async def export_project(session: PlaygroundSession = Depends(get_session)):
    data = make_zip_bytes(session.buffers.snapshot())
    name = session.share_id or "codeplayer"
    return Response(
        content=data,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{name}.zip"'},
    )
