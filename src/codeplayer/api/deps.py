"""
Shared request dependencies.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, Request

from codeplayer.core.errors import SessionNotFoundError
from codeplayer.preview.session import PlaygroundSession, SessionRegistry

OWNER_HEADER = "X-Playground-User"


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_session(session_id: str, request: Request) -> PlaygroundSession:
    try:
        return get_registry(request).get(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


def require_owner(x_playground_user: Optional[str] = Header(None)) -> str:
    owner = (x_playground_user or "").strip()
    if not owner:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return owner

