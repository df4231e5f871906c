"""
Playground page routes: a fresh editor, or one preloaded with a shared snippet.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from codeplayer.domain import SourceBundle
from codeplayer.preview.console_view import EMPTY_CONSOLE_TEXT

from ..deps import get_registry

TEMPLATES_DIR = Path(__file__).resolve().parents[2] / "presentation" / "web" / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

SHARE_ID_PATTERN = r"^[A-Za-z0-9]{4,16}$"

router = APIRouter()


def _render_page(request: Request, sources: SourceBundle, share_id: Optional[str] = None) -> HTMLResponse:
    session = get_registry(request).create(sources=sources, share_id=share_id)
    return templates.TemplateResponse(
        request,
        "playground.html.j2",
        {
            "session_id": session.session_id,
            "share_id": share_id,
            "sources": sources.to_dict(),
            "empty_console_text": EMPTY_CONSOLE_TEXT,
        },
    )


@router.get("/", response_class=HTMLResponse)
async def playground(request: Request):
    return _render_page(request, SourceBundle())


@router.get("/{share_id}", response_class=HTMLResponse)
async def shared_playground(request: Request, share_id: str):
    if not re.match(SHARE_ID_PATTERN, share_id):
        raise HTTPException(status_code=404, detail="Not found")
    snippet = request.app.state.snippets.get(share_id)
    if snippet is None:
        raise HTTPException(status_code=404, detail="Code not found")
    sources = SourceBundle.of(snippet["html"], snippet["css"], snippet["js"])
    return _render_page(request, sources, share_id=share_id)
