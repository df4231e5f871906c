"""
Snippet persistence/sharing routes.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from codeplayer.core.errors import SlugGenerationError, SnippetNotFoundError
from codeplayer.domain import SourceBundle

from ..deps import require_owner

router = APIRouter()


class SaveRequest(BaseModel):
    html: Optional[str] = ""
    css: Optional[str] = ""
    js: Optional[str] = ""
    shareId: Optional[str] = None


@router.post("/code/save")
def save_code(body: SaveRequest, http_request: Request, owner: str = Depends(require_owner)):
    store = http_request.app.state.snippets
    try:
        return store.save(
            owner_id=owner,
            sources=SourceBundle.of(body.html, body.css, body.js),
            share_id=body.shareId,
        )
    except SnippetNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except SlugGenerationError as e:
        raise HTTPException(status_code=500, detail=e.message)


@router.get("/code/shared/{share_id}")
def get_shared_code(share_id: str, http_request: Request):
    snippet = http_request.app.state.snippets.get(share_id)
    if snippet is None:
        raise HTTPException(status_code=404, detail="Code not found")
    return snippet


@router.get("/code/shared/{share_id}/can-edit")
def can_edit(share_id: str, http_request: Request, owner: str = Depends(require_owner)):
    try:
        allowed = http_request.app.state.snippets.can_edit(share_id, owner)
    except SnippetNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return {"canEdit": allowed}
