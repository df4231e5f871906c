"""
Preview email routes (one email per user).
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from codeplayer.core.errors import EmailQuotaError, MailDeliveryError
from codeplayer.domain import SourceBundle

from ..deps import require_owner

router = APIRouter()


class SendTestRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    html: Optional[str] = ""
    css: Optional[str] = ""
    js: Optional[str] = ""


@router.get("/email/can-send")
def can_send(http_request: Request, owner: str = Depends(require_owner)):
    return {"canSend": http_request.app.state.email_service.can_send(owner)}


@router.post("/email/send-test")
def send_test(body: SendTestRequest, http_request: Request, owner: str = Depends(require_owner)):
    service = http_request.app.state.email_service
    try:
        service.send_preview(owner, body.email, SourceBundle.of(body.html, body.css, body.js))
    except EmailQuotaError as e:
        raise HTTPException(status_code=409, detail=e.message)
    except MailDeliveryError as e:
        raise HTTPException(status_code=502, detail=e.message)
    return {"message": "Email sent"}
