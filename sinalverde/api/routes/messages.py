"""Outbound messaging endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, field_validator

from sinalverde.api.deps import get_gateway
from sinalverde.messaging import BatchItem, MessagingGateway

router = APIRouter(tags=["messages"])


def _text(value: Any) -> str | None:
    """Scalars such as a numeric phone are accepted as their string form."""
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


class SendRequest(BaseModel):
    phone: str | None = None
    message: str | None = None

    @field_validator("phone", "message", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str | None:
        return _text(v)


class SendBatchRequest(BaseModel):
    messages: Any = None


def _to_item(raw: Any) -> BatchItem:
    if not isinstance(raw, dict):
        return BatchItem(phone=None, message=None)
    return BatchItem(phone=_text(raw.get("phone")), message=_text(raw.get("message")))


# ---------------------------------------------------------------------------
# POST /send
# ---------------------------------------------------------------------------

@router.post("/send", response_model=None)
async def send_message(
    req: SendRequest,
    gateway: MessagingGateway = Depends(get_gateway),
) -> dict | JSONResponse:
    if not req.phone or not req.message:
        return JSONResponse(
            {"error": 'Fields "phone" and "message" are required'},
            status_code=400,
        )

    try:
        jid = await gateway.send_one(req.phone, req.message)
    except Exception as e:
        return JSONResponse({"success": False, "error": str(e)}, status_code=500)

    return {"success": True, "jid": jid}


# ---------------------------------------------------------------------------
# POST /send-batch
# ---------------------------------------------------------------------------

@router.post("/send-batch")
async def send_batch(
    req: SendBatchRequest,
    gateway: MessagingGateway = Depends(get_gateway),
) -> dict:
    gateway.validate_batch(req.messages)
    report = await gateway.send_batch([_to_item(m) for m in req.messages])
    return report.to_dict()
