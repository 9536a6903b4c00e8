"""Session lifecycle endpoints -- status, QR pairing, connect, disconnect."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel

from sinalverde.api.deps import AppContext, get_context, get_supervisor
from sinalverde.session import ConnectionSupervisor

logger = logging.getLogger(__name__)

router = APIRouter(tags=["session"])


class ConnectRequest(BaseModel):
    reset: bool = False


# ---------------------------------------------------------------------------
# GET /status
# ---------------------------------------------------------------------------

@router.get("/status")
async def session_status(ctx: AppContext = Depends(get_context)) -> dict:
    snap = ctx.supervisor.snapshot()
    return {
        "status": snap.phase.value,
        "phone": snap.connected_identity,
        "messagesSent": snap.messages_sent,
        "lastError": snap.last_error,
        "hasQrCode": snap.has_qr_code,
        "uptime": ctx.uptime,
    }


# ---------------------------------------------------------------------------
# GET /qr
# ---------------------------------------------------------------------------

@router.get("/qr", response_model=None)
async def pairing_qr(
    format: str | None = Query(None, description='"image" returns the raw PNG.'),
    supervisor: ConnectionSupervisor = Depends(get_supervisor),
) -> dict | Response:
    snap = supervisor.snapshot()
    if snap.is_connected:
        return {
            "status": "connected",
            "phone": snap.connected_identity,
            "message": "Already connected!",
        }

    payload = snap.pending_qr
    if payload is None or payload.image is None:
        return {
            "status": "waiting",
            "message": "QR code not generated yet. Wait or call /connect.",
        }

    if format == "image":
        return Response(content=payload.image, media_type="image/png")

    return {"status": "qr_ready", "qrCode": payload.data_uri, "qrCodeRaw": payload.raw}


# ---------------------------------------------------------------------------
# POST /connect, POST /disconnect
# ---------------------------------------------------------------------------

@router.post("/connect")
async def connect_session(
    req: ConnectRequest | None = None,
    supervisor: ConnectionSupervisor = Depends(get_supervisor),
) -> dict:
    snap = supervisor.snapshot()
    if snap.is_connected:
        return {"status": "already_connected", "phone": snap.connected_identity}

    if req is not None and req.reset:
        await supervisor.reset_credentials()
        logger.info("Credentials wiped on request, a new QR will be generated")

    supervisor.connect_in_background()
    return {
        "status": "connecting",
        "message": "Connecting... Fetch /qr to get the QR code.",
    }


@router.post("/disconnect")
async def disconnect_session(
    supervisor: ConnectionSupervisor = Depends(get_supervisor),
) -> dict:
    await supervisor.disconnect()
    return {"status": "disconnected", "message": "Disconnected and session wiped."}
