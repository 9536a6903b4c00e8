"""Health check endpoint (unauthenticated)."""

from fastapi import APIRouter, Depends

from sinalverde.api.deps import AppContext, get_context

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(ctx: AppContext = Depends(get_context)) -> dict:
    snap = ctx.supervisor.snapshot()
    return {
        "status": "ok",
        "whatsapp": snap.phase.value,
        "phone": snap.connected_identity,
        "messagesSent": snap.messages_sent,
        "uptime": ctx.uptime,
    }
