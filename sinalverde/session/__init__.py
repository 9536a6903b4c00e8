"""
Connection lifecycle for the single WhatsApp session.

Public API:
    - ConnectionSupervisor: Owns the session and reacts to connection events
    - SessionPhase: Disconnected / Connecting / Connected
    - SessionSnapshot: Read-only view of the session state
    - PairingPayload: Pending QR pairing secret and its PNG rendering
    - render_qr_png: QR rendering helper
"""

from .qr import render_qr_png
from .state import PairingPayload, SessionPhase, SessionSnapshot, SessionState
from .supervisor import (
    LOGGED_OUT_MESSAGE,
    RECONNECT_DELAY_SECONDS,
    RESTART_DELAY_SECONDS,
    ConnectionSupervisor,
    phone_from_jid,
)

__all__ = [
    "ConnectionSupervisor",
    "LOGGED_OUT_MESSAGE",
    "PairingPayload",
    "RECONNECT_DELAY_SECONDS",
    "RESTART_DELAY_SECONDS",
    "SessionPhase",
    "SessionSnapshot",
    "SessionState",
    "phone_from_jid",
    "render_qr_png",
]
