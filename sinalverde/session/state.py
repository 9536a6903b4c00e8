"""Session state owned by the connection supervisor."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from enum import Enum


class SessionPhase(str, Enum):
    """Connection phase of the single WhatsApp session."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(frozen=True)
class PairingPayload:
    """
    A pending device-linking secret.

    Attributes:
        raw: The pairing text produced by the session client.
        image: PNG rendering of ``raw`` as a QR code, or None if rendering failed.
    """

    raw: str
    image: bytes | None = None

    @property
    def data_uri(self) -> str | None:
        """The PNG as a ``data:image/png;base64,...`` URI."""
        if self.image is None:
            return None
        return "data:image/png;base64," + base64.b64encode(self.image).decode("ascii")


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only copy of :class:`SessionState` handed to HTTP callers."""

    phase: SessionPhase
    pending_qr: PairingPayload | None
    connected_identity: str | None
    last_error: str | None
    messages_sent: int

    @property
    def has_qr_code(self) -> bool:
        return self.pending_qr is not None and self.pending_qr.image is not None

    @property
    def is_connected(self) -> bool:
        return self.phase == SessionPhase.CONNECTED


@dataclass
class SessionState:
    """
    Mutable state of the process' single session.

    Only the supervisor writes to it. ``pending_qr`` and ``connected_identity``
    are never set at the same time.
    """

    phase: SessionPhase = SessionPhase.DISCONNECTED
    pending_qr: PairingPayload | None = None
    connected_identity: str | None = None
    last_error: str | None = None
    messages_sent: int = 0

    def reset(self) -> None:
        """Back to a fresh Disconnected session; the sent counter survives."""
        self.phase = SessionPhase.DISCONNECTED
        self.pending_qr = None
        self.connected_identity = None
        self.last_error = None

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            phase=self.phase,
            pending_qr=self.pending_qr,
            connected_identity=self.connected_identity,
            last_error=self.last_error,
            messages_sent=self.messages_sent,
        )
