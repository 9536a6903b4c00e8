"""
Typed connection events emitted by a WhatsApp session client.

The session client pushes these onto the supervisor's queue in the order the
underlying protocol library produces them. Close reasons use the numeric codes
of the WhatsApp Web multi-device protocol.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class DisconnectReason(IntEnum):
    """Numeric close codes reported by the WhatsApp Web socket."""

    LOGGED_OUT = 401
    FORBIDDEN = 403
    CONNECTION_LOST = 408      # also "timed out"
    MULTIDEVICE_MISMATCH = 411
    CONNECTION_CLOSED = 428    # normal / expected closure
    CONNECTION_REPLACED = 440
    BAD_SESSION = 500
    UNAVAILABLE_SERVICE = 503
    RESTART_REQUIRED = 515


@dataclass(frozen=True)
class QrCodeReceived:
    """A fresh pairing payload to be rendered as a QR code."""

    qr: str


@dataclass(frozen=True)
class ConnectionOpened:
    """The socket finished its handshake and the session is usable.

    Attributes:
        identity: The session's own JID (e.g. ``"5511999998888:12@s.whatsapp.net"``),
            or None when the library did not report one.
    """

    identity: str | None = None


@dataclass(frozen=True)
class ConnectionClosed:
    """The socket closed.

    Attributes:
        status_code: The numeric close code, or None when the library gave none.
    """

    status_code: int | None = None

    @property
    def is_logged_out(self) -> bool:
        return self.status_code == DisconnectReason.LOGGED_OUT

    @property
    def is_restart_required(self) -> bool:
        return self.status_code == DisconnectReason.RESTART_REQUIRED

    @property
    def is_expected(self) -> bool:
        return self.status_code == DisconnectReason.CONNECTION_CLOSED


@dataclass(frozen=True)
class CredentialsUpdated:
    """The client's auth material changed and should be persisted."""


ConnectionEvent = QrCodeReceived | ConnectionOpened | ConnectionClosed | CredentialsUpdated
