"""
WhatsApp session adapter for SinalVerde.

Public API:
    - CredentialStore: Opaque multi-file auth-state directory
    - CredentialStoreError: Disk error while opening or wiping it

    - DisconnectReason: Numeric socket close codes
    - QrCodeReceived, ConnectionOpened, ConnectionClosed, CredentialsUpdated:
      Typed connection events

    - SessionClient: Protocol implemented by session clients
    - SessionClientFactory: Async constructor signature used by the supervisor
    - PyaileysSessionClient: Production client backed by pyaileys
    - SessionClientError, TransportError: Client exceptions
"""

from .client import (
    WHATSAPP_SERVER,
    EventSink,
    PyaileysSessionClient,
    SessionClient,
    SessionClientError,
    SessionClientFactory,
    TransportError,
    pyaileys_client_factory,
)
from .credentials import CredentialStore, CredentialStoreError
from .events import (
    ConnectionClosed,
    ConnectionEvent,
    ConnectionOpened,
    CredentialsUpdated,
    DisconnectReason,
    QrCodeReceived,
)

__all__ = [
    # Credentials
    "CredentialStore",
    "CredentialStoreError",

    # Events
    "ConnectionClosed",
    "ConnectionEvent",
    "ConnectionOpened",
    "CredentialsUpdated",
    "DisconnectReason",
    "QrCodeReceived",

    # Client
    "WHATSAPP_SERVER",
    "EventSink",
    "PyaileysSessionClient",
    "SessionClient",
    "SessionClientError",
    "SessionClientFactory",
    "TransportError",
    "pyaileys_client_factory",
]
