"""
WhatsApp session client adapter.

Wraps the multi-device protocol client behind a small interface: a single
stream of typed connection events plus ``send_text``/``resolve``/``logout``.
The production implementation is backed by ``pyaileys`` (installed with the
``whatsapp`` extra); tests inject an in-memory implementation of the same
protocol.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, Protocol

from .events import (
    ConnectionClosed,
    ConnectionEvent,
    ConnectionOpened,
    CredentialsUpdated,
    QrCodeReceived,
)

logger = logging.getLogger(__name__)

WHATSAPP_SERVER = "s.whatsapp.net"
BROWSER_PLATFORM = "Chrome"
BROWSER_VERSION = "120.0.0"

EventSink = Callable[[ConnectionEvent], None]


class SessionClientError(Exception):
    """Base exception for session client errors."""
    pass


class TransportError(SessionClientError):
    """The underlying library failed to send or look up; message passed through."""
    pass


class SessionClient(Protocol):
    """Protocol for a single WhatsApp Web session.

    Implementations deliver connection events to the sink they were created
    with, in the order the protocol library produces them.
    """

    @property
    def identity(self) -> str | None:
        """The session's own JID once paired, else None."""
        ...

    async def start(self) -> None:
        """Open the socket and begin the handshake."""
        ...

    async def send_text(self, jid: str, text: str) -> str:
        """Send a text message and return its message ID."""
        ...

    async def resolve(self, jid: str) -> str | None:
        """Return the account JID registered for *jid*, or None if unregistered."""
        ...

    async def save_credentials(self) -> None:
        """Persist the current auth material to the credential directory."""
        ...

    async def logout(self) -> None:
        """Unlink this device from the account and close the socket."""
        ...

    async def close(self) -> None:
        """Close the socket, keeping the pairing."""
        ...


SessionClientFactory = Callable[[Path, EventSink], Awaitable[SessionClient]]


def _child(node: Any, tag: str) -> Any:
    content = getattr(node, "content", None)
    if not isinstance(content, list):
        return None
    for c in content:
        if getattr(c, "tag", None) == tag:
            return c
    return None


def _status_code(update: Any) -> int | None:
    """Dig the numeric close code out of a ``connection.update`` payload."""
    last = getattr(update, "last_disconnect", None)
    if last is None:
        return None
    error = getattr(last, "error", last)
    for source in (error, getattr(error, "output", None)):
        for attr in ("status_code", "code"):
            value = getattr(source, attr, None)
            if isinstance(value, int):
                return value
    return None


class PyaileysSessionClient:
    """
    Session client backed by ``pyaileys.WhatsAppClient``.

    Translates the library's ``connection.update`` and ``creds.update``
    callbacks into typed events for the supervisor.

    Example:
        client = await PyaileysSessionClient.create(Path("./auth_data"), queue.put_nowait)
        await client.start()
    """

    def __init__(self, client: Any, auth_state: Any, sink: EventSink) -> None:
        self._client = client
        self._auth_state = auth_state
        self._sink = sink

        client.on("connection.update", self._on_connection_update)
        client.on("creds.update", self._on_creds_update)

    @classmethod
    async def create(
        cls,
        auth_dir: Path,
        sink: EventSink,
        *,
        browser_name: str = "SinalVerde",
    ) -> "PyaileysSessionClient":
        """Load the multi-file auth state in *auth_dir* and build a client."""
        try:
            from pyaileys import WhatsAppClient
            from pyaileys.socket_config import SocketConfig
        except ImportError as e:
            raise SessionClientError(
                "pyaileys is not installed; install sinalverde[whatsapp]"
            ) from e

        socket_config = SocketConfig()
        if hasattr(socket_config, "browser"):
            socket_config.browser = (browser_name, BROWSER_PLATFORM, BROWSER_VERSION)
        if hasattr(socket_config, "mark_online_on_connect"):
            socket_config.mark_online_on_connect = False

        client, auth_state = await WhatsAppClient.from_auth_folder(
            str(auth_dir), socket=socket_config
        )
        return cls(client, auth_state, sink)

    @property
    def identity(self) -> str | None:
        me = self._client.socket.auth.creds.me
        return me.id if me and me.id else None

    async def _on_connection_update(self, update: Any) -> None:
        qr = getattr(update, "qr", None)
        if qr:
            self._sink(QrCodeReceived(qr=qr))

        connection = getattr(update, "connection", None)
        if connection == "open":
            self._sink(ConnectionOpened(identity=self.identity))
        elif connection == "close":
            self._sink(ConnectionClosed(status_code=_status_code(update)))

    async def _on_creds_update(self, _creds: Any) -> None:
        self._sink(CredentialsUpdated())

    async def start(self) -> None:
        await self._client.connect()

    async def send_text(self, jid: str, text: str) -> str:
        try:
            return await self._client.send_text(jid, text)
        except Exception as e:
            raise TransportError(str(e)) from e

    async def resolve(self, jid: str, *, timeout_s: float = 20.0) -> str | None:
        """
        Look *jid* up with a USync ``contact`` query.

        Returns:
            The JID the server reports for the number, or None when the
            number has no WhatsApp account.

        Raises:
            TransportError: If the query itself fails.
        """
        from pyaileys.wabinary import S_WHATSAPP_NET
        from pyaileys.wabinary.types import BinaryNode

        number = jid.split("@", 1)[0]
        sid = f"contact-{int(time.time() * 1000)}"
        iq = BinaryNode(
            tag="iq",
            attrs={"to": S_WHATSAPP_NET, "type": "get", "xmlns": "usync"},
            content=[
                BinaryNode(
                    tag="usync",
                    attrs={
                        "context": "interactive",
                        "mode": "query",
                        "sid": sid,
                        "last": "true",
                        "index": "0",
                    },
                    content=[
                        BinaryNode(
                            tag="query", attrs={}, content=[BinaryNode(tag="contact", attrs={})]
                        ),
                        BinaryNode(
                            tag="list",
                            attrs={},
                            content=[
                                BinaryNode(
                                    tag="user",
                                    attrs={},
                                    content=[
                                        BinaryNode(
                                            tag="contact",
                                            attrs={},
                                            content=f"+{number}".encode(),
                                        )
                                    ],
                                )
                            ],
                        ),
                    ],
                )
            ],
        )

        try:
            res = await self._client.socket.query(iq, timeout_s=timeout_s)
        except Exception as e:
            raise TransportError(str(e)) from e

        if res.attrs.get("type") != "result":
            raise TransportError(f"contact lookup failed for {jid}")

        list_node = _child(_child(res, "usync"), "list")
        if list_node is None or not isinstance(list_node.content, list):
            return None
        for user_node in list_node.content:
            if getattr(user_node, "tag", None) != "user":
                continue
            contact = _child(user_node, "contact")
            if contact is not None and contact.attrs.get("type") == "in":
                return user_node.attrs.get("jid") or jid
        return None

    async def save_credentials(self) -> None:
        await self._auth_state.save_creds()

    async def logout(self) -> None:
        from pyaileys.wabinary import S_WHATSAPP_NET
        from pyaileys.wabinary.types import BinaryNode

        me = self.identity
        try:
            if me:
                iq = BinaryNode(
                    tag="iq",
                    attrs={"to": S_WHATSAPP_NET, "type": "set", "xmlns": "md"},
                    content=[
                        BinaryNode(
                            tag="remove-companion-device",
                            attrs={"jid": me, "reason": "user_initiated"},
                        )
                    ],
                )
                await self._client.socket.query(iq)
        finally:
            await self._client.disconnect()

    async def close(self) -> None:
        await self._client.disconnect()


def pyaileys_client_factory(browser_name: str = "SinalVerde") -> SessionClientFactory:
    """Build a :data:`SessionClientFactory` producing pyaileys-backed clients."""

    async def factory(auth_dir: Path, sink: EventSink) -> SessionClient:
        return await PyaileysSessionClient.create(auth_dir, sink, browser_name=browser_name)

    return factory
