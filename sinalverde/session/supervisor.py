"""
Connection supervisor for the single WhatsApp session.

The supervisor is the only writer of :class:`SessionState`. Session clients
push typed events onto a queue that one dedicated task drains; commands
(``connect``/``disconnect``/``reset_credentials``) and event application share
one lock, so a snapshot always shows the state before or after a transition.

Each session client is tagged with a generation number. Events carrying an
old generation (from a client that was replaced or discarded) are dropped.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from sinalverde.adapters.whatsapp import (
    ConnectionClosed,
    ConnectionEvent,
    ConnectionOpened,
    CredentialsUpdated,
    CredentialStore,
    CredentialStoreError,
    QrCodeReceived,
    SessionClient,
    SessionClientFactory,
)

from .qr import render_qr_png
from .state import PairingPayload, SessionPhase, SessionSnapshot, SessionState

logger = logging.getLogger(__name__)

RESTART_DELAY_SECONDS = 2.0
RECONNECT_DELAY_SECONDS = 5.0
LOGGED_OUT_MESSAGE = "Session ended. Scan the QR code again."
UNKNOWN_IDENTITY = "unknown"


@dataclass(frozen=True)
class _HandshakeFailed:
    """Posted when ``SessionClient.start()`` raises."""

    error: str


def phone_from_jid(jid: str | None) -> str:
    """Return the phone-number part of a session JID.

    ``"5511999998888:12@s.whatsapp.net"`` -> ``"5511999998888"``.
    """
    if not jid:
        return UNKNOWN_IDENTITY
    user = jid.split("@", 1)[0].split(":", 1)[0]
    return user or UNKNOWN_IDENTITY


class ConnectionSupervisor:
    """
    Owns the lifecycle of the process' single WhatsApp session.

    State machine::

        Disconnected --connect()--> Connecting --opened--> Connected
        Connecting/Connected --closed(logged out)--> Disconnected, credentials wiped
        Connecting/Connected --closed(restart required)--> Disconnected, reconnect in 2s
        Connecting/Connected --closed(other)--> Disconnected, reconnect in 5s
        Connecting/Connected --closed(normal)--> Disconnected
        any --disconnect()--> Disconnected, logout + credentials wiped

    Example:
        supervisor = ConnectionSupervisor(CredentialStore("./auth_data"), factory)
        await supervisor.connect()
        snap = supervisor.snapshot()
    """

    def __init__(
        self,
        credentials: CredentialStore,
        client_factory: SessionClientFactory,
        *,
        qr_renderer: Callable[[str], bytes] = render_qr_png,
        restart_delay: float = RESTART_DELAY_SECONDS,
        reconnect_delay: float = RECONNECT_DELAY_SECONDS,
    ) -> None:
        self._credentials = credentials
        self._client_factory = client_factory
        self._render_qr = qr_renderer
        self._restart_delay = restart_delay
        self._reconnect_delay = reconnect_delay

        self._state = SessionState()
        self._lock = asyncio.Lock()
        self._events: asyncio.Queue[tuple[int, ConnectionEvent | _HandshakeFailed]] = asyncio.Queue()

        self._client: SessionClient | None = None
        self._generation = 0

        self._pump_task: asyncio.Task | None = None
        self._handshake_task: asyncio.Task | None = None
        self._reconnect_task: asyncio.Task | None = None
        self._background: set[asyncio.Task] = set()

    # -- read side ---------------------------------------------------------

    @property
    def credentials(self) -> CredentialStore:
        return self._credentials

    @property
    def client(self) -> SessionClient | None:
        """The live session client, or None when no session is open."""
        return self._client

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    def snapshot(self) -> SessionSnapshot:
        """Consistent, read-only copy of the session state."""
        return self._state.snapshot()

    def record_sent(self) -> int:
        """Count one successfully delivered message; returns the new total."""
        self._state.messages_sent += 1
        return self._state.messages_sent

    # -- commands ----------------------------------------------------------

    async def connect(self) -> None:
        """
        Open a session if none is open or opening.

        Re-entrant calls while Connecting (and calls while Connected) are
        no-ops. Failures are recorded in ``last_error``; nothing is raised.
        """
        self._ensure_pump()
        async with self._lock:
            phase = self._state.phase
            if phase == SessionPhase.CONNECTING:
                logger.info("Connect ignored: session is already connecting")
                return
            if phase == SessionPhase.CONNECTED:
                logger.info("Connect ignored: session is already connected")
                return

            logger.info("Connecting WhatsApp session")
            self._state.phase = SessionPhase.CONNECTING
            self._state.pending_qr = None
            self._state.last_error = None

            try:
                auth_dir = await self._credentials.open()
                self._generation += 1
                generation = self._generation
                client = await self._client_factory(auth_dir, self._sink_for(generation))
            except Exception as e:
                logger.error("Failed to open WhatsApp session: %s", e)
                self._state.phase = SessionPhase.DISCONNECTED
                self._state.last_error = str(e)
                return

            self._client = client
            self._handshake_task = self._spawn(self._handshake(client, generation))

    def connect_in_background(self) -> asyncio.Task:
        """Schedule :meth:`connect` without waiting for it."""
        return self._spawn(self.connect())

    async def disconnect(self) -> None:
        """
        Log out (best effort), wipe stored credentials and reset the session.

        Safe from any state. A pending automatic reconnect is cancelled.
        """
        async with self._lock:
            self._cancel_reconnect()
            await self._stop_handshake()
            client = self._retire_client()
            self._state.reset()

            if client is not None:
                try:
                    await client.logout()
                except Exception as e:
                    logger.warning("Logout failed, continuing disconnect: %s", e)

            await self._wipe_credentials()
            logger.info("WhatsApp session disconnected and credentials wiped")

    async def reset_credentials(self) -> None:
        """Wipe stored credentials so the next connect starts a new pairing."""
        async with self._lock:
            await self._wipe_credentials()

    async def drain(self) -> None:
        """Wait until every queued connection event has been applied."""
        await self._events.join()

    async def shutdown(self) -> None:
        """Stop background work and close the socket, keeping the pairing."""
        self._cancel_reconnect()
        await self._stop_handshake()
        for task in list(self._background):
            task.cancel()
        if self._pump_task is not None:
            self._pump_task.cancel()
            self._pump_task = None

        client = self._retire_client()
        if client is not None:
            try:
                await client.close()
            except Exception as e:
                logger.warning("Error closing WhatsApp session on shutdown: %s", e)

    # -- event application -------------------------------------------------

    def _sink_for(self, generation: int) -> Callable[[ConnectionEvent], None]:
        def sink(event: ConnectionEvent) -> None:
            self._events.put_nowait((generation, event))

        return sink

    def _ensure_pump(self) -> None:
        if self._pump_task is None or self._pump_task.done():
            self._pump_task = asyncio.create_task(self._pump(), name="sinalverde-session-events")

    async def _pump(self) -> None:
        while True:
            generation, event = await self._events.get()
            try:
                async with self._lock:
                    if generation != self._generation:
                        logger.debug("Dropping stale event %r (generation %d)", event, generation)
                        continue
                    await self._apply(event)
            except Exception:
                logger.exception("Failed to apply connection event %r", event)
            finally:
                self._events.task_done()

    async def _apply(self, event: ConnectionEvent | _HandshakeFailed) -> None:
        if isinstance(event, QrCodeReceived):
            self._on_qr(event)
        elif isinstance(event, ConnectionOpened):
            self._on_opened(event)
        elif isinstance(event, ConnectionClosed):
            await self._on_closed(event)
        elif isinstance(event, CredentialsUpdated):
            await self._on_credentials_updated()
        elif isinstance(event, _HandshakeFailed):
            await self._on_handshake_failed(event)

    def _on_qr(self, event: QrCodeReceived) -> None:
        if self._state.phase != SessionPhase.CONNECTING:
            logger.debug("Ignoring QR code outside the connecting phase")
            return

        image: bytes | None = None
        try:
            image = self._render_qr(event.qr)
        except Exception as e:
            logger.error("Failed to render QR code: %s", e)

        self._state.pending_qr = PairingPayload(raw=event.qr, image=image)
        logger.info("QR code ready, scan it with the phone")

    def _on_opened(self, event: ConnectionOpened) -> None:
        identity = event.identity
        if identity is None and self._client is not None:
            identity = self._client.identity

        self._state.phase = SessionPhase.CONNECTED
        self._state.pending_qr = None
        self._state.connected_identity = phone_from_jid(identity)
        self._state.last_error = None
        logger.info("Connected as %s", self._state.connected_identity)

    async def _on_closed(self, event: ConnectionClosed) -> None:
        code = event.status_code
        logger.warning("WhatsApp connection closed (code %s)", code)

        await self._stop_handshake()
        self._retire_client()
        self._state.phase = SessionPhase.DISCONNECTED
        self._state.connected_identity = None
        self._state.pending_qr = None

        if event.is_logged_out:
            self._state.last_error = LOGGED_OUT_MESSAGE
            logger.warning("Session logged out, a new QR pairing is required")
            await self._wipe_credentials()
        elif event.is_restart_required:
            self._schedule_reconnect(self._restart_delay)
        elif not event.is_expected:
            self._state.last_error = f"Disconnected (code {code}). Reconnecting..."
            self._schedule_reconnect(self._reconnect_delay)

    async def _on_credentials_updated(self) -> None:
        if self._client is None:
            return
        try:
            await self._client.save_credentials()
        except Exception as e:
            logger.error("Failed to save WhatsApp credentials: %s", e)

    async def _on_handshake_failed(self, event: _HandshakeFailed) -> None:
        logger.error("WhatsApp handshake failed: %s", event.error)
        client = self._retire_client()
        self._state.phase = SessionPhase.DISCONNECTED
        self._state.pending_qr = None
        self._state.connected_identity = None
        self._state.last_error = event.error

        if client is not None:
            try:
                await client.close()
            except Exception as e:
                logger.debug("Error closing failed session client: %s", e)

    # -- helpers -----------------------------------------------------------

    async def _handshake(self, client: SessionClient, generation: int) -> None:
        try:
            await client.start()
        except asyncio.CancelledError:
            # the socket may be half open
            try:
                await client.close()
            except Exception as e:
                logger.debug("Error closing interrupted session client: %s", e)
            raise
        except Exception as e:
            self._events.put_nowait((generation, _HandshakeFailed(error=str(e))))

    async def _stop_handshake(self) -> None:
        """Cancel a handshake still in flight and wait for it to wind down.

        A handshake cancelled before it ran never opens a socket; one cancelled
        inside ``start()`` closes its client on the way out.
        """
        task, self._handshake_task = self._handshake_task, None
        if task is None or task.done():
            return
        task.cancel()
        await asyncio.wait([task])

    def _retire_client(self) -> SessionClient | None:
        """Forget the current client; its later events become stale."""
        client, self._client = self._client, None
        self._generation += 1
        return client

    async def _wipe_credentials(self) -> None:
        try:
            await self._credentials.wipe()
        except CredentialStoreError as e:
            logger.error("%s", e)
            self._state.last_error = str(e)

    def _schedule_reconnect(self, delay: float) -> None:
        self._cancel_reconnect()
        logger.info("Reconnecting in %.0fs", delay)
        self._reconnect_task = asyncio.create_task(self._reconnect_after(delay))

    async def _reconnect_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self._reconnect_task = None
        await self.connect()

    def _cancel_reconnect(self) -> None:
        if self._reconnect_task is not None:
            self._reconnect_task.cancel()
            self._reconnect_task = None

    def _spawn(self, coro) -> asyncio.Task:  # noqa: ANN001
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task
