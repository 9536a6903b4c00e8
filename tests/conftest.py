"""Shared fixtures: an in-memory WhatsApp session client and its factory."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from sinalverde.adapters.whatsapp import ConnectionEvent, ConnectionOpened, CredentialStore
from sinalverde.session import ConnectionSupervisor

FAKE_PNG = b"\x89PNG\r\n\x1a\nfake-qr"
SESSION_JID = "5511999998888:7@s.whatsapp.net"


class FakeSessionClient:
    """In-memory stand-in for a protocol client.

    ``registered`` is None to treat every number as registered, or a set of
    JIDs that exist on the network.
    """

    def __init__(self, auth_dir: Path, sink, identity: str | None = SESSION_JID) -> None:
        self.auth_dir = auth_dir
        self.sink = sink
        self._identity = identity
        self.registered: set[str] | None = None
        self.sent: list[tuple[str, str]] = []
        self.start_error: Exception | None = None
        self.start_gate: asyncio.Event | None = None
        self.send_error: Exception | None = None
        self.resolve_error: Exception | None = None
        self.logout_error: Exception | None = None
        self.start_calls = 0
        self.started = False
        self.logged_out = False
        self.closed = False
        self.saves = 0

    @property
    def identity(self) -> str | None:
        return self._identity

    def emit(self, event: ConnectionEvent) -> None:
        self.sink(event)

    async def start(self) -> None:
        self.start_calls += 1
        if self.start_gate is not None:
            await self.start_gate.wait()
        if self.start_error is not None:
            raise self.start_error
        self.started = True

    async def send_text(self, jid: str, text: str) -> str:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((jid, text))
        return f"msg-{len(self.sent)}"

    async def resolve(self, jid: str) -> str | None:
        if self.resolve_error is not None:
            raise self.resolve_error
        if self.registered is None or jid in self.registered:
            return jid
        return None

    async def save_credentials(self) -> None:
        self.saves += 1

    async def logout(self) -> None:
        self.logged_out = True
        if self.logout_error is not None:
            raise self.logout_error

    async def close(self) -> None:
        self.closed = True


class FakeClientFactory:
    """Records every client it builds; ``start_error`` and ``start_gate`` are copied onto each."""

    def __init__(self) -> None:
        self.clients: list[FakeSessionClient] = []
        self.error: Exception | None = None
        self.start_error: Exception | None = None
        self.start_gate: asyncio.Event | None = None

    async def __call__(self, auth_dir: Path, sink) -> FakeSessionClient:
        if self.error is not None:
            raise self.error
        client = FakeSessionClient(auth_dir, sink)
        client.start_error = self.start_error
        client.start_gate = self.start_gate
        self.clients.append(client)
        return client

    @property
    def last(self) -> FakeSessionClient:
        return self.clients[-1]


async def wait_until(predicate, timeout: float = 2.0) -> None:
    """Poll *predicate* on the event loop until it holds or *timeout* passes."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)


@pytest.fixture
def factory() -> FakeClientFactory:
    return FakeClientFactory()


@pytest.fixture
def store(tmp_path: Path) -> CredentialStore:
    return CredentialStore(tmp_path / "auth")


@pytest.fixture
def supervisor(store: CredentialStore, factory: FakeClientFactory) -> ConnectionSupervisor:
    return ConnectionSupervisor(
        store,
        factory,
        qr_renderer=lambda raw: FAKE_PNG,
        restart_delay=0.01,
        reconnect_delay=0.02,
    )


@pytest.fixture
def open_session(supervisor: ConnectionSupervisor, factory: FakeClientFactory):
    """Drive the supervisor to Connected and return the live fake client."""

    async def _open(identity: str | None = SESSION_JID) -> FakeSessionClient:
        await supervisor.connect()
        client = factory.last
        client.emit(ConnectionOpened(identity=identity))
        await supervisor.drain()
        return client

    return _open
