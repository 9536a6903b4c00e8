"""Per-application context and the FastAPI dependencies that expose it."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from fastapi import Request

from sinalverde.config.settings import Settings
from sinalverde.messaging import MessagingGateway
from sinalverde.session import ConnectionSupervisor


@dataclass
class AppContext:
    """Everything a request handler may touch, created once per app."""

    settings: Settings
    supervisor: ConnectionSupervisor
    gateway: MessagingGateway
    started_at: float = field(default_factory=time.monotonic)

    @property
    def uptime(self) -> int:
        """Whole seconds since the application was created."""
        return int(time.monotonic() - self.started_at)


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_supervisor(request: Request) -> ConnectionSupervisor:
    return get_context(request).supervisor


def get_gateway(request: Request) -> MessagingGateway:
    return get_context(request).gateway
