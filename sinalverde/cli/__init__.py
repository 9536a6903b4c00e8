"""
SinalVerde - Command Line Interface

Built with Typer for commands and Rich for output.

Usage:
    $ sinalverde --help
    $ sinalverde serve --port 3001
    $ sinalverde status --url http://localhost:3001
    $ sinalverde purge --yes
"""

from __future__ import annotations

from typing import Optional

import httpx
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from sinalverde import __version__

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="sinalverde",
    help="SinalVerde - HTTP front-end for a WhatsApp Web session",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"SinalVerde version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """
    SinalVerde - HTTP front-end for a WhatsApp Web session

    Use --help on any subcommand for detailed information.
    """
    pass


@app.command()
def serve(
    host: Optional[str] = typer.Option(
        None,
        "--host",
        "-h",
        help="Host to bind to (default: HOST setting).",
    ),
    port: Optional[int] = typer.Option(
        None,
        "--port",
        "-p",
        help="Port to bind to (default: PORT setting).",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level (default: LOG_LEVEL setting).",
    ),
) -> None:
    """
    Start the SinalVerde API server.
    """
    import uvicorn

    from sinalverde.config import Settings, configure_logging

    overrides = {"LOG_LEVEL": log_level} if log_level else {}
    cfg = Settings(**overrides)
    bind_host = host or cfg.HOST
    bind_port = port or cfg.PORT

    configure_logging(cfg.log_level_value)
    console.print(Panel.fit(
        f"Starting SinalVerde on [cyan]http://{bind_host}:{bind_port}[/cyan]",
        title="Server",
    ))

    from sinalverde.main import create_app

    uvicorn.run(
        create_app(cfg),
        host=bind_host,
        port=bind_port,
        log_level=cfg.LOG_LEVEL.lower(),
    )


@app.command()
def status(
    url: str = typer.Option(
        "http://localhost:3001",
        "--url",
        "-u",
        help="Base URL of a running SinalVerde server.",
        envvar="SINALVERDE_URL",
    ),
    api_key: Optional[str] = typer.Option(
        None,
        "--api-key",
        "-k",
        help="API key (default: API_KEY setting).",
    ),
) -> None:
    """
    Show the WhatsApp session status of a running server.
    """
    from sinalverde.config import Settings

    key = api_key or Settings().API_KEY
    try:
        resp = httpx.get(f"{url.rstrip('/')}/status", headers={"x-api-key": key}, timeout=10.0)
    except httpx.HTTPError as e:
        err_console.print(f"[red]Cannot reach {url}: {e}[/red]")
        raise typer.Exit(1)

    if resp.status_code != 200:
        err_console.print(f"[red]Server answered {resp.status_code}: {resp.text}[/red]")
        raise typer.Exit(1)

    data = resp.json()
    table = Table(title="WhatsApp Session")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Status", str(data.get("status")))
    table.add_row("Phone", str(data.get("phone") or "-"))
    table.add_row("Messages sent", str(data.get("messagesSent", 0)))
    table.add_row("QR code pending", "yes" if data.get("hasQrCode") else "no")
    table.add_row("Last error", str(data.get("lastError") or "-"))
    table.add_row("Uptime (s)", str(data.get("uptime", 0)))
    console.print(table)


@app.command()
def purge(
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Do not ask for confirmation.",
    ),
) -> None:
    """
    Delete stored WhatsApp credentials (forces a new QR pairing).
    """
    import asyncio

    from sinalverde.adapters.whatsapp import CredentialStore, CredentialStoreError
    from sinalverde.config import Settings

    store = CredentialStore(Settings().AUTH_DIR)
    if not store.exists():
        console.print(f"No credentials at [cyan]{store.path}[/cyan]")
        return

    if not yes and not typer.confirm(f"Delete credentials in {store.path}?"):
        raise typer.Abort()

    try:
        asyncio.run(store.wipe())
    except CredentialStoreError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Credentials removed from {store.path}[/green]")


if __name__ == "__main__":
    app()
