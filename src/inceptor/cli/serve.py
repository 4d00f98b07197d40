"""
CLI: ``inceptor serve`` — start the HTTP server.
"""

from __future__ import annotations

import typer
import uvicorn

from inceptor.cli.utils import console, load_settings
from inceptor.core.logging import configure_logging


def serve(
    host: str = typer.Option(None, "--host", "-h", help="Bind address [default: settings.host]"),
    port: int = typer.Option(None, "--port", "-p", help="Bind port [default: settings.port]"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
    workers: int = typer.Option(1, "--workers", "-w", help="Number of workers"),
    log_level: str = typer.Option(None, "--log-level"),
) -> None:
    """Start the inceptor HTTP server."""
    settings = load_settings(host=host, port=port, log_level=log_level)
    configure_logging(level=settings.log_level, json_format=settings.log_json)

    console.print(f"[bold green]Starting inceptor[/bold green] on {settings.host}:{settings.port}")
    uvicorn.run(
        "inceptor.api:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=reload,
        workers=workers,
        log_level=settings.log_level.lower(),
    )
