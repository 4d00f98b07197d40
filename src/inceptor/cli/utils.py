"""
CLI utility helpers — consoles, settings overrides and error output.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from inceptor.core.errors import InceptorError
from inceptor.core.settings import InceptorSettings, get_settings

console = Console()
err_console = Console(stderr=True)


def load_settings(**overrides: Any) -> InceptorSettings:
    """Cached settings with CLI flags applied on top (``None`` flags ignored)."""
    updates = {key: value for key, value in overrides.items() if value is not None}
    settings = get_settings()
    if not updates:
        return settings
    return settings.model_copy(update=updates)


def read_source(source_file: Path | None, code: str | None) -> str:
    """Snippet from ``--code`` or a file; exactly one must be given."""
    if (source_file is None) == (code is None):
        err_console.print("[bold red]Error:[/bold red] give either SOURCE_FILE or --code")
        raise typer.Exit(code=2)
    if code is not None:
        return code
    try:
        return source_file.read_text(encoding="utf-8")
    except OSError as exc:
        err_console.print(f"[bold red]Error:[/bold red] cannot read {source_file}: {exc}")
        raise typer.Exit(code=1) from exc


def fail(exc: InceptorError) -> None:
    """Print an inceptor error and exit non-zero."""
    err_console.print(f"[bold red]Error[/bold red] ({exc.category.value}): {exc.message}")
    if exc.cause is not None:
        err_console.print(f"[dim]caused by: {exc.cause}[/dim]")
    raise typer.Exit(code=1)
