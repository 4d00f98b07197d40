"""
Root Typer application for the inceptor CLI.

Commands:
    inceptor serve                        Start the HTTP server
    inceptor run SOURCE_FILE | --code     Run a snippet on a single-use function
    inceptor package SOURCE_FILE          Build the deployment archive only
    inceptor name                         Generate function names
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer
from rich.syntax import Syntax
from rich.table import Table

from inceptor import __version__
from inceptor.cli.serve import serve
from inceptor.cli.utils import console, err_console, fail, load_settings, read_source
from inceptor.core.errors import InceptorError
from inceptor.core.logging import configure_logging
from inceptor.execution.naming import generate_identifier
from inceptor.execution.packaging import ArtifactPackager
from inceptor.execution.pipeline import ExecutionPipeline
from inceptor.execution.runtimes._types import InvocationResult
from inceptor.execution.runtimes.lambda_backend import LambdaBackend

app = typer.Typer(
    name="inceptor",
    help="inceptor — run code snippets on single-use AWS Lambda functions.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"inceptor {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """inceptor CLI — package, run and serve snippets."""


app.command("serve")(serve)


# ── name ─────────────────────────────────────────────────────────────────


@app.command("name")
def name(
    length: int = typer.Option(None, "--length", "-l", min=1, help="Name length [default: settings.name_length]"),
    count: int = typer.Option(1, "--count", "-n", min=1, help="How many names to print"),
) -> None:
    """Print random function names."""
    settings = load_settings(name_length=length)
    for _ in range(count):
        typer.echo(generate_identifier(settings.name_length))


# ── package ──────────────────────────────────────────────────────────────


@app.command("package")
def package(
    source_file: Path = typer.Argument(None, exists=True, dir_okay=False, help="Snippet to package"),
    code: str = typer.Option(None, "--code", "-c", help="Snippet given inline"),
    output: Path = typer.Option(Path("handler.zip"), "--output", "-o", help="Archive path"),
    show: bool = typer.Option(False, "--show", help="Print the wrapped handler source"),
) -> None:
    """Build the deployment archive for a snippet without provisioning anything."""
    source = read_source(source_file, code)
    packager = ArtifactPackager()
    try:
        artifact = packager.package(source)
        written = packager.write(artifact, output)
    except InceptorError as exc:
        fail(exc)
        return

    table = Table(title="Artifact", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Path", str(written))
    table.add_row("Member", artifact.member_name)
    table.add_row("Size", f"{artifact.size_bytes} bytes")
    table.add_row("SHA-256", artifact.sha256)
    console.print(table)

    if show:
        console.print(Syntax(artifact.source, "python", line_numbers=True))


# ── run ──────────────────────────────────────────────────────────────────


async def _execute(pipeline: ExecutionPipeline, source: str, wait: bool) -> InvocationResult:
    try:
        return await pipeline.execute(source)
    finally:
        if wait:
            await pipeline.drain()


@app.command("run")
def run(
    source_file: Path = typer.Argument(None, exists=True, dir_okay=False, help="Snippet to run"),
    code: str = typer.Option(None, "--code", "-c", help="Snippet given inline"),
    role: str = typer.Option(None, "--role", help="Execution role ARN (skips the self lookup)"),
    region: str = typer.Option(None, "--region", help="AWS region"),
    runtime: str = typer.Option(None, "--runtime", help="Lambda runtime identifier"),
    wait: bool = typer.Option(True, "--wait/--no-wait", help="Wait for the function to be deleted"),
    as_json: bool = typer.Option(False, "--json", help="Print the result with its metadata as JSON"),
    log_level: str = typer.Option(None, "--log-level"),
) -> None:
    """Run a snippet once on a single-use Lambda function and print its output."""
    source = read_source(source_file, code)
    settings = load_settings(
        execution_role=role,
        aws_region=region,
        runtime=runtime,
        log_level=log_level,
    )
    configure_logging(level=settings.log_level, json_format=settings.log_json)

    pipeline = ExecutionPipeline(LambdaBackend(settings=settings), settings=settings)
    try:
        result = asyncio.run(_execute(pipeline, source, wait))
    except InceptorError as exc:
        fail(exc)
        return

    if as_json:
        console.print_json(json.dumps({**result.to_dict(), "payload": result.text}))
    else:
        typer.echo(result.text)

    if result.function_error:
        err_console.print(f"[yellow]Function raised ({result.function_error})[/yellow]")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
