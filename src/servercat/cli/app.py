# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Typer CLI application root."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from servercat import __version__
from servercat.api.credentials import CredentialIssuer
from servercat.api.rbac import Role, permissions_of
from servercat.audit.logger import SecurityLogger
from servercat.core.config import get_settings
from servercat.core.logging import setup_logging

app = typer.Typer(
    name="servercat",
    help="Server offering catalog API with an OWASP-style security pipeline",
    no_args_is_help=True,
)

console = Console()


@app.command()
def serve(
    host: Annotated[str | None, typer.Option("--host", help="Bind address")] = None,
    port: Annotated[int | None, typer.Option("--port", "-p", help="Bind port")] = None,
    workers: Annotated[int | None, typer.Option("--workers", "-w", help="Worker count")] = None,
    no_background: Annotated[
        bool, typer.Option("--no-background", help="Disable periodic sweeps and log rotation")
    ] = False,
) -> None:
    """Start the servercat API server."""
    import uvicorn

    if no_background:
        # Pass flag via environment; the app factory reads settings from it
        os.environ["SERVERCAT_ENABLE_BACKGROUND_TASKS"] = "false"

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)

    uvicorn.run(
        "servercat.api.app:create_app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        workers=workers or settings.api_workers,
        factory=True,
    )


@app.command()
def token(
    subject: Annotated[str, typer.Option("--subject", "-s", help="Subject (user id) of the credential")] = "admin",
    role: Annotated[Role, typer.Option("--role", "-r", help="Role carried by the credential")] = Role.ADMIN,
    raw: Annotated[bool, typer.Option("--raw", help="Print only the token")] = False,
) -> None:
    """Issue a bearer credential for local testing."""
    settings = get_settings()
    issuer = CredentialIssuer(
        settings.jwt_secret,
        ttl_seconds=settings.credential_ttl_seconds,
        algorithm=settings.jwt_algorithm,
    )
    try:
        credential = issuer.issue(subject, role.value)
    except ValueError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from None

    if raw:
        typer.echo(credential.token)
        return

    table = Table(title="Credential", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Subject", credential.subject)
    table.add_row("Role", credential.role)
    table.add_row("Permissions", ", ".join(sorted(p.value for p in permissions_of(credential.role))))
    table.add_row("Expires in", f"{credential.expires_in}s")
    console.print(table)
    typer.echo(credential.token)


@app.command("rotate-logs")
def rotate_logs(
    log_dir: Annotated[
        Path | None, typer.Option("--log-dir", help="Directory holding the log files")
    ] = None,
) -> None:
    """Rotate the security, error, and audit log files."""
    directory = log_dir or get_settings().log_dir
    if directory is None:
        console.print("[yellow]File logging is disabled; nothing to rotate.[/yellow]")
        return
    rotated = SecurityLogger(directory).rotate()
    if not rotated:
        console.print("No log files rotated.")
        return
    for path in rotated:
        console.print(f"[green]Rotated[/green] {path}")


@app.command()
def version() -> None:
    """Show version."""
    typer.echo(f"servercat {__version__}")
