"""Quollabore reporter CLI entry point."""

from __future__ import annotations

import socket
from urllib.parse import urlparse

import typer
from rich.console import Console
from rich.table import Table

from quollabore import __version__
from quollabore.config import load_settings
from quollabore.errors import ConfigurationError

app = typer.Typer(help="Quollabore test reporter utilities", no_args_is_help=True)
console = Console()


def _check_host(url: str, timeout: float = 1.5) -> bool:
    parsed = urlparse(url)
    host = parsed.hostname
    port = parsed.port or (443 if parsed.scheme == "https" else 80)
    if not host:
        return False
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


@app.command()
def doctor(
    network: bool = typer.Option(True, "--network/--no-network", help="Check that the ingestion host is reachable."),
) -> None:
    """Resolve reporter settings from the environment and check the endpoint."""

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(code=1)

    table = Table(show_header=False, box=None)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Portal URL", settings.portal_url)
    table.add_row("Token", settings.masked_token())
    table.add_row("Project", settings.project_id)
    table.add_row("Environment", settings.environment)
    table.add_row("Provider", settings.provider)
    table.add_row("Shard", f"{settings.shard_index} / {settings.parallel_total}")
    table.add_row("CI job", settings.ci_job_id or "-")
    table.add_row("Git branch", settings.git_branch or "-")
    table.add_row("Git commit", settings.git_commit_sha or "-")
    table.add_row(
        "Failure logs",
        str(settings.failure_log_dir) if settings.persist_failure_logs else "disabled",
    )
    console.print(table)

    if network:
        ok = _check_host(settings.portal_url)
        status = "[green]reachable[/green]" if ok else "[yellow]unreachable[/yellow]"
        console.print(f"Ingestion host: {status}")


@app.command()
def version() -> None:
    """Print the reporter version."""
    console.print(__version__)


if __name__ == "__main__":
    app()
