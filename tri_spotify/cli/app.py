"""
Defines the command-line interface for the service using Typer.
"""

import asyncio
import logging
from pathlib import Path

import typer
from aiohttp import web
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from tri_spotify import __version__
from tri_spotify.core.service import ServiceRuntime
from tri_spotify.exceptions import TriSpotifyError
from tri_spotify.models.request import DownloadRequest
from tri_spotify.storage.artifacts import ArtifactStore
from tri_spotify.storage.config_manager import ConfigManager
from tri_spotify.utils.path import parse_spotify_track_url
from tri_spotify.web.server import create_app

from .formatters import (
    print_artifacts_table,
    print_config,
    print_result,
    print_summary_panel,
)

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("tri_spotify")

app = typer.Typer(
    name="tri-spotify",
    help=(
        "Stores the best, medium and low quality variants of a Spotify track."
        " Use 'tri-spotify <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def _load_config(cli_options: dict | None = None):
    try:
        return ConfigManager().load_config(cli_options)
    except TriSpotifyError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
):
    """tri-spotify service"""
    if version:
        console.print(f"[bold]tri-spotify[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    elif verbose == 0:
        # aiohttp's access log is noisy at INFO
        logging.getLogger("aiohttp.access").setLevel("WARNING")
    logging.getLogger("tri_spotify").setLevel(log_level)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Interface to bind."),
    port: int | None = typer.Option(
        None, "--port", "-p", help="Port to listen on (default 3500)."
    ),
    cache_dir: Path | None = typer.Option(  # noqa: B008
        None, "--cache-dir", "-c", help="Root directory for stored tracks."
    ),
    backend: str | None = typer.Option(
        None,
        "--backend",
        "-b",
        help="Streaming backend factory, as 'package.module:factory'.",
    ),
    timeout: float | None = typer.Option(
        None, "--timeout", "-t", help="Per-request time budget in seconds."
    ),
    workers: int | None = typer.Option(
        None, "--workers", "-w", help="Threads used to drain and write files."
    ),
    quiet_errors: bool = typer.Option(
        False,
        "--quiet-errors",
        help="Only return {ok: false} on failures, without the error text.",
    ),
    log_dir: Path | None = typer.Option(  # noqa: B008
        None, "--log-dir", help="Write JSON-lines request events to this directory."
    ),
):
    """Start the HTTP service (POST /dl)."""
    cli_options = {
        "host": host,
        "port": port,
        "cache_dir": cache_dir,
        "backend": backend,
        "request_timeout": timeout,
        "max_workers": workers,
        "log_dir": log_dir,
    }
    if quiet_errors:
        cli_options["verbose_errors"] = False

    config = _load_config(cli_options)
    runtime = ServiceRuntime(config)

    log.info(
        f"[bold cyan]🎵 Listening on http://{config.host}:{config.port}[/bold cyan] "
        f"[dim](cache: {config.cache_dir})[/dim]"
    )
    web.run_app(create_app(runtime), host=config.host, port=config.port, print=None)
    print_summary_panel(runtime.stats)


@app.command()
def fetch(
    source: str = typer.Argument(
        ..., help="A Spotify track link or URI, or a title to search for."
    ),
    content_hash: str = typer.Option(
        ..., "--hash", help="Directory name to store the tiers under."
    ),
    token: str = typer.Option(
        ...,
        "--token",
        envvar="TRI_SPOTIFY_TOKEN",
        help="Spotify access token.",
    ),
    cache_dir: Path | None = typer.Option(  # noqa: B008
        None, "--cache-dir", "-c", help="Root directory for stored tracks."
    ),
    backend: str | None = typer.Option(
        None, "--backend", "-b", help="Streaming backend factory."
    ),
):
    """Run a single download in-process, exactly as POST /dl would."""
    config = _load_config({"cache_dir": cache_dir, "backend": backend})

    is_link = parse_spotify_track_url(source) is not None
    try:
        request = DownloadRequest(
            url=source if is_link else "",
            title="" if is_link else source,
            hash=content_hash,
            token=token,
        )
    except ValidationError as e:
        console.print(f"[red]✗ Invalid input:[/red] {e.errors()[0]['msg']}")
        raise typer.Exit(code=1) from e

    async def _fetch_async():
        runtime = ServiceRuntime(config)
        try:
            return runtime, await runtime.orchestrator.handle(request)
        finally:
            await runtime.close()

    runtime, result = asyncio.run(_fetch_async())
    print_result(result, runtime.store.track_dir(request.hash))
    if not result.ok:
        raise typer.Exit(code=1)


@app.command(name="show-config")
def show_config():
    """Display the effective configuration."""
    print_config(_load_config())


@app.command(name="ls")
def list_artifacts(
    content_hash: str = typer.Argument(..., help="The hash a track was stored under."),
    cache_dir: Path | None = typer.Option(  # noqa: B008
        None, "--cache-dir", "-c", help="Root directory for stored tracks."
    ),
):
    """List the tiers stored under a hash."""
    config = _load_config({"cache_dir": cache_dir})
    try:
        paths = ArtifactStore(config.cache_dir).list_artifacts(content_hash)
    except ValueError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e
    print_artifacts_table(content_hash, paths)
