"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from tri_spotify.core.orchestrator import DownloadResult, Outcome
from tri_spotify.models.config import ServiceConfig
from tri_spotify.models.stats import ServiceStats
from tri_spotify.utils.formatting import format_size, format_uptime


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ConfigurationError": [
            "• Check the TRI_* environment variables and command-line options.",
            "• Run `tri-spotify show-config` to see the effective settings.",
        ],
        "ResolutionError": [
            "• Pass an open.spotify.com/track/… link or a spotify:track:… URI.",
            "• When searching by title, make sure the access token is valid.",
        ],
        "BackendError": [
            "• The access token may have expired. Request a fresh one.",
            "• The track may not be available in your account's region.",
        ],
        "SelectionExhaustedError": [
            "• The backend only offers formats outside every tier's preferences.",
        ],
        "PersistenceError": [
            "• Check that the cache directory is writable and has free space.",
        ],
        "ClientResponseError": [
            "• A network connection issue occurred.",
            "• The Spotify API might be temporarily unavailable.",
        ],
        "OSError": [
            "• The port may already be in use. Try `--port`.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config: ServiceConfig):
    """Displays the effective configuration."""
    console = Console()
    content = ""
    for key, value in config.model_dump().items():
        if key == "backend" and not value:
            value = "[yellow](not set)[/yellow]"
        elif value is None:
            value = "[dim](disabled)[/dim]"
        else:
            value = escape(str(value))
        content += f"{key} = {value}\n"

    console.print(
        Panel(content.strip(), title="Configuration", border_style="cyan")
    )


def print_result(result: DownloadResult, hash_dir: Path):
    """Displays the outcome of a single in-process download."""
    console = Console()
    table = Table(show_header=True, box=box.SIMPLE)
    table.add_column("Tier", style="bold cyan")
    table.add_column("Format")
    table.add_column("Status")

    for tier, fmt in result.saved.items():
        table.add_row(tier.value, fmt, "[green]✓ saved[/green]")
    for tier, error in result.failed.items():
        table.add_row(tier.value, "-", f"[red]✗ {escape(error)}[/red]")

    if result.ok:
        border = "yellow" if result.outcome is Outcome.PARTIAL else "green"
        title = f"🎵 [bold]{result.track.uri if result.track else 'Track'}[/bold]"
        console.print(Panel(table, title=title, border_style=border, expand=False))
        console.print(f"[dim]Stored under {escape(str(hash_dir))}[/dim]")
    else:
        console.print(
            f"[bold red]✗ {result.outcome.value}:[/bold red] {escape(result.error or '')}"
        )


def print_artifacts_table(content_hash: str, paths: list[Path]):
    """Lists the stored tier files for one hash."""
    console = Console()
    if not paths:
        console.print(f"[yellow]Nothing stored for hash '{escape(content_hash)}'.[/yellow]")
        return

    table = Table(title=f"Artifacts for {escape(content_hash)}")
    table.add_column("File", style="cyan")
    table.add_column("Size", justify="right", style="green")
    for path in paths:
        table.add_row(path.name, format_size(path.stat().st_size))
    console.print(table)


def print_summary_panel(stats: ServiceStats):
    """Displays the statistics collected while the service was running."""
    console = Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=20)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row("Requests:", f"[bold]{stats.total_requests}[/bold]")
    stats_table.add_row("✓ Completed:", f"[bold green]{stats.requests_ok}[/bold green]")
    if stats.requests_partial > 0:
        stats_table.add_row("◐ Partial:", f"[yellow]{stats.requests_partial}[/yellow]")
    if stats.requests_failed > 0:
        stats_table.add_row("✗ Failed:", f"[bold red]{stats.requests_failed}[/bold red]")
    if stats.requests_timed_out > 0:
        stats_table.add_row("⏱ Timed Out:", f"[red]{stats.requests_timed_out}[/red]")

    stats_table.add_row("", "")  # Spacer

    stats_table.add_row("Tiers Saved:", f"[green]{stats.tiers_saved}[/green]")
    if stats.tiers_failed > 0:
        stats_table.add_row("Tiers Failed:", f"[red]{stats.tiers_failed}[/red]")
    stats_table.add_row(
        "Total Written:", f"[cyan]{format_size(stats.total_size_written)}[/cyan]"
    )
    stats_table.add_row(
        "Uptime:", f"[blue]{format_uptime(stats.uptime_seconds)}[/blue]"
    )

    console.print()
    console.print(
        Panel(
            stats_table,
            title="🎵 [bold]Service Summary[/bold]",
            border_style="green",
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
