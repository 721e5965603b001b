"""
Main entry point for the tri-spotify service.
This module handles top-level setup, exception handling, and CLI invocation.
"""

import asyncio
import logging
import sys

import typer
from rich.console import Console

from tri_spotify.cli.app import app
from tri_spotify.cli.formatters import format_error_with_suggestions
from tri_spotify.exceptions import TriSpotifyError


def main() -> None:
    """Main entry point function."""
    log = logging.getLogger("tri_spotify")
    console = Console()

    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]⚠️  Operation cancelled by user.[/yellow]")
        sys.exit(0)
    except TriSpotifyError as e:
        console.print(f"\n{format_error_with_suggestions(e)}")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n{format_error_with_suggestions(e, {'type': 'Unexpected'})}")
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
