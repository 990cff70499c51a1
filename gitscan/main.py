#!/usr/bin/env python3
"""
gitscan: find every git repository below a directory and list its uncommitted changes.

    gitscan                 - scan the current directory
    gitscan --cwd ~/code    - scan another directory
"""

import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from gitscan import __version__
from gitscan.config import APP_NAME, get_logger, setup_logging

app = typer.Typer(
    name=APP_NAME,
    help="Report uncommitted changes in every git repository below a directory",
    add_completion=False,
)
stderr_console = Console(stderr=True, highlight=False, emoji=False, soft_wrap=True)


def version_callback(value: bool):
    if value:
        print(f"{APP_NAME} {__version__}")
        raise typer.Exit()


@app.command()
def main(
    cwd: Path = typer.Option(None, "--cwd", "-c", help="Directory to recurse into (default: current directory)"),
    strict: bool = typer.Option(False, "--strict", help="Abort when any repository cannot be read"),
    ignored: bool = typer.Option(False, "--ignored", help="Also report ignored files"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug diagnostics on stderr"),
    log_file: Path = typer.Option(None, "--log-file", help="Also write a rotating log to this file"),
    version: bool = typer.Option(
        False, "--version", callback=version_callback, is_eager=True, help="Show version and exit"
    ),
):
    """Scan a directory tree for git repositories and report their changed files."""
    setup_logging(verbose=verbose, log_file=log_file)
    logger = get_logger()
    logger.debug(f"Running: {APP_NAME} {' '.join(sys.argv[1:])}")

    if cwd is None:
        try:
            cwd = Path.cwd()
        except OSError as e:
            stderr_console.print(f"[red]Could not get current directory: {escape(str(e))}[/red]")
            raise SystemExit(1)

    from gitscan.commands.scan import scan_changes
    raise SystemExit(scan_changes(cwd.absolute(), strict=strict, include_ignored=ignored))


if __name__ == "__main__":
    app()
