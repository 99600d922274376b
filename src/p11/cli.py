"""
Command-line interface for p11.

This module provides the Typer-based CLI for initializing partic11e
repositories.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .exceptions import P11Error
from .init_repo import run_init
from .models import (
    DEFAULT_API_ROOT,
    DEFAULT_SCAFFOLD_ROOT,
    DEFAULT_TEMPLATE_ROOT,
    InitConfig,
    InitOptions,
    InitResult,
)

# Create Typer app
app = typer.Typer(
    name="p11",
    help="Utilities for maintaining partic11e repositories and code-bases.",
    add_completion=False,
    rich_markup_mode="rich",
)
repo_app = typer.Typer(
    help="Commands for maintaining consistency in partic11e repositories.",
)
app.add_typer(repo_app, name="repo")

console = Console()
error_console = Console(stderr=True)


class LogLevel(str, Enum):
    """Log level options."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


def setup_logging(level: LogLevel, verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    log_level = getattr(logging, level.value.upper())

    if verbose:
        log_level = logging.DEBUG

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=error_console, show_time=False, show_path=False)],
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"p11 version {__version__}")
        raise typer.Exit


@app.callback()
def main_callback(
    _version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """Utilities for maintaining partic11e repositories and code-bases."""


def prompt_for_token() -> str:
    """Ask the user for a GitHub token."""
    return typer.prompt(
        "Please enter your GitHub API token",
        default="",
        show_default=False,
        hide_input=True,
        err=True,
    )


def init(
    token: Annotated[
        str | None,
        typer.Option(
            "-t",
            "--token",
            help="Your GitHub token (or set GH_WEB_API_TOKEN env var)",
            envvar="GH_WEB_API_TOKEN",
            show_default=False,
        ),
    ] = None,
    scaffold: Annotated[
        str,
        typer.Option(
            "-s",
            "--scaffold",
            help="The scaffold to use to initialize the repository",
        ),
    ] = "module",
    directory: Annotated[
        Path,
        typer.Option(
            "-C",
            "--directory",
            help="Repository directory to initialize",
            file_okay=False,
            exists=True,
        ),
    ] = Path("."),
    timeout: Annotated[
        float,
        typer.Option(
            "--timeout",
            help="Network timeout in seconds",
            min=1,
            max=300,
        ),
    ] = 30,
    template_root: Annotated[
        str,
        typer.Option(
            "--template-root",
            help="Base URL of the repository file templates",
            envvar="P11_TEMPLATE_ROOT",
            hidden=True,
        ),
    ] = DEFAULT_TEMPLATE_ROOT,
    scaffold_root: Annotated[
        str,
        typer.Option(
            "--scaffold-root",
            help="Base URL of the scaffold manifests",
            envvar="P11_SCAFFOLD_ROOT",
            hidden=True,
        ),
    ] = DEFAULT_SCAFFOLD_ROOT,
    api_root: Annotated[
        str,
        typer.Option(
            "--api-root",
            help="Base URL of the GitHub REST API",
            envvar="P11_API_ROOT",
            hidden=True,
        ),
    ] = DEFAULT_API_ROOT,
    verbose: Annotated[
        bool,
        typer.Option(
            "-v",
            "--verbose",
            help="Enable verbose output",
        ),
    ] = False,
    log_level: Annotated[
        LogLevel,
        typer.Option(
            "--log-level",
            help="Set log level",
        ),
    ] = LogLevel.INFO,
) -> None:
    """
    Initialize a GitHub repository with consistent resources.

    Downloads the standard repository files into the working tree and
    replaces the repository's issue labels with the canonical set when
    they differ.

    Examples:

        p11 repo init

        p11 repo init -s module -t $GH_WEB_API_TOKEN
    """
    setup_logging(log_level, verbose)

    config = InitConfig(
        template_root=template_root,
        scaffold_root=scaffold_root,
        api_root=api_root,
        timeout=timeout,
    )
    options = InitOptions(token=token, scaffold=scaffold, directory=directory)

    code = run_init(
        options,
        config,
        prompt=prompt_for_token,
        on_result=_display_result,
        on_error=_display_error,
    )
    if code == 130:
        error_console.print("\n[yellow]Interrupted[/yellow]")
    if code:
        raise typer.Exit(code)


repo_app.command("init")(init)


def _display_error(error: P11Error) -> None:
    """Print an error and its hint to stderr."""
    error_console.print(f"[red]Error:[/red] {error.message}")
    if error.hint:
        error_console.print(f"[dim]Hint: {error.hint}[/dim]")


def _display_result(result: InitResult) -> None:
    """Display init result as a formatted panel."""
    summary = Table.grid(padding=(0, 2))
    summary.add_column(style="bold")
    summary.add_column()

    if result.context is not None:
        summary.add_row("Repository:", result.context.full_name)
    scaffold = result.scaffold if result.scaffold_found else f"{result.scaffold} (default files)"
    summary.add_row("Scaffold:", scaffold)
    summary.add_row("Files written:", f"[green]{len(result.provisioned)}[/green]")

    if result.provisioning_errors:
        summary.add_row("File errors:", f"[red]{len(result.provisioning_errors)}[/red]")

    labels = result.labels
    if result.label_error:
        summary.add_row("Labels:", "[red]not checked[/red]")
    elif labels is not None and labels.in_sync:
        summary.add_row("Labels:", "okay")
    elif labels is not None:
        summary.add_row("Labels deleted:", f"[yellow]{labels.deleted}[/yellow]")
        summary.add_row("Labels created:", f"[green]{labels.created}[/green]")
        if labels.failed:
            summary.add_row("Label errors:", f"[red]{len(labels.failed)}[/red]")

    panel = Panel(
        summary,
        title="Initialization Results",
        border_style="green" if result.succeeded else "yellow",
    )
    console.print(panel)

    if result.provisioning_errors:
        error_console.print("\n[red]File errors:[/red]")
        for path, reason in sorted(result.provisioning_errors.items()):
            error_console.print(f"  - {path}: {reason}")

    if result.label_error:
        error_console.print(f"\n[red]Label error:[/red] {result.label_error}")
    elif labels is not None and labels.failed:
        error_console.print("\n[red]Label errors:[/red]")
        for entry in labels.failed[:10]:
            error_console.print(f"  - {entry.action.value} {entry.name}: {entry.error}")
        if len(labels.failed) > 10:
            error_console.print(f"  ... and {len(labels.failed) - 10} more")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
