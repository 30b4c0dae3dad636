"""atfile CLI — Typer + Rich terminal interface.

Commands: expand, scan, read, config.
Expanded prompts and file content go to stdout untouched; diagnostics,
tables and errors are rendered with Rich.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from atfile import __version__
from atfile.errors import ConfigError, WorkspaceReadError
from atfile.events import UIMessageHistory
from atfile.processors import AtFileProcessor, CommandContext, CommandServices, extract_injections
from atfile.settings import Settings, load_settings
from atfile.workspace import read_path_from_workspace

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="atfile",
    help="Inject workspace files into prompts with @{path} placeholders.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ───────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"atfile {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log debug output to stderr.",
    ),
) -> None:
    """atfile — workspace-constrained @{path} injection for prompts."""
    ctx.obj = {"verbose": verbose}


# ── Helpers ──────────────────────────────────────────────────────


def _configure_logging(ctx: typer.Context, settings: Settings) -> None:
    """Route atfile log records to stderr through Rich."""
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    package_logger = logging.getLogger("atfile")
    package_logger.setLevel(logging.DEBUG if verbose else settings.log_level)
    for handler in list(package_logger.handlers):
        if isinstance(handler, RichHandler):
            package_logger.removeHandler(handler)
    package_logger.addHandler(RichHandler(console=err_console, show_path=False))


def _load_settings(
    ctx: typer.Context,
    config_file: str | None,
    directories: list[str] | None = None,
    concurrent: bool = False,
) -> Settings:
    """Load settings, apply CLI overrides, exit on error."""
    try:
        settings = load_settings(Path(config_file) if config_file else None)
    except (FileNotFoundError, ConfigError) as e:
        err_console.print(f"[red]Error loading config:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    updates: dict[str, object] = {}
    if directories:
        updates["directories"] = list(directories)
        updates["base_dir"] = os.getcwd()
    if concurrent:
        updates["concurrent"] = True
    if updates:
        settings = settings.model_copy(update=updates)

    _configure_logging(ctx, settings)
    return settings


def _read_prompt(prompt: str | None, prompt_file: str | None) -> str:
    """Return the prompt from the argument, a file, or stdin."""
    if prompt is not None:
        return prompt
    if prompt_file:
        path = Path(prompt_file)
        if not path.exists():
            err_console.print(f"[red]Prompt file not found:[/red] {escape(prompt_file)}")
            raise typer.Exit(1) from None
        return path.read_text(encoding="utf-8")
    if sys.stdin.isatty():
        err_console.print("[red]Error:[/red] Provide a prompt, --file, or pipe text on stdin")
        raise typer.Exit(1) from None
    return sys.stdin.read()


# ── atfile expand ────────────────────────────────────────────────


@app.command()
def expand(
    ctx: typer.Context,
    prompt: str = typer.Argument(None, help="Prompt text (omit to use --file or stdin)"),
    prompt_file: str = typer.Option(None, "--file", "-f", help="Read the prompt from a file"),
    directories: list[str] | None = typer.Option(
        None, "--dir", "-d",
        help="Workspace directory (repeatable; the first is primary)",
    ),
    config_file: str = typer.Option(None, "--config", "-c", help="Path to a TOML config file"),
    concurrent: bool = typer.Option(
        False, "--concurrent",
        help="Resolve all placeholders at once",
    ),
) -> None:
    """Replace @{path} placeholders with file contents or directory listings."""
    text = _read_prompt(prompt, prompt_file)
    settings = _load_settings(ctx, config_file, directories, concurrent)

    history = UIMessageHistory()
    context = CommandContext(services=CommandServices(config=settings), ui=history)
    processor = AtFileProcessor(concurrent=settings.concurrent)

    expanded = asyncio.run(processor.process(text, context))
    typer.echo(expanded, nl=not expanded.endswith("\n"))

    failures = len(history.errors)
    if failures:
        noun = "placeholder" if failures == 1 else "placeholders"
        err_console.print(
            f"[yellow]{failures} {noun} left unresolved[/yellow]",
        )


# ── atfile scan ──────────────────────────────────────────────────


@app.command()
def scan(
    prompt: str = typer.Argument(None, help="Prompt text (omit to use --file or stdin)"),
    prompt_file: str = typer.Option(None, "--file", "-f", help="Read the prompt from a file"),
) -> None:
    """List the @{path} placeholders found in a prompt."""
    text = _read_prompt(prompt, prompt_file)
    spans = extract_injections(text)

    if not spans:
        console.print("[dim]No placeholders found.[/dim]")
        return

    table = Table(title="Placeholders", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Path", style="cyan")
    table.add_column("Start", justify="right")
    table.add_column("End", justify="right")

    for i, span in enumerate(spans, 1):
        table.add_row(
            str(i),
            escape(span.path) or "[dim](empty)[/dim]",
            str(span.start_index),
            str(span.end_index),
        )

    console.print(table)


# ── atfile read ──────────────────────────────────────────────────


@app.command()
def read(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Absolute or workspace-relative path"),
    directories: list[str] | None = typer.Option(
        None, "--dir", "-d",
        help="Workspace directory (repeatable; the first is primary)",
    ),
    config_file: str = typer.Option(None, "--config", "-c", help="Path to a TOML config file"),
) -> None:
    """Print a file or directory listing from the workspace."""
    settings = _load_settings(ctx, config_file, directories)

    try:
        workspace = settings.get_workspace_context()
    except ValueError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    try:
        content = asyncio.run(read_path_from_workspace(path, workspace))
    except WorkspaceReadError as e:
        err_console.print(f"[red]{type(e).__name__}:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    typer.echo(content, nl=not content.endswith("\n"))


# ── atfile config ────────────────────────────────────────────────


@app.command("config")
def show_config(
    ctx: typer.Context,
    config_file: str = typer.Option(None, "--config", "-c", help="Path to a TOML config file"),
) -> None:
    """Show the effective settings."""
    settings = _load_settings(ctx, config_file)

    table = Table(title="atfile settings", show_header=False)
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_row("Directories", "\n".join(settings.directories))
    table.add_row("Base dir", settings.base_dir)
    table.add_row("Concurrent", "yes" if settings.concurrent else "no")
    table.add_row("Log level", settings.log_level)

    console.print(table)


if __name__ == "__main__":
    app()
