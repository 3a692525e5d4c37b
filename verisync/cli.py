# verisync/cli.py
"""
Command-line interface (CLI) for verisync.

Commands:
  - compare          : verify session logs between two sources
  - history          : verify the history index between two sources
  - list-sources     : show sources configured in sources.yaml
  - validate-config  : load and validate config.yaml and sources.yaml

Exit status: 0 when in sync, 1 when sessions diverged (or history entries
differ), 3 on fatal errors such as an unreachable source. Typer reserves
2 for usage errors.
"""

from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table
from typing_extensions import Annotated

from verisync.core.fetcher import build_fetcher
from verisync.core.history import compare_histories, parse_history, render_history_report
from verisync.core.reporter import render_json, render_report
from verisync.core.runner import fetch_histories, run_comparison
from verisync.exceptions import ConfigurationError, VerisyncError
from verisync.utils.config import (
    get_config,
    get_detail_limit,
    get_fetch_timeout,
    get_preview_count,
)
from verisync.utils.logger import set_log_level, setup_logger
from verisync.utils.source_loader import get_source, list_sources, resolve_source

EXIT_OK = 0
EXIT_DIVERGED = 1
EXIT_FATAL = 3

app = typer.Typer(
    name="verisync",
    help="Verify that replicated append-only session logs agree between two hosts.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)
logger = setup_logger(__name__)


@app.callback()
def main_callback(
        debug: Annotated[
            bool, typer.Option("--debug", help="Enable debug logging.")
        ] = False,
) -> None:
    """verisync command-line interface."""
    if debug:
        set_log_level("DEBUG")


def _fail(error: Exception) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {type(error).__name__}: {error}")
    raise typer.Exit(code=EXIT_FATAL)


@app.command(name="compare")
def compare(
        source_a: Annotated[str, typer.Argument(help="First source (name, directory, manifest file or user@host).")],
        source_b: Annotated[str, typer.Argument(help="Second source.")],
        include: Annotated[
            Optional[List[str]],
            typer.Option("--include", "-i", help="Glob of session paths to include (repeatable)."),
        ] = None,
        limit: Annotated[
            Optional[int], typer.Option(min=0, help="Diverged sessions shown in detail.")
        ] = None,
        preview: Annotated[
            Optional[int], typer.Option(min=0, help="Leading ids shown per side.")
        ] = None,
        timeout: Annotated[
            Optional[float], typer.Option(min=0.1, help="Per-source fetch timeout in seconds.")
        ] = None,
        id_field: Annotated[
            Optional[str], typer.Option("--id-field", help="JSON field holding each line's id.")
        ] = None,
        as_json: Annotated[
            bool, typer.Option("--json", help="Emit the comparison as JSON.")
        ] = False,
) -> None:
    """
    Compares session logs on two sources.

    Each shared session must be identical or a strict prefix of the other.
    """
    try:
        detail_limit = limit if limit is not None else get_detail_limit()
        preview_count = preview if preview is not None else get_preview_count()
        fetcher_a = build_fetcher(resolve_source(source_a, id_field))
        fetcher_b = build_fetcher(resolve_source(source_b, id_field))
        result = run_comparison(
            fetcher_a,
            fetcher_b,
            timeout=timeout if timeout is not None else get_fetch_timeout(),
            include=include,
        )
    except VerisyncError as e:
        _fail(e)

    if as_json:
        typer.echo(render_json(result))
    else:
        report = render_report(result, detail_limit=detail_limit, preview_count=preview_count)
        console.print(report, markup=False, highlight=False, soft_wrap=True)

    raise typer.Exit(code=EXIT_OK if result.counts.in_sync else EXIT_DIVERGED)


@app.command(name="history")
def history(
        source_a: Annotated[str, typer.Argument(help="First source (name, history file or user@host).")],
        source_b: Annotated[str, typer.Argument(help="Second source.")],
        limit: Annotated[int, typer.Option(min=0, help="Differing entries listed per side.")] = 10,
        timeout: Annotated[
            Optional[float], typer.Option(min=0.1, help="Per-source fetch timeout in seconds.")
        ] = None,
) -> None:
    """
    Compares history indexes by (sessionId, timestamp).
    """
    try:
        fetcher_a = build_fetcher(resolve_source(source_a))
        fetcher_b = build_fetcher(resolve_source(source_b))
        raw_a, raw_b = fetch_histories(
            fetcher_a,
            fetcher_b,
            timeout=timeout if timeout is not None else get_fetch_timeout(),
        )
    except VerisyncError as e:
        _fail(e)

    comparison = compare_histories(
        parse_history(raw_a, fetcher_a.source_name),
        parse_history(raw_b, fetcher_b.source_name),
        fetcher_a.source_name,
        fetcher_b.source_name,
    )
    console.print(render_history_report(comparison, limit=limit), markup=False, highlight=False, soft_wrap=True)
    raise typer.Exit(code=EXIT_OK if comparison.in_sync else EXIT_DIVERGED)


@app.command(name="list-sources")
def list_sources_cmd() -> None:
    """
    Lists sources configured in sources.yaml.
    """
    try:
        registry = list_sources()
    except ConfigurationError as e:
        _fail(e)

    if not registry:
        console.print("[yellow]No sources are configured.[/yellow]")
        return

    table = Table(title="verisync sources")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Kind", style="magenta")
    table.add_column("Target", style="white")
    for name in sorted(registry):
        try:
            source = get_source(name)
            table.add_row(name, source.kind, source.target)
        except ConfigurationError as e:
            table.add_row(name, "?", f"[red]{e}[/red]")
    console.print(table)


@app.command(name="validate-config")
def validate_config() -> None:
    """
    Loads and validates config.yaml and every source in sources.yaml.
    """
    console.rule("[bold blue]verisync Configuration Validator[/bold blue]")
    errors_found = 0

    def check(name, action):
        nonlocal errors_found
        try:
            console.print(f"Validating [cyan]{name}[/cyan]...", end="")
            action()
            console.print(" [green]OK[/green]")
        except (VerisyncError, ValueError, TypeError) as e:
            console.print(" [bold red]FAILED[/bold red]")
            console.print(f"   [red]└─ Reason: {e}[/red]")
            errors_found += 1

    check("config.yaml", get_config)
    check("report settings", lambda: (get_detail_limit(), get_preview_count(), get_fetch_timeout()))

    try:
        registry = list_sources()
    except ConfigurationError as e:
        console.print(f"[red]Could not load sources.yaml: {e}[/red]")
        registry = {}
        errors_found += 1
    for name in sorted(registry):
        check(f"Source: {name}", lambda name=name: get_source(name))

    console.rule()
    if errors_found == 0:
        console.print("[bold green]All configurations validated successfully![/bold green]")
    else:
        console.print(f"[bold red]Found {errors_found} configuration error(s).[/bold red]")
        raise typer.Exit(code=EXIT_FATAL)


def main() -> None:
    app(prog_name="verisync")


if __name__ == "__main__":
    main()
