"""
patchdepth.cli — Command-line interface.

Usage:
    patchdepth compute                 Print MAJOR.MINOR.PATCH for HEAD
    patchdepth compute --format env    Print version=/patch= lines for a pipeline
    patchdepth walk                    Run one pass without fetching history
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from patchdepth import __version__

console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s — %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def _get_config(repo: str | None, **overrides):
    from patchdepth.core.models import PatchConfig
    return PatchConfig.for_project(Path(repo) if repo else None, **overrides)


def _fail(exc: Exception) -> None:
    err_console.print(f"[red]✗[/red] {exc}")
    sys.exit(1)


@click.group()
@click.version_option(__version__, prog_name="patchdepth")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool) -> None:
    """patchdepth — version patch numbers from commit history."""
    _setup_logging(verbose)


# ---------------------------------------------------------------------------
# compute
# ---------------------------------------------------------------------------

@main.command()
@click.option("--repo", default=None, help="Repository root (discovered from CWD if omitted).")
@click.option("-c", "--commit", default=None, help="Commit to version (default: HEAD).")
@click.option("-f", "--file", "version_file", default=None, help="Version prefix file (default: VERSION).")
@click.option("--deepen-by", default=None, type=int, help="Commits to fetch per deepening step.")
@click.option("--max-deepen", default=None, type=int, help="Give up after this many deepening steps.")
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json", "env", "table"], case_sensitive=False),
    default="text",
    help="Output format.",
)
def compute(
    repo: str | None,
    commit: str | None,
    version_file: str | None,
    deepen_by: int | None,
    max_deepen: int | None,
    output_format: str,
) -> None:
    """Compute the version of a commit, deepening a shallow clone as needed."""
    from pydantic import ValidationError

    from patchdepth.core.errors import PatchDepthError
    from patchdepth.operations.engine import compute_for_config

    try:
        config = _get_config(
            repo,
            commit=commit,
            version_file=version_file,
            deepen_by=deepen_by,
            max_deepen=max_deepen,
        )
        result = compute_for_config(config)
    except (PatchDepthError, ValidationError) as exc:
        _fail(exc)

    if output_format == "json":
        click.echo(json.dumps(result.model_dump(), indent=2))
    elif output_format == "env":
        for key, value in result.outputs().items():
            click.echo(f"{key}={value}")
    elif output_format == "table":
        table = Table(title="Version")
        table.add_column("Property", style="cyan")
        table.add_column("Value", style="white")
        table.add_row("Version", result.version)
        table.add_row("Prefix", result.prefix)
        table.add_row("Patch", str(result.patch))
        table.add_row("Commit", result.commit[:12])
        table.add_row("Deepened", f"{result.deepen_count}×")
        console.print(table)
    else:
        click.echo(result.version)


# ---------------------------------------------------------------------------
# walk
# ---------------------------------------------------------------------------

@main.command()
@click.option("--repo", default=None, help="Repository root (discovered from CWD if omitted).")
@click.option("-c", "--commit", default=None, help="Commit to start from (default: HEAD).")
@click.option("-f", "--file", "version_file", default=None, help="Version prefix file (default: VERSION).")
def walk(repo: str | None, commit: str | None, version_file: str | None) -> None:
    """Run a single walk pass over local history, without fetching."""
    from pydantic import ValidationError

    from patchdepth.core.errors import PatchDepthError
    from patchdepth.history.git import GitHistorySource
    from patchdepth.operations.engine import walk_once

    try:
        config = _get_config(repo, commit=commit, version_file=version_file)
        source = GitHistorySource(config.repo_root, timeout=config.git_timeout)
        report = walk_once(source, config.commit, config.version_file)
    except (PatchDepthError, ValidationError) as exc:
        _fail(exc)

    if report.truncated:
        console.print(
            f"[yellow]![/yellow] History is truncated: {report.frontier} commit(s) "
            f"behind {report.commit[:12]} are not available locally"
        )
        sys.exit(2)
    console.print(f"[green]✓[/green] Depth {report.depth} at {report.commit[:12]}")


if __name__ == "__main__":
    main()
