"""CLI command: drift code fix — restore protected files from approved baselines."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console

from drift_toolkit.cli.output import dumps, render_fix_plan, to_jsonable
from drift_toolkit.config.loader import find_config_path, load_config
from drift_toolkit.errors import ConfigNotFound, DriftError
from drift_toolkit.fix.engine import fix_files

console = Console(stderr=True)


@click.command()
@click.option(
    "--path",
    "path",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    show_default=True,
    help="Repository to fix.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True),
    help="Path to drift.config.yaml (default: search the repository).",
)
@click.option("--file", "files", multiple=True, help="Only fix this protected file.")
@click.option("--dry-run", is_flag=True, help="Show what would change without writing.")
@click.option("--json", "as_json", is_flag=True, help="Print the plan as JSON on stdout.")
def fix(
    path: str,
    config_path: str | None,
    files: tuple[str, ...],
    dry_run: bool,
    as_json: bool,
) -> None:
    """Overwrite drifted and recreate missing protected files."""
    repo_path = Path(path)
    try:
        found = Path(config_path) if config_path else find_config_path(repo_path)
        if found is None:
            raise ConfigNotFound(f"No drift.config.yaml found in {repo_path}")
        config = load_config(found)
    except DriftError as e:
        console.print(f"[red]{e.kind.value}:[/red] {e}")
        sys.exit(2)

    plan = fix_files(
        config.integrity.protected,
        repo_path,
        config.approved_base,
        dry_run=dry_run,
        file_filter=list(files) or None,
    )

    if as_json:
        click.echo(dumps(to_jsonable(plan)))
    else:
        render_fix_plan(console, plan)

    if plan.errors:
        sys.exit(1)
