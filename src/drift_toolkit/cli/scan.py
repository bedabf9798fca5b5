"""CLI command: drift code scan — check one repository or a whole organization."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console

from drift_toolkit.actions.annotate import AnnotateAction, is_github_actions
from drift_toolkit.actions.issue import IssueAction
from drift_toolkit.cli.output import (
    dumps,
    org_results_to_dict,
    render_org_results,
    render_results,
    results_to_dict,
)
from drift_toolkit.config.loader import find_config_path, load_config
from drift_toolkit.errors import ConfigNotFound, DriftError
from drift_toolkit.github.auth import get_auth_token
from drift_toolkit.github.client import GitHubClient
from drift_toolkit.org.models import OrgScanOptions
from drift_toolkit.org.scanner import OrgScanner
from drift_toolkit.scanner.engine import DriftEngine
from drift_toolkit.settings import DriftSettings

console = Console(stderr=True)

EXIT_VIOLATIONS = 1
EXIT_CONFIG_ERROR = 2


@click.command()
@click.option(
    "--path",
    "path",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    show_default=True,
    help="Repository to scan.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True),
    help="Path to drift.config.yaml (default: search the repository).",
)
@click.option("--org", help="Scan every repository of this organization.")
@click.option("--repo", help="With --org, scan only this repository.")
@click.option("--config-repo", help="Organization config repository.")
@click.option("--all", "scan_all", is_flag=True, help="Ignore the recent-commit filter.")
@click.option("--since", type=int, help="Only repositories with commits in the last N hours.")
@click.option("--exclude", "-e", multiple=True, help="Repository name patterns to skip.")
@click.option("--base", "base_commit", help="Report dependency changes since this commit.")
@click.option(
    "--github-token",
    envvar="GITHUB_TOKEN",
    help="GitHub token (default: GITHUB_TOKEN, GH_TOKEN or gh auth token).",
)
@click.option("--concurrency", type=click.IntRange(min=1), help="Repositories scanned at once.")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON on stdout.")
@click.option("--dry-run", is_flag=True, help="Do not open issues.")
def scan(
    path: str,
    config_path: str | None,
    org: str | None,
    repo: str | None,
    config_repo: str | None,
    scan_all: bool,
    since: int | None,
    exclude: tuple[str, ...],
    base_commit: str | None,
    github_token: str | None,
    concurrency: int | None,
    as_json: bool,
    dry_run: bool,
) -> None:
    """Check protected files, run scans and report drift."""
    settings = DriftSettings.load()

    if repo and not org:
        raise click.UsageError("--repo requires --org")

    if org:
        options = OrgScanOptions(
            config_repo=config_repo or settings.config_repo,
            all=scan_all,
            since_hours=since if since is not None else settings.since_hours,
            repo_filter=repo,
            exclude=exclude,
            dry_run=dry_run,
            concurrency=concurrency or settings.concurrency,
        )
        _scan_org(org, options, settings, github_token, as_json)
        return

    _scan_local(Path(path), config_path, base_commit, settings, as_json)


def _scan_local(
    repo_path: Path,
    config_path: str | None,
    base_commit: str | None,
    settings: DriftSettings,
    as_json: bool,
) -> None:
    try:
        found = Path(config_path) if config_path else find_config_path(repo_path)
        if found is None:
            raise ConfigNotFound(f"No drift.config.yaml found in {repo_path}")
        config = load_config(found)
    except DriftError as e:
        console.print(f"[red]{e.kind.value}:[/red] {e}")
        sys.exit(EXIT_CONFIG_ERROR)

    engine = DriftEngine(config, scan_timeout_ms=settings.scan_timeout_ms)
    results = engine.scan(repo_path, base_commit=base_commit)

    if as_json:
        click.echo(dumps(results_to_dict(results)))
    else:
        render_results(console, results)
        if is_github_actions():
            AnnotateAction().execute("", repo_path.resolve().name, results)

    if results.has_failures:
        sys.exit(EXIT_VIOLATIONS)


def _scan_org(
    org: str,
    options: OrgScanOptions,
    settings: DriftSettings,
    github_token: str | None,
    as_json: bool,
) -> None:
    token = github_token or get_auth_token()
    if not token:
        console.print("[yellow]warning:[/yellow] no GitHub token found; API rate limits apply")

    with GitHubClient(token, base_url=settings.api_url) as hosting:
        scanner = OrgScanner(hosting, settings=settings, reporter=IssueAction(hosting))
        if not as_json:
            console.print(f"[bold]drift[/bold] scanning organization [cyan]{org}[/cyan]\n")
        results = scanner.scan(org, options)

    if as_json:
        click.echo(dumps(org_results_to_dict(results)))
    else:
        render_org_results(console, results)
        if is_github_actions():
            annotate = AnnotateAction()
            for repo in results.repos:
                if repo.results is not None:
                    annotate.execute(org, repo.repo, repo.results)

    if results.error is not None:
        sys.exit(EXIT_CONFIG_ERROR)
    if results.summary.failed_repos:
        sys.exit(EXIT_VIOLATIONS)
