"""Rendering of drift reports — rich tables for humans, JSON for machines."""

from __future__ import annotations

import dataclasses
import enum
import json
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from drift_toolkit.config.models import Severity
from drift_toolkit.constants import DISPLAY_LIMITS
from drift_toolkit.fix.engine import FixPlan
from drift_toolkit.integrity.models import IntegrityStatus
from drift_toolkit.org.models import OrgScanResults, RepoStatus
from drift_toolkit.scanner.engine import DriftResults
from drift_toolkit.scanner.models import ScanStatus

_SEVERITY_COLORS = {
    Severity.CRITICAL: "red",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "blue",
}

_STATUS_COLORS = {
    IntegrityStatus.MATCH: "green",
    IntegrityStatus.DRIFT: "red",
    IntegrityStatus.MISSING: "red",
    IntegrityStatus.ERROR: "magenta",
    ScanStatus.PASS: "green",
    ScanStatus.FAIL: "red",
    ScanStatus.SKIP: "dim",
    RepoStatus.PASSED: "green",
    RepoStatus.FAILED: "red",
    RepoStatus.SKIPPED: "dim",
}


def to_jsonable(obj: Any) -> Any:
    """Convert dataclasses, enums and paths into JSON-ready values."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    return obj


def results_to_dict(results: DriftResults) -> dict[str, Any]:
    data = to_jsonable(results)
    data["summary"] = results.summary()
    data["has_failures"] = results.has_failures
    if results.dependency_changes is not None:
        data["dependency_changes"]["has_changes"] = results.dependency_changes.has_changes
    return data


def org_results_to_dict(results: OrgScanResults) -> dict[str, Any]:
    data = to_jsonable(results)
    for repo_data, repo in zip(data["repos"], results.repos):
        if repo.results is not None:
            repo_data["results"] = results_to_dict(repo.results)
    return data


def dumps(data: Any) -> str:
    return json.dumps(data, indent=2, sort_keys=False)


def _colored(value: enum.Enum) -> str:
    color = _STATUS_COLORS.get(value) or _SEVERITY_COLORS.get(value, "white")
    return f"[{color}]{value.value}[/{color}]"


def render_results(console: Console, results: DriftResults) -> None:
    """Print a single-repository drift report."""
    console.print(f"[bold]drift[/bold] report for [cyan]{escape(results.path)}[/cyan]")
    meta = results.metadata.metadata
    if meta is not None:
        console.print(
            f"tier: {meta.tier or '-'}  status: {meta.status or '-'}  team: {meta.team or '-'}"
        )

    for warning in results.warnings:
        console.print(f"[yellow]warning:[/yellow] {escape(warning)}")

    if results.integrity:
        table = Table(title="Integrity", show_lines=False)
        table.add_column("File", style="cyan")
        table.add_column("Status")
        table.add_column("Severity")
        table.add_column("Detail", max_width=60)
        for r in results.integrity:
            table.add_row(escape(r.file), _colored(r.status), _colored(r.severity), escape(r.error or ""))
        console.print(table)

    if results.discovered:
        console.print("\n[bold]Unprotected files[/bold]")
        for d in results.discovered:
            hint = f" ({escape(d.suggestion)})" if d.suggestion else ""
            console.print(f"  [cyan]{escape(d.file)}[/cyan] matches {escape(d.pattern)}{hint}")

    if results.scans:
        table = Table(title="Scans", show_lines=False)
        table.add_column("Scan", style="cyan")
        table.add_column("Status")
        table.add_column("Severity")
        table.add_column("Exit", justify="right")
        table.add_column("Time", justify="right")
        table.add_column("Note", max_width=50)
        for s in results.scans:
            exit_code = "" if s.exit_code is None else str(s.exit_code)
            table.add_row(
                escape(s.scan),
                _colored(s.status),
                _colored(s.severity),
                exit_code,
                f"{s.duration_ms}ms" if s.status is not ScanStatus.SKIP else "",
                escape(s.skip_reason or ("timed out" if s.timed_out else "")),
            )
        console.print(table)
        for s in results.failed_scans:
            output = (s.stderr or s.stdout).strip()
            if not output:
                continue
            console.print(f"\n[red]{escape(s.scan)}[/red] output:")
            for line in output.splitlines()[-DISPLAY_LIMITS.output_lines :]:
                console.print(f"  {escape(line)}")

    changes = results.dependency_changes
    if changes is not None and changes.has_changes:
        console.print("\n[bold]Dependency changes[/bold]")
        for check_type, items in changes.by_check.items():
            console.print(f"  {escape(check_type)}:")
            for c in items:
                console.print(f"    {c.status:<8} {escape(c.file)}")

    console.print()
    _print_verdict(console, results)


def _print_verdict(console: Console, results: DriftResults) -> None:
    summary = results.summary()
    if results.has_failures:
        console.print(f"[red]{summary}[/red]")
    elif results.has_warnings:
        console.print(f"[yellow]{summary}[/yellow]")
    else:
        console.print(f"[green]{summary}[/green]")


def render_org_results(console: Console, results: OrgScanResults) -> None:
    s = results.summary
    console.print(
        f"[bold]drift[/bold] organization scan of [cyan]{escape(s.organization)}[/cyan] "
        f"(config: [cyan]{escape(s.config_repo)}[/cyan])"
    )
    if results.error is not None:
        console.print(f"[red]{results.error.value}:[/red] {escape(results.error_message)}")
        return

    if results.repos:
        table = Table(title="Repositories", show_lines=False)
        table.add_column("Repository", style="cyan")
        table.add_column("Status")
        table.add_column("Detail", max_width=60)
        table.add_column("Issue")
        for r in results.repos:
            detail = r.error or r.reason
            table.add_row(escape(r.repo), _colored(r.status), escape(detail), escape(r.issue or ""))
        console.print(table)

    console.print(
        f"\n{s.total_repos} repositories: {s.scanned_repos} scanned "
        f"({s.passed_repos} passed, {s.failed_repos} failed), {s.skipped_repos} skipped"
    )


def render_fix_plan(console: Console, plan: FixPlan) -> None:
    verb = "Would" if plan.dry_run else "Did"
    done = plan.fixes if plan.dry_run else plan.applied
    for fix in done:
        console.print(f"{verb} {fix.action.value} [cyan]{escape(fix.file)}[/cyan] from {escape(fix.approved)}")
    for name in plan.unchanged:
        console.print(f"[dim]unchanged {escape(name)}[/dim]")
    for err in plan.errors:
        console.print(f"[red]error:[/red] {escape(err.file)}: {escape(err.message)}")
    if not done and not plan.errors:
        console.print("[green]Nothing to fix.[/green]")
