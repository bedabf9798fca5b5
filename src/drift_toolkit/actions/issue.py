"""Issue action — open one issue per repository per distinct violation set."""

from __future__ import annotations

import hashlib
import logging

from drift_toolkit.constants import DISPLAY_LIMITS, GITHUB_ISSUES
from drift_toolkit.github.client import HostingClient
from drift_toolkit.scanner.engine import DriftResults

logger = logging.getLogger(__name__)

_TRUNCATED = "\n\n_(truncated)_"


def violation_signature(results: DriftResults) -> str:
    """Stable key for the set of violations, independent of order and output."""
    lines = sorted(
        [f"integrity:{r.file}:{r.status.value}" for r in results.integrity_violations]
        + [f"scan:{r.scan}" for r in results.failed_scans]
    )
    digest = hashlib.sha256("\n".join(lines).encode("utf-8")).hexdigest()
    return digest[:16]


def issue_marker(signature: str) -> str:
    return f"<!-- {GITHUB_ISSUES.marker_prefix}:{signature} -->"


def build_issue_title(repo: str, results: DriftResults) -> str:
    count = len(results.integrity_violations) + len(results.failed_scans)
    return f"{GITHUB_ISSUES.title_prefix} {count} drift violation(s) in {repo}"


def build_issue_body(repo: str, results: DriftResults, signature: str) -> str:
    lines = [f"## Drift detected in `{repo}`", ""]

    if results.integrity_violations:
        lines += ["### Integrity", "", "| File | Status | Severity |", "|---|---|---|"]
        for r in results.integrity_violations:
            lines.append(f"| `{r.file}` | {r.status.value} | {r.severity.value} |")
        lines.append("")

    for scan in results.failed_scans:
        lines.append(f"### Scan `{scan.scan}` ({scan.severity.value})")
        lines.append("")
        lines.append(f"Exit code: {scan.exit_code}")
        output = (scan.stderr or scan.stdout).strip()
        if output:
            tail = output.splitlines()[-DISPLAY_LIMITS.output_lines :]
            lines += ["", "```", *tail, "```"]
        lines.append("")

    if results.warnings:
        lines += ["### Warnings", ""]
        lines += [f"- {w}" for w in results.warnings]
        lines.append("")

    marker = issue_marker(signature)
    body = "\n".join(lines)
    limit = DISPLAY_LIMITS.issue_body_chars - len(marker) - 2
    if len(body) > limit:
        body = body[: limit - len(_TRUNCATED)].rstrip() + _TRUNCATED
    return f"{body}\n\n{marker}"


class IssueAction:
    """Creates a hosting issue for a failed repository, reusing an open duplicate."""

    def __init__(self, hosting: HostingClient, label: str = GITHUB_ISSUES.label) -> None:
        self._hosting = hosting
        self._label = label

    def execute(self, org: str, repo: str, results: DriftResults) -> str | None:
        signature = violation_signature(results)
        marker = issue_marker(signature)

        existing = self._hosting.find_open_issue(org, repo, self._label, marker)
        if existing is not None:
            logger.info("Open issue #%d already reports these violations", existing.number)
            return existing.url

        issue = self._hosting.create_issue(
            org,
            repo,
            build_issue_title(repo, results),
            build_issue_body(repo, results, signature),
            [self._label],
        )
        return issue.url
