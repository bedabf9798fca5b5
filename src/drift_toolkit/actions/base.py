"""Report action protocol — what to do with a repository that has drift."""

from __future__ import annotations

from typing import Protocol

from drift_toolkit.scanner.engine import DriftResults


class ReportAction(Protocol):
    """Protocol for reporting a repository's drift report."""

    def execute(self, org: str, repo: str, results: DriftResults) -> str | None:
        """Report the results. Returns a reference (e.g. an issue URL) or None."""
        ...
