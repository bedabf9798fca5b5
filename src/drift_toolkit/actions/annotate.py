"""Annotate action — GitHub Actions workflow commands for violations and warnings."""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from typing import TextIO

from drift_toolkit.scanner.engine import DriftResults


def is_github_actions(env: Mapping[str, str] | None = None) -> bool:
    env = os.environ if env is None else env
    return env.get("GITHUB_ACTIONS", "").lower() == "true"


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _escape_property(value: str) -> str:
    return _escape_data(value).replace(":", "%3A").replace(",", "%2C")


def format_annotation(
    level: str, message: str, *, file: str | None = None, title: str | None = None
) -> str:
    """Render one ``::level key=value::message`` workflow command."""
    props = []
    if file:
        props.append(f"file={_escape_property(file)}")
    if title:
        props.append(f"title={_escape_property(title)}")
    head = f"::{level}"
    if props:
        head += " " + ",".join(props)
    return f"{head}::{_escape_data(message)}"


def annotations_for(results: DriftResults, repo: str | None = None) -> list[str]:
    prefix = f"{repo}: " if repo else ""
    lines = []
    for r in results.integrity_violations:
        message = f"{prefix}{r.file} {r.status.value}"
        if r.error:
            message += f": {r.error}"
        lines.append(
            format_annotation("error", message, file=r.file, title="Integrity drift")
        )
    for scan in results.failed_scans:
        message = f"{prefix}scan '{scan.scan}' failed with exit code {scan.exit_code}"
        lines.append(format_annotation("error", message, title="Scan failed"))
    for warning in results.warnings:
        lines.append(format_annotation("warning", f"{prefix}{warning}"))
    return lines


class AnnotateAction:
    """Writes workflow commands to stdout, where the Actions runner reads them."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def execute(self, org: str, repo: str, results: DriftResults) -> str | None:
        stream = self._stream or sys.stdout
        for line in annotations_for(results, repo):
            print(line, file=stream)
        return None
