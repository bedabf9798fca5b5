"""Integrity checker — byte-exact comparison against approved baselines."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from drift_toolkit.config.models import IntegrityCheck
from drift_toolkit.errors import ApprovedSourceMissing, DriftError, PermissionDenied
from drift_toolkit.integrity.models import IntegrityResult, IntegrityStatus

logger = logging.getLogger(__name__)


def resolve_within(root: str | Path, relative: str) -> Path:
    """Join ``relative`` onto ``root``, refusing paths that leave ``root``.

    The check is lexical so symlinks inside the tree keep working.
    """
    base = os.path.normpath(os.path.abspath(root))
    target = os.path.normpath(os.path.join(base, relative))
    if os.path.commonpath([base, target]) != base or target == base:
        raise DriftError(f"Path '{relative}' escapes {root}", path=relative)
    return Path(target)


def check_integrity(
    check: IntegrityCheck,
    repo_path: str | Path,
    approved_base: str | Path,
) -> IntegrityResult:
    """Compare one protected file against its approved version.

    Raises :class:`ApprovedSourceMissing` when the baseline does not exist and
    :class:`PermissionDenied` when either file cannot be read.
    """
    target = resolve_within(repo_path, check.file)
    approved = resolve_within(approved_base, check.approved)

    if not approved.is_file():
        raise ApprovedSourceMissing(
            f"Approved file not found: {check.approved} (for {check.file})",
            path=str(approved),
        )

    # exists() follows symlinks, so a dangling link counts as missing
    if not target.exists():
        return IntegrityResult(
            file=check.file, status=IntegrityStatus.MISSING, severity=check.severity
        )

    actual = _read_bytes(target, check.file)
    expected = _read_bytes(approved, check.approved)

    status = IntegrityStatus.MATCH if actual == expected else IntegrityStatus.DRIFT
    logger.debug("Integrity %s: %s", check.file, status.value)
    return IntegrityResult(file=check.file, status=status, severity=check.severity)


def check_all_integrity(
    checks: Iterable[IntegrityCheck],
    repo_path: str | Path,
    approved_base: str | Path,
) -> list[IntegrityResult]:
    """Check every protected file. Per-file errors are recorded, not raised."""
    results: list[IntegrityResult] = []
    for check in checks:
        try:
            results.append(check_integrity(check, repo_path, approved_base))
        except DriftError as e:
            logger.warning("Integrity check for %s failed: %s", check.file, e)
            results.append(
                IntegrityResult(
                    file=check.file,
                    status=IntegrityStatus.ERROR,
                    severity=check.severity,
                    error=str(e),
                    error_kind=e.kind,
                )
            )
        except OSError as e:
            logger.warning("Integrity check for %s failed: %s", check.file, e)
            results.append(
                IntegrityResult(
                    file=check.file,
                    status=IntegrityStatus.ERROR,
                    severity=check.severity,
                    error=f"Cannot read {check.file}: {e.strerror or e}",
                )
            )
    return results


def _read_bytes(path: Path, label: str) -> bytes:
    try:
        return path.read_bytes()
    except PermissionError as e:
        raise PermissionDenied(
            f"Permission denied reading {label}", path=str(path)
        ) from e
