"""Fix engine — restore protected files from their approved baselines."""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from drift_toolkit.config.models import IntegrityCheck
from drift_toolkit.errors import DriftError, ErrorKind, PermissionDenied
from drift_toolkit.integrity.checker import check_integrity, resolve_within
from drift_toolkit.integrity.discovery import normalize_path
from drift_toolkit.integrity.models import IntegrityStatus

logger = logging.getLogger(__name__)


class FixAction(enum.Enum):
    CREATE = "create"
    OVERWRITE = "overwrite"


@dataclass(frozen=True)
class PlannedFix:
    file: str
    action: FixAction
    approved: str


@dataclass(frozen=True)
class FixError:
    file: str
    message: str
    kind: ErrorKind | None = None


@dataclass
class FixPlan:
    """What a fix run changed, or would change under dry-run."""

    dry_run: bool = False
    fixes: list[PlannedFix] = field(default_factory=list)
    applied: list[PlannedFix] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    errors: list[FixError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def fix_files(
    checks: Iterable[IntegrityCheck],
    repo_path: str | Path,
    approved_base: str | Path,
    *,
    dry_run: bool = False,
    file_filter: Sequence[str] | None = None,
) -> FixPlan:
    """Copy approved baselines over drifted or missing protected files.

    Drifted files are overwritten and missing files are created along with
    their parent directories. With ``dry_run`` the plan is computed but no
    file is touched. ``file_filter`` limits the run to the named protected
    files; names that are not protected are reported as errors.
    """
    checks = list(checks)
    plan = FixPlan(dry_run=dry_run)

    if file_filter:
        wanted = {normalize_path(f) for f in file_filter}
        known = {normalize_path(c.file) for c in checks}
        for name in sorted(wanted - known):
            plan.errors.append(FixError(file=name, message=f"{name} is not a protected file"))
        checks = [c for c in checks if normalize_path(c.file) in wanted]

    for check in checks:
        try:
            result = check_integrity(check, repo_path, approved_base)
        except DriftError as e:
            plan.errors.append(FixError(file=check.file, message=str(e), kind=e.kind))
            continue
        except OSError as e:
            plan.errors.append(FixError(file=check.file, message=f"Cannot read {check.file}: {e}"))
            continue

        if result.status is IntegrityStatus.MATCH:
            plan.unchanged.append(check.file)
            continue
        action = FixAction.CREATE if result.status is IntegrityStatus.MISSING else FixAction.OVERWRITE
        plan.fixes.append(PlannedFix(file=check.file, action=action, approved=check.approved))

    if dry_run:
        return plan

    for fix in plan.fixes:
        try:
            _apply(fix, repo_path, approved_base)
        except DriftError as e:
            plan.errors.append(FixError(file=fix.file, message=str(e), kind=e.kind))
        else:
            plan.applied.append(fix)
    return plan


def _apply(fix: PlannedFix, repo_path: str | Path, approved_base: str | Path) -> None:
    target = resolve_within(repo_path, fix.file)
    source = resolve_within(approved_base, fix.approved)
    try:
        content = source.read_bytes()
        target.parent.mkdir(parents=True, exist_ok=True)
        if target.is_symlink():
            target.unlink()
        target.write_bytes(content)
    except PermissionError as e:
        raise PermissionDenied(f"Permission denied writing {fix.file}", path=str(target)) from e
    except OSError as e:
        raise DriftError(f"Cannot write {fix.file}: {e.strerror or e}", path=str(target)) from e
    logger.info("%s %s from %s", fix.action.value.capitalize(), fix.file, fix.approved)
