"""Repository metadata reader — repo-metadata.yaml and check.toml presence."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from drift_toolkit.config.models import MetadataSchema
from drift_toolkit.constants import FILE_PATTERNS, SKIP_DIRS
from drift_toolkit.errors import MetadataParseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepoMetadata:
    """Self-declared repository metadata. Unknown keys are kept in ``raw``."""

    tier: str | None = None
    status: str | None = None
    team: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class MetadataResult:
    """Outcome of reading repo-metadata.yaml."""

    metadata: RepoMetadata | None = None
    warnings: list[str] = field(default_factory=list)
    path: Path | None = None


@dataclass(frozen=True)
class ScannabilityResult:
    """Whether a repository carries both a metadata file and a check manifest."""

    scannable: bool
    has_metadata: bool
    has_check_toml: bool

    @property
    def missing(self) -> tuple[str, ...]:
        missing: list[str] = []
        if not self.has_metadata:
            missing.append(FILE_PATTERNS.metadata[0])
        if not self.has_check_toml:
            missing.append(FILE_PATTERNS.check_toml)
        return tuple(missing)


def find_metadata_file(repo_path: str | Path) -> Path | None:
    """Return repo-metadata.yaml (preferred) or repo-metadata.yml, if present."""
    root = Path(repo_path)
    for name in FILE_PATTERNS.metadata:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def has_metadata(repo_path: str | Path) -> bool:
    return find_metadata_file(repo_path) is not None


def has_check_toml(repo_path: str | Path) -> bool:
    return (Path(repo_path) / FILE_PATTERNS.check_toml).is_file()


def is_scannable_repo(repo_path: str | Path) -> ScannabilityResult:
    """Report whether a repository can be scanned. Advisory only."""
    meta = has_metadata(repo_path)
    check = has_check_toml(repo_path)
    return ScannabilityResult(
        scannable=meta and check, has_metadata=meta, has_check_toml=check
    )


def find_check_toml_files(repo_path: str | Path) -> list[str]:
    """Return repository-relative paths of every check.toml, root first."""
    root = Path(repo_path)
    found: list[str] = []
    for dirpath, dirs, files in os.walk(root):
        dirs[:] = sorted(d for d in dirs if d not in SKIP_DIRS)
        if FILE_PATTERNS.check_toml in files:
            rel = (Path(dirpath) / FILE_PATTERNS.check_toml).relative_to(root)
            found.append(rel.as_posix())
    return found


def get_repo_metadata(
    repo_path: str | Path, schema: MetadataSchema | None = None
) -> MetadataResult:
    """Read and validate repo-metadata.yaml.

    Absent file gives ``metadata=None`` with no warning. An empty or malformed
    file also gives ``metadata=None`` but with a warning; callers decide how
    loudly to surface it. Schema violations keep the metadata and add a
    warning.
    """
    path = find_metadata_file(repo_path)
    if path is None:
        return MetadataResult()

    result = MetadataResult(path=path)
    try:
        data = _load_mapping(path)
    except MetadataParseError as e:
        logger.debug("Failed to parse %s: %s", path, e)
        result.warnings.append(str(e))
        return result
    if data is None:
        result.warnings.append(f"empty metadata: {path.name} has no content")
        return result

    result.metadata = RepoMetadata(
        tier=_as_str(data.get("tier")),
        status=_as_str(data.get("status")),
        team=_as_str(data.get("team")),
        raw=dict(data),
    )
    if schema is not None:
        result.warnings.extend(validate_metadata(result.metadata, schema))
    return result


def _load_mapping(path: Path) -> dict | None:
    """Parse a metadata file; ``None`` when it has no content."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise MetadataParseError(
            f"parse error: cannot read {path.name}: {e}", path=str(path)
        ) from e
    if not text.strip():
        return None

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        detail = " ".join(str(e).split())
        raise MetadataParseError(f"parse error: {path.name}: {detail}", path=str(path)) from e

    if data is None:
        return None
    if not isinstance(data, dict):
        raise MetadataParseError(
            f"parse error: {path.name} must contain a mapping, got {type(data).__name__}",
            path=str(path),
        )
    return data


def validate_metadata(metadata: RepoMetadata, schema: MetadataSchema) -> list[str]:
    """Return warnings for metadata values outside the configured schema."""
    warnings: list[str] = []
    checks = (
        ("tier", metadata.tier, schema.tiers),
        ("status", metadata.status, schema.statuses),
        ("team", metadata.team, schema.teams),
    )
    for name, value, allowed in checks:
        if value is None or not allowed:
            continue
        if value not in allowed:
            warnings.append(
                f"invalid {name} '{value}' (expected one of: {', '.join(allowed)})"
            )
    return warnings


def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)
