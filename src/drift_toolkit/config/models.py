"""Config data models — immutable dataclasses loaded from drift.config.yaml."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path

from drift_toolkit.constants import FILE_PATTERNS, WORKFLOW_PATTERNS


class Severity(enum.Enum):
    """How serious a violation is."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class MetadataSchema:
    """Allowed values for repo-metadata.yaml fields. Empty means unrestricted."""

    tiers: tuple[str, ...] = ()
    statuses: tuple[str, ...] = ()
    teams: tuple[str, ...] = ()


@dataclass(frozen=True)
class IntegrityCheck:
    """A protected file and the approved baseline it must match."""

    file: str
    approved: str
    severity: Severity = Severity.CRITICAL


@dataclass(frozen=True)
class DiscoveryPattern:
    """A glob that flags unprotected files worth protecting."""

    pattern: str
    suggestion: str = ""


@dataclass(frozen=True)
class ScanDefinition:
    """A configured shell check. ``timeout`` is in milliseconds."""

    name: str
    command: str
    description: str = ""
    if_file: str | None = None
    if_command: str | None = None
    timeout: int | None = None
    tiers: tuple[str, ...] | None = None
    severity: Severity = Severity.MEDIUM


@dataclass(frozen=True)
class DependencyCategory:
    """A check type and the file patterns whose changes affect it."""

    check_type: str
    patterns: tuple[str, ...]


DEFAULT_DEPENDENCIES: tuple[DependencyCategory, ...] = (
    DependencyCategory(
        "eslint",
        (".eslintrc", ".eslintrc.*", "eslint.config.*", ".eslintignore"),
    ),
    DependencyCategory(
        "prettier",
        (".prettierrc", ".prettierrc.*", "prettier.config.*", ".prettierignore"),
    ),
    DependencyCategory("tsc", ("tsconfig.json", "tsconfig.*.json")),
    DependencyCategory("ruff", ("ruff.toml", ".ruff.toml")),
    DependencyCategory("mypy", ("mypy.ini", ".mypy.ini")),
    DependencyCategory("workflows", WORKFLOW_PATTERNS.files),
)

ALWAYS_TRACKED_CHECK = "check-toml"
ALWAYS_TRACKED_FILES: tuple[str, ...] = (FILE_PATTERNS.check_toml,)


@dataclass(frozen=True)
class IntegrityConfig:
    """Protected files and discovery patterns."""

    protected: tuple[IntegrityCheck, ...] = ()
    discover: tuple[DiscoveryPattern, ...] = ()


@dataclass(frozen=True)
class CodeDomainConfig:
    """Settings of the code domain: integrity, scans and dependency tracking."""

    integrity: IntegrityConfig = field(default_factory=IntegrityConfig)
    scans: tuple[ScanDefinition, ...] = ()
    dependencies: tuple[DependencyCategory, ...] = DEFAULT_DEPENDENCIES


@dataclass(frozen=True)
class DriftConfig:
    """A complete drift.config.yaml."""

    path: Path | None = None
    schema: MetadataSchema = field(default_factory=MetadataSchema)
    code: CodeDomainConfig = field(default_factory=CodeDomainConfig)
    exclude: tuple[str, ...] = ()

    @property
    def integrity(self) -> IntegrityConfig:
        return self.code.integrity

    @property
    def scans(self) -> tuple[ScanDefinition, ...]:
        return self.code.scans

    @property
    def approved_base(self) -> Path:
        """Directory that approved paths are relative to."""
        if self.path is None:
            return Path.cwd()
        return self.path.parent
