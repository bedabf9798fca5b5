"""Error taxonomy for drift-toolkit.

Per-file and per-scan errors are captured into result objects, per-repository
errors end that repository's checks, and configuration errors end the whole
invocation. Each exception carries an :class:`ErrorKind` so results and JSON
reports can name the condition without relying on exception types.
"""

from __future__ import annotations

import enum


class ErrorKind(enum.Enum):
    """Stable identifiers for reportable error conditions."""

    CONFIG_NOT_FOUND = "ConfigNotFound"
    CONFIG_PARSE_ERROR = "ConfigParseError"
    METADATA_PARSE_ERROR = "MetadataParseError"
    CONFIG_REPO_NOT_FOUND = "ConfigRepoNotFound"
    REPO_NOT_FOUND = "RepoNotFound"
    REPO_SKIPPED_NOT_SCANNABLE = "RepoSkippedNotScannable"
    PERMISSION_DENIED = "PermissionDenied"
    SCAN_TIMEOUT = "ScanTimeout"
    APPROVED_SOURCE_MISSING = "ApprovedSourceMissing"
    GIT_ERROR = "GitError"
    HOSTING_ERROR = "HostingError"


class DriftError(Exception):
    """Base class for all drift-toolkit errors."""

    kind: ErrorKind = ErrorKind.CONFIG_PARSE_ERROR

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path


class ConfigNotFound(DriftError):
    """No drift.config.yaml could be located."""

    kind = ErrorKind.CONFIG_NOT_FOUND


class ConfigParseError(DriftError):
    """The configuration file is malformed or has invalid values."""

    kind = ErrorKind.CONFIG_PARSE_ERROR


class MetadataParseError(DriftError):
    """repo-metadata.yaml could not be parsed. Warning-grade."""

    kind = ErrorKind.METADATA_PARSE_ERROR


class ConfigRepoNotFound(DriftError):
    """The organization's config repository could not be resolved."""

    kind = ErrorKind.CONFIG_REPO_NOT_FOUND


class RepoNotFound(DriftError):
    """An explicitly named repository does not exist on the host."""

    kind = ErrorKind.REPO_NOT_FOUND


class RepoSkippedNotScannable(DriftError):
    """A repository exists but lacks the files required for scanning."""

    kind = ErrorKind.REPO_SKIPPED_NOT_SCANNABLE

    def __init__(self, message: str, *, missing: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.missing = missing


class PermissionDenied(DriftError):
    """A repository file exists but cannot be read."""

    kind = ErrorKind.PERMISSION_DENIED


class ScanTimeout(DriftError):
    """A scan command exceeded its deadline."""

    kind = ErrorKind.SCAN_TIMEOUT


class ApprovedSourceMissing(DriftError):
    """The approved baseline file for a protected file does not exist."""

    kind = ErrorKind.APPROVED_SOURCE_MISSING


class GitError(DriftError):
    """A git operation failed."""

    kind = ErrorKind.GIT_ERROR


class HostingError(DriftError):
    """The hosting API returned an error."""

    kind = ErrorKind.HOSTING_ERROR

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        detail: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class HostingAuthError(HostingError):
    """The hosting API rejected the credentials (401/403)."""


class HostingNotFound(HostingError):
    """The hosting API returned 404."""
