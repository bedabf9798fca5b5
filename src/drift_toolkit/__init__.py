"""drift-toolkit — repository compliance and drift detection."""

from drift_toolkit.config.loader import (
    find_config_path,
    get_code_config,
    load_config,
    load_config_from_string,
)
from drift_toolkit.constants import (
    CONCURRENCY,
    DEFAULTS,
    DISPLAY_LIMITS,
    FILE_PATTERNS,
    GITHUB_API,
    GITHUB_ISSUES,
    TIMEOUTS,
    WORKFLOW_PATTERNS,
)
from drift_toolkit.fix.engine import fix_files
from drift_toolkit.git.changes import (
    compare_check_toml_files,
    detect_check_toml_changes,
    detect_dependency_changes,
    get_check_toml_files_at_commit,
    get_tracked_dependency_files,
)
from drift_toolkit.git.client import get_head_commit, is_git_repo
from drift_toolkit.github.auth import get_auth_token
from drift_toolkit.integrity.checker import check_all_integrity, check_integrity
from drift_toolkit.integrity.discovery import discover_files
from drift_toolkit.org.scanner import OrgScanner
from drift_toolkit.repo.metadata import (
    find_check_toml_files,
    get_repo_metadata,
    has_check_toml,
    has_metadata,
    is_scannable_repo,
)
from drift_toolkit.scanner.engine import DriftEngine, scan_repository
from drift_toolkit.scanner.runner import run_all_scans, run_scan

__version__ = "0.1.0"

__all__ = [
    "CONCURRENCY",
    "DEFAULTS",
    "DISPLAY_LIMITS",
    "FILE_PATTERNS",
    "GITHUB_API",
    "GITHUB_ISSUES",
    "TIMEOUTS",
    "WORKFLOW_PATTERNS",
    "DriftEngine",
    "OrgScanner",
    "check_all_integrity",
    "check_integrity",
    "compare_check_toml_files",
    "detect_check_toml_changes",
    "detect_dependency_changes",
    "discover_files",
    "find_check_toml_files",
    "find_config_path",
    "fix_files",
    "get_auth_token",
    "get_check_toml_files_at_commit",
    "get_code_config",
    "get_head_commit",
    "get_repo_metadata",
    "get_tracked_dependency_files",
    "has_check_toml",
    "has_metadata",
    "is_git_repo",
    "is_scannable_repo",
    "load_config",
    "load_config_from_string",
    "run_all_scans",
    "run_scan",
    "scan_repository",
]
