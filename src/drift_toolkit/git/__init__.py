"""Git access and dependency change detection."""

from drift_toolkit.git.changes import (
    ChangeDetectionOptions,
    CheckTomlChanges,
    DependencyChange,
    DependencyChangesDetection,
    compare_check_toml_files,
    detect_check_toml_changes,
    detect_dependency_changes,
    get_check_toml_files_at_commit,
    get_tracked_dependency_files,
)
from drift_toolkit.git.client import GitCli, GitClient, TreeChange, get_head_commit, is_git_repo

__all__ = [
    "ChangeDetectionOptions",
    "CheckTomlChanges",
    "DependencyChange",
    "DependencyChangesDetection",
    "GitCli",
    "GitClient",
    "TreeChange",
    "compare_check_toml_files",
    "detect_check_toml_changes",
    "detect_dependency_changes",
    "get_check_toml_files_at_commit",
    "get_head_commit",
    "get_tracked_dependency_files",
    "is_git_repo",
]
