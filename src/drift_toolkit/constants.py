"""Shared constants — timeouts, defaults, file names and API settings."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Timeouts:
    scan_ms: int = 60_000
    git_seconds: int = 120
    api_seconds: float = 30.0
    terminate_grace_seconds: float = 2.0


@dataclass(frozen=True)
class Buffers:
    max_output_bytes: int = 10 * 1024 * 1024


@dataclass(frozen=True)
class DisplayLimits:
    output_lines: int = 20
    issue_body_chars: int = 60_000


@dataclass(frozen=True)
class Concurrency:
    max_repos: int = 5


@dataclass(frozen=True)
class Defaults:
    config_repo: str = "drift-config"
    since_hours: int = 24
    timeout_exit_code: int = 124


@dataclass(frozen=True)
class FilePatterns:
    metadata: tuple[str, ...] = ("repo-metadata.yaml", "repo-metadata.yml")
    check_toml: str = "check.toml"
    config: tuple[str, ...] = ("drift.config.yaml", "drift.config.yml")


@dataclass(frozen=True)
class GitHubApi:
    base_url: str = "https://api.github.com"
    clone_base_url: str = "https://github.com"
    per_page: int = 100


@dataclass(frozen=True)
class GitHubIssues:
    label: str = "drift:code"
    title_prefix: str = "[drift]"
    marker_prefix: str = "drift-toolkit:signature"


@dataclass(frozen=True)
class WorkflowPatterns:
    files: tuple[str, ...] = (".github/workflows/*.yml", ".github/workflows/*.yaml")


TIMEOUTS = Timeouts()
BUFFERS = Buffers()
DISPLAY_LIMITS = DisplayLimits()
CONCURRENCY = Concurrency()
DEFAULTS = Defaults()
FILE_PATTERNS = FilePatterns()
GITHUB_API = GitHubApi()
GITHUB_ISSUES = GitHubIssues()
WORKFLOW_PATTERNS = WorkflowPatterns()

# Directories never walked when searching a working tree
SKIP_DIRS = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        "node_modules",
        "__pycache__",
        ".venv",
        "venv",
        ".tox",
        ".mypy_cache",
        ".pytest_cache",
        ".ruff_cache",
        "dist",
        "build",
    }
)
