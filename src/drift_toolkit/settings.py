"""Global settings — environment variables, XDG paths, defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from drift_toolkit.constants import CONCURRENCY, DEFAULTS, GITHUB_API, TIMEOUTS


def _default_work_dir() -> Path:
    xdg = os.environ.get("XDG_CACHE_HOME")
    if xdg:
        return Path(xdg) / "drift-toolkit"
    return Path.home() / ".cache" / "drift-toolkit"


@dataclass
class DriftSettings:
    """Application-wide settings."""

    work_dir: Path = field(default_factory=_default_work_dir)
    api_url: str = GITHUB_API.base_url
    config_repo: str = DEFAULTS.config_repo
    since_hours: int = DEFAULTS.since_hours
    concurrency: int = CONCURRENCY.max_repos
    scan_timeout_ms: int = TIMEOUTS.scan_ms
    verbose: bool = False

    @classmethod
    def load(cls) -> DriftSettings:
        """Load settings from environment variables with defaults."""
        settings = cls()

        env_work_dir = os.environ.get("DRIFT_WORK_DIR")
        if env_work_dir:
            settings.work_dir = Path(env_work_dir)

        env_api = os.environ.get("GITHUB_API_URL")
        if env_api:
            settings.api_url = env_api.rstrip("/")

        env_config_repo = os.environ.get("DRIFT_CONFIG_REPO")
        if env_config_repo:
            settings.config_repo = env_config_repo

        env_since = os.environ.get("DRIFT_SINCE_HOURS")
        if env_since:
            settings.since_hours = int(env_since)

        env_concurrency = os.environ.get("DRIFT_CONCURRENCY")
        if env_concurrency:
            settings.concurrency = max(1, int(env_concurrency))

        env_timeout = os.environ.get("DRIFT_SCAN_TIMEOUT_MS")
        if env_timeout:
            settings.scan_timeout_ms = int(env_timeout)

        return settings
