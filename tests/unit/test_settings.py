"""Tests for environment-driven settings."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from drift_toolkit.constants import CONCURRENCY, DEFAULTS, GITHUB_API, TIMEOUTS
from drift_toolkit.settings import DriftSettings


def test_defaults(monkeypatch):
    for var in (
        "DRIFT_WORK_DIR",
        "GITHUB_API_URL",
        "DRIFT_CONFIG_REPO",
        "DRIFT_SINCE_HOURS",
        "DRIFT_CONCURRENCY",
        "DRIFT_SCAN_TIMEOUT_MS",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("XDG_CACHE_HOME", "/tmp/cache")

    settings = DriftSettings.load()
    assert settings.work_dir == Path("/tmp/cache/drift-toolkit")
    assert settings.api_url == GITHUB_API.base_url
    assert settings.config_repo == DEFAULTS.config_repo
    assert settings.since_hours == DEFAULTS.since_hours
    assert settings.concurrency == CONCURRENCY.max_repos
    assert settings.scan_timeout_ms == TIMEOUTS.scan_ms


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("DRIFT_WORK_DIR", str(tmp_path))
    monkeypatch.setenv("GITHUB_API_URL", "https://ghe.example/api/v3/")
    monkeypatch.setenv("DRIFT_CONFIG_REPO", "policies")
    monkeypatch.setenv("DRIFT_SINCE_HOURS", "6")
    monkeypatch.setenv("DRIFT_CONCURRENCY", "0")
    monkeypatch.setenv("DRIFT_SCAN_TIMEOUT_MS", "1500")

    settings = DriftSettings.load()
    assert settings.work_dir == tmp_path
    assert settings.api_url == "https://ghe.example/api/v3"
    assert settings.config_repo == "policies"
    assert settings.since_hours == 6
    assert settings.concurrency == 1
    assert settings.scan_timeout_ms == 1500


def test_public_constants_exported():
    import drift_toolkit

    assert drift_toolkit.TIMEOUTS.scan_ms == 60_000
    assert drift_toolkit.DEFAULTS.config_repo == "drift-config"
    assert drift_toolkit.FILE_PATTERNS.check_toml == "check.toml"
    assert drift_toolkit.GITHUB_ISSUES.label == "drift:code"
    assert drift_toolkit.__version__ == "0.1.0"


def test_constants_are_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        TIMEOUTS.scan_ms = 1
