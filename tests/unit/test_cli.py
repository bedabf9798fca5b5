"""Tests for CLI commands using Click's CliRunner."""

from __future__ import annotations

import json
import sys
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from drift_toolkit.cli import main
from drift_toolkit.errors import ErrorKind
from drift_toolkit.org.models import OrgScanResults, OrgScanSummary, RepoScanResult, RepoStatus

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell commands")


def test_main_help():
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "drift" in result.output
    assert "code" in result.output


def test_main_version():
    runner = CliRunner()
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_code_help_lists_commands():
    runner = CliRunner()
    result = runner.invoke(main, ["code", "--help"])
    assert result.exit_code == 0
    assert "scan" in result.output
    assert "fix" in result.output


@posix_only
class TestScanLocal:
    def test_warnings_never_report_all_passed(self, make_repo, config_dir, scannable_files):
        repo = make_repo(scannable_files)
        runner = CliRunner()
        result = runner.invoke(
            main, ["code", "scan", "--path", str(repo), "--config", str(config_dir)]
        )
        # the temporary directory is not a git repository
        assert result.exit_code == 0
        assert "not a git repository" in result.output
        assert "All checks passed" not in result.output

    def test_drift_exits_1(self, make_repo, config_dir, scannable_files):
        repo = make_repo(dict(scannable_files, CODEOWNERS="* @intruder\n"))
        runner = CliRunner()
        result = runner.invoke(
            main, ["code", "scan", "--path", str(repo), "--config", str(config_dir)]
        )
        assert result.exit_code == 1
        assert "CODEOWNERS" in result.output
        assert "Drift detected" in result.output

    def test_config_found_in_repository(self, make_repo, scannable_files):
        repo = make_repo(
            dict(scannable_files, **{"drift.config.yaml": "scans:\n  - name: ok\n    command: 'true'\n"})
        )
        runner = CliRunner()
        result = runner.invoke(main, ["code", "scan", "--path", str(repo)])
        assert result.exit_code == 0

    def test_missing_config_exits_2(self, make_repo):
        runner = CliRunner()
        result = runner.invoke(main, ["code", "scan", "--path", str(make_repo())])
        assert result.exit_code == 2
        assert "ConfigNotFound" in result.output

    def test_invalid_config_exits_2(self, make_repo, tmp_path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("scans: [unclosed")
        runner = CliRunner()
        result = runner.invoke(
            main, ["code", "scan", "--path", str(make_repo()), "--config", str(bad)]
        )
        assert result.exit_code == 2
        assert "ConfigParseError" in result.output

    def test_json_output(self, make_repo, config_dir, scannable_files):
        repo = make_repo(dict(scannable_files, CODEOWNERS="* @intruder\n"))
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["code", "scan", "--path", str(repo), "--config", str(config_dir), "--json"],
        )
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["has_failures"] is True
        statuses = {r["file"]: r["status"] for r in data["integrity"]}
        assert statuses["CODEOWNERS"] == "drift"
        assert data["scans"][0]["status"] == "pass"

    def test_github_actions_annotations(self, make_repo, config_dir, scannable_files):
        repo = make_repo(dict(scannable_files, CODEOWNERS="* @intruder\n"))
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["code", "scan", "--path", str(repo), "--config", str(config_dir)],
            env={"GITHUB_ACTIONS": "true"},
        )
        assert result.exit_code == 1
        assert "::error file=CODEOWNERS" in result.output
        assert "::warning::" in result.output

    def test_repo_requires_org(self, make_repo):
        runner = CliRunner()
        result = runner.invoke(main, ["code", "scan", "--repo", "app"])
        assert result.exit_code == 2
        assert "--repo requires --org" in result.output


class TestScanOrg:
    def _invoke(self, results: OrgScanResults, *extra: str):
        scanner = MagicMock()
        scanner.scan.return_value = results
        with (
            patch("drift_toolkit.cli.scan.GitHubClient") as client_cls,
            patch("drift_toolkit.cli.scan.OrgScanner", return_value=scanner),
        ):
            runner = CliRunner()
            result = runner.invoke(
                main,
                ["code", "scan", "--org", "acme", "--github-token", "tok", *extra],
                env={"GITHUB_ACTIONS": "false"},
            )
        return result, scanner, client_cls

    def test_failed_repos_exit_1(self):
        summary = OrgScanSummary("acme", "drift-config", 2, 2, 0, 1, 1)
        results = OrgScanResults(
            summary=summary,
            repos=[
                RepoScanResult("a", RepoStatus.PASSED),
                RepoScanResult("b", RepoStatus.FAILED, reason="Drift detected"),
            ],
        )
        result, scanner, client_cls = self._invoke(results, "--all", "--since", "12")
        assert result.exit_code == 1
        client_cls.assert_called_once()
        assert client_cls.call_args.args[0] == "tok"
        options = scanner.scan.call_args.args[1]
        assert options.all
        assert options.since_hours == 12
        assert "1 failed" in result.output

    def test_config_repo_error_exits_2(self):
        results = OrgScanResults(
            summary=OrgScanSummary("acme", "drift-config"),
            error=ErrorKind.CONFIG_REPO_NOT_FOUND,
            error_message="Config repository acme/drift-config not found",
        )
        result, _, _ = self._invoke(results)
        assert result.exit_code == 2
        assert "ConfigRepoNotFound" in result.output

    def test_options_passed_through(self):
        results = OrgScanResults(summary=OrgScanSummary("acme", "policies"))
        result, scanner, _ = self._invoke(
            results,
            "--config-repo",
            "policies",
            "--repo",
            "app",
            "--exclude",
            "sandbox-*",
            "--dry-run",
            "--concurrency",
            "2",
        )
        assert result.exit_code == 0
        options = scanner.scan.call_args.args[1]
        assert options.config_repo == "policies"
        assert options.repo_filter == "app"
        assert options.exclude == ("sandbox-*",)
        assert options.dry_run
        assert options.concurrency == 2

    def test_json_output(self):
        results = OrgScanResults(summary=OrgScanSummary("acme", "drift-config", 1, 0, 1, 0, 0))
        result, _, _ = self._invoke(results, "--json")
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["summary"]["organization"] == "acme"
        assert data["summary"]["skipped_repos"] == 1
        assert data["error"] is None


class TestFix:
    def test_dry_run_then_fix(self, make_repo, config_dir, scannable_files):
        repo = make_repo(dict(scannable_files, CODEOWNERS="* @intruder\n"))
        runner = CliRunner()

        result = runner.invoke(
            main,
            ["code", "fix", "--path", str(repo), "--config", str(config_dir), "--dry-run"],
        )
        assert result.exit_code == 0
        assert "Would overwrite" in result.output
        assert (repo / "CODEOWNERS").read_text() == "* @intruder\n"

        result = runner.invoke(
            main, ["code", "fix", "--path", str(repo), "--config", str(config_dir)]
        )
        assert result.exit_code == 0
        assert (repo / "CODEOWNERS").read_text() == "* @org/platform\n"

    def test_unknown_file_exits_1(self, make_repo, config_dir):
        runner = CliRunner()
        result = runner.invoke(
            main,
            [
                "code",
                "fix",
                "--path",
                str(make_repo()),
                "--config",
                str(config_dir),
                "--file",
                "README.md",
            ],
        )
        assert result.exit_code == 1
        assert "README.md" in result.output

    def test_json_plan(self, make_repo, config_dir):
        runner = CliRunner()
        result = runner.invoke(
            main,
            [
                "code",
                "fix",
                "--path",
                str(make_repo()),
                "--config",
                str(config_dir),
                "--dry-run",
                "--json",
            ],
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert {f["action"] for f in data["fixes"]} == {"create"}
        assert data["applied"] == []
