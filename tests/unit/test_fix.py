"""Tests for the fix engine."""

from __future__ import annotations

import pytest

from drift_toolkit.config.models import IntegrityCheck
from drift_toolkit.errors import ErrorKind
from drift_toolkit.fix.engine import FixAction, fix_files


@pytest.fixture
def approved(make_repo):
    return make_repo(
        {"CODEOWNERS": "* @org/platform\n", "workflows/ci.yml": "name: ci\n"},
        name="approved",
    )


CHECKS = [
    IntegrityCheck(file="CODEOWNERS", approved="CODEOWNERS"),
    IntegrityCheck(file=".github/workflows/ci.yml", approved="workflows/ci.yml"),
]


def test_overwrites_drift_and_creates_missing(make_repo, approved):
    repo = make_repo({"CODEOWNERS": "* @someone-else\n"})
    plan = fix_files(CHECKS, repo, approved)

    assert plan.ok
    assert [(f.file, f.action) for f in plan.applied] == [
        ("CODEOWNERS", FixAction.OVERWRITE),
        (".github/workflows/ci.yml", FixAction.CREATE),
    ]
    assert (repo / "CODEOWNERS").read_text() == "* @org/platform\n"
    assert (repo / ".github/workflows/ci.yml").read_text() == "name: ci\n"


def test_dry_run_changes_nothing(make_repo, approved):
    repo = make_repo({"CODEOWNERS": "* @someone-else\n"})
    plan = fix_files(CHECKS, repo, approved, dry_run=True)

    assert plan.dry_run
    assert [f.action for f in plan.fixes] == [FixAction.OVERWRITE, FixAction.CREATE]
    assert plan.applied == []
    assert (repo / "CODEOWNERS").read_text() == "* @someone-else\n"
    assert not (repo / ".github").exists()


def test_matching_files_are_unchanged(make_repo, approved):
    repo = make_repo({"CODEOWNERS": "* @org/platform\n", ".github/workflows/ci.yml": "name: ci\n"})
    plan = fix_files(CHECKS, repo, approved)
    assert plan.fixes == []
    assert plan.unchanged == ["CODEOWNERS", ".github/workflows/ci.yml"]


def test_file_filter_limits_plan(make_repo, approved):
    repo = make_repo({"CODEOWNERS": "drift\n"})
    plan = fix_files(CHECKS, repo, approved, file_filter=["CODEOWNERS"])
    assert [f.file for f in plan.applied] == ["CODEOWNERS"]
    assert not (repo / ".github").exists()


def test_unknown_file_in_filter_is_error(make_repo, approved):
    plan = fix_files(CHECKS, make_repo(), approved, file_filter=["README.md"])
    assert not plan.ok
    assert plan.errors[0].file == "README.md"
    assert plan.fixes == []


def test_missing_approved_source_is_explicit_error(make_repo, approved):
    checks = [IntegrityCheck(file="LICENSE", approved="LICENSE")]
    plan = fix_files(checks, make_repo(), approved)
    assert plan.fixes == []
    assert plan.errors[0].kind is ErrorKind.APPROVED_SOURCE_MISSING


def test_second_run_is_noop(make_repo, approved):
    repo = make_repo({"CODEOWNERS": "drift\n"})
    fix_files(CHECKS, repo, approved)
    again = fix_files(CHECKS, repo, approved)
    assert again.fixes == []
    assert len(again.unchanged) == 2
