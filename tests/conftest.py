"""Shared test fixtures."""

from __future__ import annotations

import shutil
import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

from drift_toolkit.errors import GitError
from drift_toolkit.git.client import TreeChange

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")

CONFIG_YAML = """\
schema:
  tiers: [production, internal, prototype]
  statuses: [active, deprecated]
integrity:
  protected:
    - file: CODEOWNERS
      approved: approved/CODEOWNERS
      severity: high
    - file: .github/workflows/ci.yml
      approved: approved/ci.yml
  discover:
    - pattern: ".github/workflows/*.yml"
      suggestion: "protect workflow files"
scans:
  - name: has-readme
    command: test -f README.md
    severity: low
"""


def write_files(root: Path, files: dict[str, str | bytes]) -> Path:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content)
    return root


@pytest.fixture
def make_repo(tmp_path: Path) -> Callable[..., Path]:
    """Build a repository directory from a mapping of relative paths to content."""

    def _make(files: dict[str, str | bytes] | None = None, name: str = "repo") -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        return write_files(root, files or {})

    return _make


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """A directory holding drift.config.yaml and its approved baselines."""
    root = tmp_path / "config"
    write_files(
        root,
        {
            "drift.config.yaml": CONFIG_YAML,
            "approved/CODEOWNERS": "* @org/platform\n",
            "approved/ci.yml": "name: ci\non: [push]\n",
        },
    )
    return root


@pytest.fixture
def scannable_files() -> dict[str, str]:
    """Files of a compliant repository matching ``config_dir``."""
    return {
        "repo-metadata.yaml": "tier: production\nstatus: active\nteam: platform\n",
        "check.toml": '[checks]\nlint = "ruff check ."\n',
        "CODEOWNERS": "* @org/platform\n",
        ".github/workflows/ci.yml": "name: ci\non: [push]\n",
        "README.md": "# repo\n",
    }


def git(repo: Path, *args: str) -> str:
    completed = subprocess.run(
        ["git", *args], cwd=repo, check=True, text=True, capture_output=True
    )
    return completed.stdout.strip()


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """An initialized git repository with a committer identity configured."""
    repo = tmp_path / "gitrepo"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "config", "user.email", "test@example.com")
    git(repo, "config", "user.name", "Test")
    git(repo, "config", "commit.gpgsign", "false")
    return repo


def commit_all(repo: Path, message: str) -> str:
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "--allow-empty", "-m", message)
    return git(repo, "rev-parse", "HEAD")


class FakeGit:
    """In-memory GitClient: commits are dicts of path -> content."""

    def __init__(self, commits: dict[str, dict[str, str]] | None = None, repo: bool = True) -> None:
        self.commits = commits or {}
        self.refs: dict[str, str] = {}
        self.repo = repo
        self.diff_calls = 0
        self.cloned: list[tuple[str, Path]] = []
        self.clone_files: dict[str, dict[str, str]] = {}
        self.clone_errors: set[str] = set()

    def is_repo(self, path: Path) -> bool:
        return self.repo

    def head_commit(self, path: Path) -> str | None:
        return self.refs.get("HEAD")

    def resolve_commit(self, path: Path, ref: str) -> str:
        sha = self.refs.get(ref, ref)
        if sha not in self.commits:
            raise GitError(f"Unknown commit: {ref}")
        return sha

    def diff_tree(self, path: Path, base: str, target: str) -> list[TreeChange]:
        self.diff_calls += 1
        old = self.commits[self.resolve_commit(path, base)]
        new = self.commits[self.resolve_commit(path, target)]
        changes = []
        for name in sorted(set(old) | set(new)):
            if name not in old:
                changes.append(TreeChange(name, "added"))
            elif name not in new:
                changes.append(TreeChange(name, "deleted"))
            elif old[name] != new[name]:
                changes.append(TreeChange(name, "modified"))
        return changes

    def list_files(self, path: Path, commit: str) -> list[str]:
        return sorted(self.commits[self.resolve_commit(path, commit)])

    def clone(self, url: str, dest: Path) -> None:
        self.cloned.append((url, dest))
        name = url.rstrip("/").rsplit("/", 1)[-1].removesuffix(".git")
        if name in self.clone_errors:
            raise GitError(f"git clone failed: repository {name} not reachable")
        dest.mkdir(parents=True, exist_ok=True)
        write_files(dest, self.clone_files.get(name, {}))


@pytest.fixture
def fake_git() -> FakeGit:
    return FakeGit()
