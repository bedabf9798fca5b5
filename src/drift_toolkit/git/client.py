"""Git collaborator — read-only access to commits and trees, plus shallow clone."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from drift_toolkit.constants import TIMEOUTS
from drift_toolkit.errors import GitError

logger = logging.getLogger(__name__)

Runner = Callable[[Sequence[str], Path], str]

_STATUS_NAMES = {"A": "added", "M": "modified", "D": "deleted", "T": "modified"}


@dataclass(frozen=True)
class TreeChange:
    """One path that differs between two commits."""

    path: str
    status: str  # added | modified | deleted


@runtime_checkable
class GitClient(Protocol):
    """What the toolkit needs from git."""

    def is_repo(self, path: Path) -> bool: ...

    def head_commit(self, path: Path) -> str | None: ...

    def resolve_commit(self, path: Path, ref: str) -> str: ...

    def diff_tree(self, path: Path, base: str, target: str) -> list[TreeChange]: ...

    def list_files(self, path: Path, commit: str) -> list[str]: ...

    def clone(self, url: str, dest: Path) -> None: ...


def _default_runner(args: Sequence[str], cwd: Path) -> str:
    try:
        completed = subprocess.run(
            ["git", *args],
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=True,
            timeout=TIMEOUTS.git_seconds,
        )
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or "").strip() or f"exit status {e.returncode}"
        raise GitError(f"git {args[0]} failed: {detail}", path=str(cwd)) from e
    except subprocess.TimeoutExpired as e:
        raise GitError(f"git {args[0]} timed out", path=str(cwd)) from e
    except FileNotFoundError as e:
        raise GitError(f"git is not available: {e}", path=str(cwd)) from e
    return completed.stdout


class GitCli:
    """GitClient backed by the ``git`` executable."""

    def __init__(self, runner: Runner | None = None) -> None:
        self._run = runner or _default_runner

    def is_repo(self, path: Path) -> bool:
        if not Path(path).is_dir():
            return False
        try:
            out = self._run(["rev-parse", "--is-inside-work-tree"], Path(path))
        except GitError:
            return False
        return out.strip() == "true"

    def head_commit(self, path: Path) -> str | None:
        try:
            return self.resolve_commit(path, "HEAD")
        except GitError:
            return None

    def resolve_commit(self, path: Path, ref: str) -> str:
        out = self._run(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], Path(path))
        sha = out.strip()
        if not sha:
            raise GitError(f"Unknown commit: {ref}", path=str(path))
        return sha

    def diff_tree(self, path: Path, base: str, target: str) -> list[TreeChange]:
        out = self._run(
            ["diff", "--name-status", "--no-renames", "-z", base, target], Path(path)
        )
        # -z output alternates status and path fields
        fields = [f for f in out.split("\0") if f]
        changes: list[TreeChange] = []
        for code, file in zip(fields[::2], fields[1::2]):
            status = _STATUS_NAMES.get(code[:1])
            if status is None:
                logger.debug("Ignoring diff status %s for %s", code, file)
                continue
            changes.append(TreeChange(path=file, status=status))
        return changes

    def list_files(self, path: Path, commit: str) -> list[str]:
        out = self._run(["ls-tree", "-r", "--name-only", "-z", commit], Path(path))
        return [f for f in out.split("\0") if f]

    def clone(self, url: str, dest: Path) -> None:
        dest = Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Cloning %s", _redact(url))
        try:
            self._run(["clone", "--depth", "1", "--quiet", url, str(dest)], dest.parent)
        except GitError as e:
            # The message may echo the URL, which can carry a token
            raise GitError(_redact(str(e)), path=str(dest)) from None


def _redact(text: str) -> str:
    """Hide credentials embedded in https URLs."""
    out = []
    for token in text.split():
        if "://" in token and "@" in token:
            scheme, rest = token.split("://", 1)
            token = f"{scheme}://***@{rest.split('@', 1)[1]}"
        out.append(token)
    return " ".join(out)


def is_git_repo(path: str | Path, git: GitClient | None = None) -> bool:
    return (git or GitCli()).is_repo(Path(path))


def get_head_commit(path: str | Path, git: GitClient | None = None) -> str | None:
    """Return the full sha of HEAD, or None outside a repository."""
    return (git or GitCli()).head_commit(Path(path))
