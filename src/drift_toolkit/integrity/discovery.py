"""Discovery — find unprotected files that match suggestion patterns."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from drift_toolkit.config.models import DiscoveryPattern
from drift_toolkit.integrity.models import DiscoveryResult

logger = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    """Normalize a repository-relative path for comparison."""
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized.lstrip("/")


def discover_files(
    patterns: Iterable[DiscoveryPattern],
    repo_path: str | Path,
    already_protected: Iterable[str] = (),
) -> list[DiscoveryResult]:
    """Return files matching ``patterns`` that are not already protected.

    Output follows pattern order, then sorted match order. A pattern/file pair
    is reported once even if a pattern repeats.
    """
    root = Path(repo_path)
    protected = {normalize_path(p) for p in already_protected}
    seen: set[tuple[str, str]] = set()
    results: list[DiscoveryResult] = []

    for pattern in patterns:
        for rel in _glob(root, pattern.pattern):
            if rel in protected:
                continue
            key = (pattern.pattern, rel)
            if key in seen:
                continue
            seen.add(key)
            results.append(
                DiscoveryResult(
                    file=rel, pattern=pattern.pattern, suggestion=pattern.suggestion
                )
            )

    logger.debug("Discovered %d unprotected file(s) in %s", len(results), root)
    return results


def _glob(root: Path, pattern: str) -> list[str]:
    pattern = normalize_path(pattern)
    if not pattern:
        return []
    try:
        matches = root.glob(pattern)
        rels = [
            p.relative_to(root).as_posix()
            for p in matches
            if p.is_file() and ".git" not in p.relative_to(root).parts
        ]
    except (ValueError, NotImplementedError) as e:
        logger.warning("Invalid discovery pattern %r: %s", pattern, e)
        return []
    return sorted(rels)
