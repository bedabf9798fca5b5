"""Token lookup for the hosting API."""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

_GH_TIMEOUT_SECONDS = 10


def get_auth_token() -> str:
    """Return a GitHub token, or an empty string when none is available.

    Looks at ``GITHUB_TOKEN``, then ``GH_TOKEN``, then asks the ``gh`` CLI.
    """
    for var in ("GITHUB_TOKEN", "GH_TOKEN"):
        token = os.environ.get(var, "").strip()
        if token:
            return token

    try:
        completed = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            check=True,
            timeout=_GH_TIMEOUT_SECONDS,
        )
    except FileNotFoundError:
        logger.debug("gh CLI not installed")
        return ""
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired) as e:
        logger.debug("gh auth token failed: %s", e)
        return ""
    return completed.stdout.strip()
