"""GitHub hosting client and authentication."""

from drift_toolkit.github.auth import get_auth_token
from drift_toolkit.github.client import GitHubClient, HostedRepo, HostingClient, IssueRef

__all__ = ["GitHubClient", "HostedRepo", "HostingClient", "IssueRef", "get_auth_token"]
