"""Hosting API client — the GitHub REST calls the org scanner needs."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from drift_toolkit.constants import GITHUB_API, TIMEOUTS
from drift_toolkit.errors import HostingAuthError, HostingError, HostingNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HostedRepo:
    """A repository as listed by the hosting API."""

    name: str
    full_name: str = ""
    default_branch: str = "main"
    archived: bool = False
    pushed_at: str | None = None


@dataclass(frozen=True)
class IssueRef:
    """An issue on the host. ``created`` is False when an open one was reused."""

    number: int
    url: str
    created: bool = True


class HostingClient(Protocol):
    """What the organization scanner needs from the hosting service."""

    def list_repos(self, org: str) -> list[HostedRepo]: ...

    def repo_exists(self, org: str, repo: str) -> bool: ...

    def has_file(self, org: str, repo: str, path: str) -> bool: ...

    def recent_commit(self, org: str, repo: str, since: datetime) -> bool: ...

    def find_open_issue(
        self, org: str, repo: str, label: str, marker: str
    ) -> IssueRef | None: ...

    def create_issue(
        self, org: str, repo: str, title: str, body: str, labels: list[str]
    ) -> IssueRef: ...

    def clone_url(self, org: str, repo: str) -> str: ...


class GitHubClient:
    """HostingClient backed by the GitHub REST API."""

    def __init__(
        self,
        token: str = "",
        *,
        base_url: str = GITHUB_API.base_url,
        clone_base_url: str = GITHUB_API.clone_base_url,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._token = token
        self._clone_base_url = clone_base_url.rstrip("/")
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(TIMEOUTS.api_seconds),
        )

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -- low-level --

    def _extract_detail(self, response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return (response.text or "").strip() or response.reason_phrase
        if isinstance(payload, dict):
            message = payload.get("message")
            if isinstance(message, str) and message.strip():
                return message.strip()
            return json.dumps(payload, ensure_ascii=False)
        return response.reason_phrase

    def _request_json(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        try:
            resp = self._http.request(method, path, params=params, json=body)
        except httpx.TimeoutException as e:
            raise HostingError(f"GitHub timeout calling {path}") from e
        except httpx.HTTPError as e:
            raise HostingError(f"GitHub call failed: {type(e).__name__}: {e}") from e

        if resp.status_code < 400:
            if not resp.content:
                return None
            return resp.json()

        detail = self._extract_detail(resp)
        if resp.status_code in {401, 403}:
            raise HostingAuthError(
                f"GitHub auth failed for {path}: {detail}",
                status_code=resp.status_code,
                detail=detail,
            )
        if resp.status_code == 404:
            raise HostingNotFound(
                f"Not found: {path}", status_code=resp.status_code, detail=detail
            )
        raise HostingError(
            f"GitHub error (status={resp.status_code}) for {path}: {detail}",
            status_code=resp.status_code,
            detail=detail,
        )

    # -- repositories --

    def list_repos(self, org: str) -> list[HostedRepo]:
        """All repositories of an organization, following pagination."""
        repos: list[HostedRepo] = []
        page = 1
        while True:
            batch = self._request_json(
                "GET",
                f"/orgs/{quote(org)}/repos",
                params={"per_page": GITHUB_API.per_page, "page": page, "type": "all"},
            )
            batch = batch or []
            for item in batch:
                repos.append(
                    HostedRepo(
                        name=item["name"],
                        full_name=item.get("full_name", f"{org}/{item['name']}"),
                        default_branch=item.get("default_branch") or "main",
                        archived=bool(item.get("archived", False)),
                        pushed_at=item.get("pushed_at"),
                    )
                )
            if len(batch) < GITHUB_API.per_page:
                break
            page += 1
        logger.debug("Listed %d repositories in %s", len(repos), org)
        return repos

    def repo_exists(self, org: str, repo: str) -> bool:
        try:
            self._request_json("GET", f"/repos/{quote(org)}/{quote(repo)}")
        except HostingNotFound:
            return False
        return True

    def has_file(self, org: str, repo: str, path: str) -> bool:
        try:
            self._request_json(
                "GET", f"/repos/{quote(org)}/{quote(repo)}/contents/{quote(path)}"
            )
        except HostingNotFound:
            return False
        return True

    def recent_commit(self, org: str, repo: str, since: datetime) -> bool:
        """True if the default branch has a commit at or after ``since``."""
        if since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)
        stamp = since.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        try:
            commits = self._request_json(
                "GET",
                f"/repos/{quote(org)}/{quote(repo)}/commits",
                params={"since": stamp, "per_page": 1},
            )
        except HostingError as e:
            # 409 is returned for repositories without any commits
            if e.status_code == 409:
                return False
            raise
        return bool(commits)

    def clone_url(self, org: str, repo: str) -> str:
        base = self._clone_base_url
        if self._token:
            scheme, rest = base.split("://", 1)
            base = f"{scheme}://x-access-token:{self._token}@{rest}"
        return f"{base}/{org}/{repo}.git"

    # -- issues --

    def find_open_issue(
        self, org: str, repo: str, label: str, marker: str
    ) -> IssueRef | None:
        """Return the open issue with ``label`` whose body contains ``marker``."""
        page = 1
        while True:
            issues = self._request_json(
                "GET",
                f"/repos/{quote(org)}/{quote(repo)}/issues",
                params={
                    "state": "open",
                    "labels": label,
                    "per_page": GITHUB_API.per_page,
                    "page": page,
                },
            ) or []
            for issue in issues:
                if "pull_request" in issue:
                    continue
                if marker in (issue.get("body") or ""):
                    return IssueRef(
                        number=issue["number"],
                        url=issue.get("html_url", ""),
                        created=False,
                    )
            if len(issues) < GITHUB_API.per_page:
                return None
            page += 1

    def create_issue(
        self, org: str, repo: str, title: str, body: str, labels: list[str]
    ) -> IssueRef:
        data = self._request_json(
            "POST",
            f"/repos/{quote(org)}/{quote(repo)}/issues",
            body={"title": title, "body": body, "labels": labels},
        )
        logger.info("Created issue #%s in %s/%s", data["number"], org, repo)
        return IssueRef(number=data["number"], url=data.get("html_url", ""))
