"""GitHub API client for repository labels.

Wraps PyGithub (repository connection, label creation) and a plain
``requests`` session (listing, updating and deleting labels) so that the CLI
and the reconciler never talk to GitHub directly.
"""

from __future__ import annotations

import logging
from itertools import count
from typing import Any
from urllib.parse import quote

import requests
from github import Auth, Github
from github.GithubObject import NotSet
from github.Repository import Repository

from gh_label_sync.labels import Label
from gh_label_sync.reconcile import LabelMutator

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.github.com"


def _error_message(resp: requests.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.reason or "request failed"
    if isinstance(payload, dict):
        message = payload.get("message")
        errors = payload.get("errors")
        if isinstance(errors, list):
            codes = [
                str(item.get("code"))
                for item in errors
                if isinstance(item, dict) and item.get("code")
            ]
            if codes and isinstance(message, str):
                return f"{message} ({', '.join(codes)})"
        if isinstance(message, str) and message.strip():
            return message
    return resp.reason or "request failed"


def _raise_for_status(resp: requests.Response) -> None:
    if resp.ok:
        return
    raise requests.HTTPError(f"HTTP {resp.status_code}: {_error_message(resp)}", response=resp)


class GitHubClient(LabelMutator):
    """Label operations on a single repository."""

    def __init__(
        self,
        *,
        token: str,
        repository: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        repo: Repository | None = None,
        github_api: Github | None = None,
    ) -> None:
        if not token:
            raise ValueError("GitHub token is required")
        if not repository.strip("/ "):
            raise ValueError("GitHub repository is required")

        self._repository_name = repository.strip().strip("/")
        self._rest_base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "gh-label-sync",
            }
        )

        if repo is not None:
            self._repo = repo
            self._github = None
            logger.debug("Using injected Repository instance")
            return

        auth = Auth.Token(token)
        self._github = github_api or Github(auth=auth, base_url=self._rest_base_url)

        self._repo = self._github.get_repo(self._repository_name)
        logger.info("Connected to repository", extra={"repo": self._repository_name})

    @property
    def repository(self) -> str:
        """Return the configured repository name ("owner/repo")."""

        return self._repository_name

    def _labels_url(self, name: str | None = None) -> str:
        url = f"{self._rest_base_url}/repos/{self._repository_name}/labels"
        if name is not None:
            url = f"{url}/{quote(name, safe='')}"
        return url

    def _get_paginated_json_list(self, url: str) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        per_page = 100
        for page in count(1):
            resp = self._session.get(
                url,
                params={"per_page": per_page, "page": page},
                timeout=self._timeout,
            )
            _raise_for_status(resp)
            payload = resp.json()
            if not isinstance(payload, list):
                break

            items.extend(p for p in payload if isinstance(p, dict))

            if len(payload) < per_page:
                break
        return items

    def list_labels(self) -> list[Label]:
        """Return all labels of the repository in API order."""

        raw = self._get_paginated_json_list(self._labels_url())
        labels = [Label.from_api(item) for item in raw]
        logger.debug(
            "Listed labels", extra={"repo": self._repository_name, "count": len(labels)}
        )
        return labels

    def create_label(self, label: Label) -> Label:
        created = self._repo.create_label(
            name=label.name,
            color=label.color,
            description=label.description or NotSet,
        )
        return Label(
            name=created.name,
            color=created.color,
            description=getattr(created, "description", None) or "",
        )

    def update_label(self, name: str, label: Label) -> Label:
        payload = {
            "new_name": label.name,
            "color": label.color,
            "description": label.description,
        }
        resp = self._session.patch(self._labels_url(name), json=payload, timeout=self._timeout)
        _raise_for_status(resp)
        return Label.from_api(resp.json())

    def delete_label(self, name: str) -> None:
        resp = self._session.delete(self._labels_url(name), timeout=self._timeout)
        _raise_for_status(resp)

    def close(self) -> None:
        self._session.close()
        if self._github is not None:
            self._github.close()
