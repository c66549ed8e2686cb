"""Repository selection.

A repository is given explicitly (``--repo``), through ``GH_REPO``, or taken
from the ``origin`` remote of the git checkout the tool runs in.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_HOST = "github.com"


class RepositoryResolutionError(ValueError):
    """Raised when no usable repository can be determined."""


@dataclass(frozen=True, slots=True)
class RepositoryRef:
    """A repository selector.

    ``host`` is ``None`` for a bare ``owner/repo``, which means "whatever host
    the configured API talks to".
    """

    owner: str
    name: str
    host: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


def _strip_git_suffix(name: str) -> str:
    return name[: -len(".git")] if name.endswith(".git") else name


def parse_repository(value: str) -> RepositoryRef:
    """Parse ``owner/repo``, ``host/owner/repo`` or a git/https remote URL."""

    raw = value.strip()
    if not raw:
        raise RepositoryResolutionError("repository is required")

    host: str | None = None
    path = raw

    if "://" in raw:
        parsed = urlparse(raw)
        host = parsed.hostname or DEFAULT_HOST
        path = parsed.path
    elif raw.startswith("git@") and ":" in raw:
        # scp-like syntax: git@github.com:owner/repo.git
        host_part, path = raw[len("git@") :].split(":", 1)
        host = host_part or DEFAULT_HOST

    parts = [p for p in path.strip("/").split("/") if p]
    if len(parts) == 3 and "://" not in raw and not raw.startswith("git@"):
        host, parts = parts[0], parts[1:]

    if len(parts) != 2:
        raise RepositoryResolutionError(
            f"invalid repository format: {value!r} (expected 'owner/repo')"
        )

    owner, name = parts[0], _strip_git_suffix(parts[1])
    if not owner or not name:
        raise RepositoryResolutionError(
            f"invalid repository format: {value!r} (expected 'owner/repo')"
        )
    return RepositoryRef(owner=owner, name=name, host=host.lower() if host else None)


def api_host(base_url: str) -> str:
    """Return the web host served by the REST API at ``base_url``.

    ``https://api.github.com`` serves ``github.com``; an Enterprise Server API
    (``https://ghe.example.com/api/v3``) serves its own host.
    """

    hostname = (urlparse(base_url).hostname or "").lower()
    if hostname.startswith("api."):
        return hostname[len("api.") :]
    return hostname


def ensure_api_host(repository: RepositoryRef, base_url: str) -> None:
    """Refuse a repository that lives on a different host than ``base_url``."""

    if repository.host is None:
        return
    served = api_host(base_url)
    if repository.host != served:
        raise RepositoryResolutionError(
            f"repository {repository.host}/{repository.full_name} is not on {served} "
            f"(set GITHUB_BASE_URL to that host's API)"
        )


def _origin_url(cwd: Path | None) -> str:
    try:
        completed = subprocess.run(
            ["git", "remote", "get-url", "origin"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        )
    except FileNotFoundError as e:
        raise RepositoryResolutionError(
            "could not determine repository (use --repo flag): git is not installed"
        ) from e
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or "").strip() or "no 'origin' remote"
        raise RepositoryResolutionError(
            f"could not determine repository (use --repo flag): {detail}"
        ) from e
    return completed.stdout.strip()


def current_repository(default: str | None = None, *, cwd: Path | None = None) -> RepositoryRef:
    """Resolve the ambient repository.

    ``default`` (typically the ``GH_REPO`` setting) wins over the git remote.
    """

    if default and default.strip():
        return parse_repository(default)

    url = _origin_url(cwd)
    logger.debug("Resolved repository from git remote", extra={"remote": url})
    return parse_repository(url)


def resolve_repository(
    explicit: str | None, default: str | None = None, *, cwd: Path | None = None
) -> RepositoryRef:
    """Return ``explicit`` if given, otherwise the ambient repository."""

    if explicit:
        return parse_repository(explicit)
    return current_repository(default, cwd=cwd)
