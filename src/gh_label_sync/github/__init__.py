"""GitHub integration."""

from gh_label_sync.github.client import GitHubClient

__all__ = ["GitHubClient"]
