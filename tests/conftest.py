"""Test configuration and fixtures."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from gh_label_sync.logging import JsonFormatter
from tests.fakes import RecordingMutator

_ENV_VARS = (
    "LABEL_SYNC_GITHUB_TOKEN",
    "GH_TOKEN",
    "GITHUB_TOKEN",
    "GITHUB_BASE_URL",
    "GH_REPO",
    "LOG_LEVEL",
    "LABEL_SYNC_REQUEST_TIMEOUT",
)


@pytest.fixture
def clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run in an empty directory without any label-sync environment variables."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def token_env(clean_env: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Provide a GitHub token through the environment."""
    monkeypatch.setenv("LABEL_SYNC_GITHUB_TOKEN", "test-token")
    return clean_env


@pytest.fixture
def mutator() -> RecordingMutator:
    """Provide a mutator that records every call."""
    return RecordingMutator()


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    """Drop handlers installed by configure_logging during a test."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if isinstance(handler.formatter, JsonFormatter):
            root.removeHandler(handler)
    root.setLevel(level)
