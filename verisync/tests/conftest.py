# verisync/tests/conftest.py
"""
Shared fixtures for the verisync test suite.
"""
import time
from typing import Dict, Iterable, Optional

import pytest

from verisync.core.fetcher import ManifestFetcher
from verisync.exceptions import FetchError
from verisync.schemas.manifest import Manifest, ManifestEntry
from verisync.schemas.source import SourceConfig
from verisync.utils import config, source_loader


def _make_manifest(source: str, sessions: Dict[str, Iterable[str]]) -> Manifest:
    """Build a manifest whose declared counts match the id lists."""
    entries = {}
    for path, ids in sessions.items():
        ids = tuple(ids)
        entries[path] = ManifestEntry(path=path, entry_count=len(ids), ids=ids)
    return Manifest(source=source, entries=entries)


class FakeFetcher(ManifestFetcher):
    """In-memory fetcher returning canned text, optionally slow or failing."""

    def __init__(
        self,
        name: str,
        text: str = "",
        *,
        delay: float = 0.0,
        error: Optional[Exception] = None,
        history: str = "",
    ):
        super().__init__(SourceConfig(name=name, kind="file", root=f"/nonexistent/{name}"))
        self.text = text
        self.delay = delay
        self.error = error
        self.history = history
        self.calls = 0

    def fetch(self, timeout=None) -> str:
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.text

    def fetch_history(self, timeout=None) -> str:
        if self.error is not None:
            raise self.error
        return self.history


@pytest.fixture
def make_manifest():
    return _make_manifest


@pytest.fixture
def fake_fetcher():
    return FakeFetcher


@pytest.fixture
def failing_fetcher():
    def _make(name: str) -> FakeFetcher:
        return FakeFetcher(name, error=FetchError(name, "connection refused"))

    return _make


@pytest.fixture(autouse=True)
def clean_caches(monkeypatch):
    """Reset the config and source registry caches around every test."""
    monkeypatch.setattr(config, "_CONFIG_CACHE", None)
    monkeypatch.setattr(source_loader, "_source_registry_cache", None)
    yield
