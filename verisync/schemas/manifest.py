# verisync/schemas/manifest.py
"""
Pydantic models for parsed session manifests.

A manifest maps each relative log path on one source to the ordered
identifiers of its lines. Manifests are rebuilt on every run and never
persisted.
"""

from __future__ import annotations

from fnmatch import fnmatchcase
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class ManifestEntry(BaseModel):
    """One log file as seen on one source.

    :ivar path: Relative path, unique within its manifest.
    :vartype path: str
    :ivar entry_count: Line count reported by the source. Advisory only.
    :vartype entry_count: int
    :ivar ids: Identifiers in append order.
    :vartype ids: Tuple[str, ...]
    """

    model_config = ConfigDict(frozen=True)

    path: str
    entry_count: int = Field(ge=0)
    ids: Tuple[str, ...] = ()

    @property
    def count_consistent(self) -> bool:
        return len(self.ids) == self.entry_count


class Manifest(BaseModel):
    """All entries fetched from a single source, keyed by path."""

    model_config = ConfigDict(frozen=True)

    source: str = Field(description="Label of the source this manifest came from")
    entries: Dict[str, ManifestEntry] = Field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, path: object) -> bool:
        return path in self.entries

    def get(self, path: str) -> Optional[ManifestEntry]:
        return self.entries.get(path)

    def paths(self) -> List[str]:
        return sorted(self.entries)

    def filtered(self, patterns: Optional[Iterable[str]]) -> "Manifest":
        """Return a manifest restricted to paths matching any glob in `patterns`.

        An empty or missing pattern list keeps everything.
        """
        pats = [p for p in (patterns or []) if p]
        if not pats:
            return self
        kept = {
            path: entry
            for path, entry in self.entries.items()
            if any(fnmatchcase(path, p) for p in pats)
        }
        return Manifest(source=self.source, entries=kept)


class ParseIssue(BaseModel):
    """A manifest line that was skipped (a MalformedLine note)."""

    model_config = ConfigDict(frozen=True)

    source: str
    line_number: int = Field(description="1-based line number in the raw text")
    reason: str
    raw: str


class ParseOutcome(BaseModel):
    """Result of parsing one source's raw manifest text."""

    model_config = ConfigDict(frozen=True)

    manifest: Manifest
    issues: List[ParseIssue] = Field(default_factory=list)
    duplicate_paths: List[str] = Field(default_factory=list)
