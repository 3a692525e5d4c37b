# verisync/schemas/history.py
"""
Pydantic models for comparing the shared history index of two hosts.

Unlike session logs, history entries are matched as a set keyed by
(session_id, timestamp); order is not significant.
"""

from __future__ import annotations

from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field


class HistoryEntry(BaseModel):
    """One line of a history.jsonl index."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    timestamp: int = 0
    display: str = ""
    project: str = ""

    @property
    def key(self) -> Tuple[str, int]:
        return self.session_id, self.timestamp


class HistoryComparison(BaseModel):
    """Set difference between two history indexes."""

    model_config = ConfigDict(frozen=True)

    source_a: str
    source_b: str
    a_total: int = 0
    b_total: int = 0
    shared: int = 0
    only_in_a: List[HistoryEntry] = Field(default_factory=list)
    only_in_b: List[HistoryEntry] = Field(default_factory=list)

    @property
    def in_sync(self) -> bool:
        return not self.only_in_a and not self.only_in_b

    def sessions_only_in_a(self) -> List[str]:
        return sorted({e.session_id for e in self.only_in_a})

    def sessions_only_in_b(self) -> List[str]:
        return sorted({e.session_id for e in self.only_in_b})
