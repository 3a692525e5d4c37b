# verisync/schemas/comparison.py
"""
Pydantic models for the outcome of comparing two manifests.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from verisync.schemas.manifest import ParseIssue


class Classification(str, Enum):
    """Relationship between the two copies of one log path."""

    IDENTICAL = "identical"
    A_AHEAD = "a_ahead"
    B_AHEAD = "b_ahead"
    DIVERGED = "diverged"
    ONLY_IN_A = "only_in_a"
    ONLY_IN_B = "only_in_b"

    @property
    def is_shared(self) -> bool:
        return self not in (Classification.ONLY_IN_A, Classification.ONLY_IN_B)

    def swapped(self) -> "Classification":
        """The classification seen from the other side."""
        return _SWAPPED.get(self, self)


_SWAPPED = {
    Classification.A_AHEAD: Classification.B_AHEAD,
    Classification.B_AHEAD: Classification.A_AHEAD,
    Classification.ONLY_IN_A: Classification.ONLY_IN_B,
    Classification.ONLY_IN_B: Classification.ONLY_IN_A,
}


class PathComparison(BaseModel):
    """Classification of a single path plus the numbers behind it.

    :ivar delta: Entries the ahead side has beyond the other. Set for ahead classes only.
    :vartype delta: Optional[int]
    :ivar divergence_index: First 0-based position where the sequences differ. Set for diverged only.
    :vartype divergence_index: Optional[int]
    :ivar ahead_source: Label of the source holding the longer sequence, for ahead classes.
    :vartype ahead_source: Optional[str]
    """

    model_config = ConfigDict(frozen=True)

    path: str
    classification: Classification
    a_length: Optional[int] = None
    b_length: Optional[int] = None
    a_count: Optional[int] = None
    b_count: Optional[int] = None
    delta: Optional[int] = None
    divergence_index: Optional[int] = None
    ahead_source: Optional[str] = None


class DivergenceDetail(BaseModel):
    """Everything needed to show a diverged path to a human."""

    model_config = ConfigDict(frozen=True)

    path: str
    divergence_index: int
    a_ids: Tuple[str, ...]
    b_ids: Tuple[str, ...]
    a_count: int
    b_count: int

    def a_preview(self, n: int) -> Tuple[str, ...]:
        return self.a_ids[: max(n, 0)]

    def b_preview(self, n: int) -> Tuple[str, ...]:
        return self.b_ids[: max(n, 0)]

    def ids_at_divergence(self) -> Tuple[Optional[str], Optional[str]]:
        i = self.divergence_index
        a = self.a_ids[i] if i < len(self.a_ids) else None
        b = self.b_ids[i] if i < len(self.b_ids) else None
        return a, b

    def last_common_id(self) -> Optional[str]:
        if self.divergence_index == 0:
            return None
        return self.a_ids[self.divergence_index - 1]


class CategoryCounts(BaseModel):
    """Number of paths per classification."""

    model_config = ConfigDict(frozen=True)

    identical: int = 0
    a_ahead: int = 0
    b_ahead: int = 0
    diverged: int = 0
    only_in_a: int = 0
    only_in_b: int = 0

    @property
    def shared_total(self) -> int:
        return self.identical + self.a_ahead + self.b_ahead + self.diverged

    @property
    def in_sync(self) -> bool:
        return self.diverged == 0

    def get(self, classification: Classification) -> int:
        return getattr(self, classification.value)


class ComparisonResult(BaseModel):
    """
    Aggregate outcome of comparing two manifests.

    `comparisons` lists every path in lexicographic order. `diverged`
    holds the details for all diverged paths in the same order; callers
    that only want examples cap it themselves (the reporter shows 3 by
    default).
    """

    model_config = ConfigDict(frozen=True)

    source_a: str
    source_b: str
    a_size: int = Field(0, description="Paths in source A's manifest")
    b_size: int = Field(0, description="Paths in source B's manifest")
    counts: CategoryCounts = Field(default_factory=CategoryCounts)
    comparisons: List[PathComparison] = Field(default_factory=list)
    diverged: List[DivergenceDetail] = Field(default_factory=list)
    issues: List[ParseIssue] = Field(default_factory=list)

    def by_classification(self, classification: Classification) -> List[PathComparison]:
        return [c for c in self.comparisons if c.classification is classification]

    def issues_for(self, source: str) -> List[ParseIssue]:
        return [i for i in self.issues if i.source == source]

    def count_mismatches(self) -> List[str]:
        """Paths where either side's declared entry count differs from its id count."""
        return [
            c.path
            for c in self.comparisons
            if (c.a_count is not None and c.a_count != c.a_length)
            or (c.b_count is not None and c.b_count != c.b_length)
        ]
