# verisync/core/classifier.py
"""
Prefix-consistency classifier.

For every path in the union of two manifests, decide whether the two id
sequences are identical, whether one is a strict prefix of the other (the
longer side is "ahead"), or whether they diverged. Comparison is strictly
positional string equality over the structured sequences; the declared
entry counts are carried along for reporting but never consulted.
"""

from __future__ import annotations

from collections import Counter
from typing import List, Optional, Sequence

from verisync.schemas.comparison import (
    CategoryCounts,
    Classification,
    ComparisonResult,
    DivergenceDetail,
    PathComparison,
)
from verisync.schemas.manifest import Manifest, ManifestEntry, ParseIssue
from verisync.utils.logger import setup_logger

logger = setup_logger(__name__)


def find_divergence(a: Sequence[str], b: Sequence[str]) -> Optional[int]:
    """Index of the first position where `a` and `b` differ, within the shorter length.

    Returns None when one sequence is a prefix of the other (or they are equal).
    """
    for i, (x, y) in enumerate(zip(a, b)):
        if x != y:
            return i
    return None


def classify_pair(
    a: Optional[ManifestEntry],
    b: Optional[ManifestEntry],
    *,
    path: Optional[str] = None,
    source_a: str = "A",
    source_b: str = "B",
) -> PathComparison:
    """Classify one path given its entry on each side (either may be absent)."""
    if a is None and b is None:
        raise ValueError("classify_pair needs at least one entry")
    path = path or (a or b).path

    if a is None:
        return PathComparison(
            path=path,
            classification=Classification.ONLY_IN_B,
            b_length=len(b.ids),
            b_count=b.entry_count,
        )
    if b is None:
        return PathComparison(
            path=path,
            classification=Classification.ONLY_IN_A,
            a_length=len(a.ids),
            a_count=a.entry_count,
        )

    common = dict(
        path=path,
        a_length=len(a.ids),
        b_length=len(b.ids),
        a_count=a.entry_count,
        b_count=b.entry_count,
    )

    index = find_divergence(a.ids, b.ids)
    if index is not None:
        return PathComparison(
            classification=Classification.DIVERGED, divergence_index=index, **common
        )
    if len(a.ids) == len(b.ids):
        return PathComparison(classification=Classification.IDENTICAL, **common)

    delta = abs(len(a.ids) - len(b.ids))
    if len(a.ids) > len(b.ids):
        return PathComparison(
            classification=Classification.A_AHEAD, delta=delta, ahead_source=source_a, **common
        )
    return PathComparison(
        classification=Classification.B_AHEAD, delta=delta, ahead_source=source_b, **common
    )


def compare_manifests(
    manifest_a: Manifest,
    manifest_b: Manifest,
    issues: Optional[List[ParseIssue]] = None,
) -> ComparisonResult:
    """
    Join two manifests and classify every path.

    Pure and deterministic: paths are visited in lexicographic order and
    neither manifest is modified.

    :param manifest_a: Manifest for source A.
    :type manifest_a: Manifest
    :param manifest_b: Manifest for source B.
    :type manifest_b: Manifest
    :param issues: Non-fatal parse issues to carry on the result.
    :type issues: Optional[List[ParseIssue]]
    :return: Counts, per-path classifications and diverged details.
    :rtype: ComparisonResult
    """
    all_paths = sorted(set(manifest_a.entries) | set(manifest_b.entries))

    comparisons: List[PathComparison] = []
    diverged: List[DivergenceDetail] = []
    tally: Counter = Counter()

    for path in all_paths:
        a = manifest_a.get(path)
        b = manifest_b.get(path)
        comparison = classify_pair(
            a, b, path=path, source_a=manifest_a.source, source_b=manifest_b.source
        )
        comparisons.append(comparison)
        tally[comparison.classification] += 1

        if comparison.classification is Classification.DIVERGED:
            diverged.append(
                DivergenceDetail(
                    path=path,
                    divergence_index=comparison.divergence_index,
                    a_ids=a.ids,
                    b_ids=b.ids,
                    a_count=a.entry_count,
                    b_count=b.entry_count,
                )
            )

    counts = CategoryCounts(**{c.value: tally[c] for c in Classification})
    logger.info(
        f"Compared {len(all_paths)} paths: {counts.shared_total} shared, {counts.diverged} diverged",
        extra=counts.model_dump(),
    )

    return ComparisonResult(
        source_a=manifest_a.source,
        source_b=manifest_b.source,
        a_size=len(manifest_a),
        b_size=len(manifest_b),
        counts=counts,
        comparisons=comparisons,
        diverged=diverged,
        issues=list(issues or []),
    )
