# verisync/core/reporter.py
"""
Renders a ComparisonResult for humans (plain text) or machines (JSON).

Pure formatting: every decision has already been made by the classifier.
"""

from __future__ import annotations

import json
from typing import List

from verisync.schemas.comparison import ComparisonResult, DivergenceDetail

DEFAULT_DETAIL_LIMIT = 3
DEFAULT_PREVIEW_COUNT = 5


def _summary_lines(result: ComparisonResult) -> List[str]:
    a, b = result.source_a, result.source_b
    c = result.counts
    rows = [
        ("Identical", c.identical),
        (f"{a} ahead", c.a_ahead),
        (f"{b} ahead", c.b_ahead),
        ("Diverged", c.diverged),
        (f"{a} only", c.only_in_a),
        (f"{b} only", c.only_in_b),
    ]
    width = max(len(label) for label, _ in rows) + 1
    lines = ["Results:"]
    lines += [f"  {(label + ':').ljust(width)} {value}" for label, value in rows]
    return lines


def verdict(result: ComparisonResult) -> str:
    c = result.counts
    if c.shared_total == 0:
        return "0 shared sessions: nothing to compare between the two sources"
    if c.in_sync:
        return f"All {c.shared_total} shared sessions are in sync (one is prefix of other)"
    return f"{c.diverged} of {c.shared_total} shared sessions have diverged histories!"


def _detail_block(detail: DivergenceDetail, result: ComparisonResult, preview_count: int) -> List[str]:
    a, b = result.source_a, result.source_b
    at_a, at_b = detail.ids_at_divergence()
    lines = [
        "",
        f"Session: {detail.path}",
        f"  {a} entries: {detail.a_count} ({len(detail.a_ids)} ids), "
        f"{b} entries: {detail.b_count} ({len(detail.b_ids)} ids)",
        f"  Divergence at entry {detail.divergence_index} (0-indexed)",
        f"  {a} id at divergence: {at_a}",
        f"  {b} id at divergence: {at_b}",
    ]
    last_common = detail.last_common_id()
    if last_common is not None:
        lines.append(f"  Last common id: {last_common}")
    lines.append(f"  {a} ids (first {preview_count}): {' '.join(detail.a_preview(preview_count))}")
    lines.append(f"  {b} ids (first {preview_count}): {' '.join(detail.b_preview(preview_count))}")
    return lines


def render_report(
    result: ComparisonResult,
    detail_limit: int = DEFAULT_DETAIL_LIMIT,
    preview_count: int = DEFAULT_PREVIEW_COUNT,
) -> str:
    """Render the full text report.

    :param result: The comparison to render.
    :type result: ComparisonResult
    :param detail_limit: Maximum number of diverged sessions shown in detail.
    :type detail_limit: int
    :param preview_count: Number of leading ids shown per side in each detail block.
    :type preview_count: int
    :return: The report, newline-separated, without a trailing newline.
    :rtype: str
    """
    lines = [
        "=== Session Sync Verification ===",
        f"{result.source_a}: {result.a_size} sessions",
        f"{result.source_b}: {result.b_size} sessions",
        "",
    ]
    lines += _summary_lines(result)
    lines += ["", verdict(result)]

    for source in (result.source_a, result.source_b):
        skipped = len(result.issues_for(source))
        if skipped:
            lines.append(f"Note: skipped {skipped} malformed manifest line(s) from {source}")

    mismatched = result.count_mismatches()
    if mismatched:
        lines.append(
            f"Note: {len(mismatched)} session(s) declare an entry count that differs "
            "from their id count (counts are informational only)"
        )

    shown = result.diverged[: max(detail_limit, 0)]
    if shown:
        lines += ["", f"=== Diverged Session Details (first {len(shown)}) ==="]
        for detail in shown:
            lines += _detail_block(detail, result, preview_count)
        remaining = len(result.diverged) - len(shown)
        if remaining > 0:
            lines += ["", f"... and {remaining} more diverged sessions"]

    return "\n".join(lines)


def render_json(result: ComparisonResult) -> str:
    payload = result.model_dump(mode="json")
    payload["shared_total"] = result.counts.shared_total
    payload["in_sync"] = result.counts.in_sync
    payload["count_mismatches"] = result.count_mismatches()
    return json.dumps(payload, indent=2, ensure_ascii=False)
