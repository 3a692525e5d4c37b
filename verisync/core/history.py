# verisync/core/history.py
"""
History index verification.

Each host keeps a history.jsonl index with one JSON object per prompt.
Two indexes are in sync when they contain the same (sessionId, timestamp)
pairs; ordering and duplicate lines are irrelevant.
"""

from __future__ import annotations

import json
from typing import Dict, List, Tuple

from verisync.schemas.history import HistoryComparison, HistoryEntry
from verisync.utils.logger import setup_logger

logger = setup_logger(__name__)

DISPLAY_WIDTH = 50


def parse_history(text: str, source: str) -> List[HistoryEntry]:
    """Parse history.jsonl text, ignoring unreadable lines and lines without a sessionId."""
    entries: List[HistoryEntry] = []
    skipped = 0
    for line in text.splitlines():
        if not line.strip():
            continue
        try:
            value = json.loads(line)
        except json.JSONDecodeError:
            skipped += 1
            continue
        if not isinstance(value, dict):
            skipped += 1
            continue

        session_id = value.get("sessionId")
        if not isinstance(session_id, str) or not session_id:
            continue
        timestamp = value.get("timestamp")
        entries.append(
            HistoryEntry(
                session_id=session_id,
                timestamp=timestamp if isinstance(timestamp, int) else 0,
                display=str(value.get("display") or ""),
                project=str(value.get("project") or ""),
            )
        )

    if skipped:
        logger.warning(f"Skipped {skipped} unreadable history line(s) from {source}")
    return entries


def compare_histories(
    entries_a: List[HistoryEntry],
    entries_b: List[HistoryEntry],
    source_a: str,
    source_b: str,
) -> HistoryComparison:
    map_a: Dict[Tuple[str, int], HistoryEntry] = {e.key: e for e in entries_a}
    map_b: Dict[Tuple[str, int], HistoryEntry] = {e.key: e for e in entries_b}

    shared = map_a.keys() & map_b.keys()
    return HistoryComparison(
        source_a=source_a,
        source_b=source_b,
        a_total=len(entries_a),
        b_total=len(entries_b),
        shared=len(shared),
        only_in_a=[map_a[k] for k in sorted(map_a.keys() - map_b.keys())],
        only_in_b=[map_b[k] for k in sorted(map_b.keys() - map_a.keys())],
    )


def _entry_line(entry: HistoryEntry) -> str:
    return f"  {entry.session_id[:8]} | {entry.timestamp} | {entry.display[:DISPLAY_WIDTH]}"


def render_history_report(comparison: HistoryComparison, limit: int = 10) -> str:
    a, b = comparison.source_a, comparison.source_b
    lines = [
        "=== History Index Verification ===",
        f"{a}: {comparison.a_total} entries",
        f"{b}: {comparison.b_total} entries",
        "",
        "Results:",
        f"  Identical: {comparison.shared}",
        f"  {a} only: {len(comparison.only_in_a)}",
        f"  {b} only: {len(comparison.only_in_b)}",
        "",
    ]

    if comparison.in_sync:
        lines.append(f"All {comparison.shared} entries are identical between both hosts")
        return "\n".join(lines)

    lines.append(
        f"{len(comparison.only_in_a) + len(comparison.only_in_b)} entries differ between hosts"
    )
    for name, only in ((a, comparison.only_in_a), (b, comparison.only_in_b)):
        if not only:
            continue
        lines += ["", f"=== Entries only in {name} (first {min(limit, len(only))}) ==="]
        lines += [_entry_line(e) for e in only[:limit]]
        if len(only) > limit:
            lines.append(f"  ... and {len(only) - limit} more")

    lines += [
        "",
        "=== Session Summary ===",
        f"  Sessions only in {a}: {len(comparison.sessions_only_in_a())}",
        f"  Sessions only in {b}: {len(comparison.sessions_only_in_b())}",
    ]
    return "\n".join(lines)
