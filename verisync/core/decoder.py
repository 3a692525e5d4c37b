# verisync/core/decoder.py
"""
Record decoder: extracts the identifier from a single session log line.

Session logs are JSON Lines files. Each line carries an identifier field
(``uuid`` by default). Lines that are not JSON objects, or whose field is
missing or not a string, contribute no identifier but still count as an
entry.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional, Tuple


def decode_record_id(line: str, id_field: str = "uuid") -> Optional[str]:
    try:
        value = json.loads(line)
    except json.JSONDecodeError:
        return None
    if not isinstance(value, dict):
        return None
    ident = value.get(id_field)
    return ident if isinstance(ident, str) else None


def scan_log_file(path: Path, id_field: str = "uuid") -> Tuple[int, List[str]]:
    """Return (non-blank line count, ordered identifiers) for one log file."""
    entry_count = 0
    ids: List[str] = []
    with path.open("r", encoding="utf-8", errors="replace") as f:
        for line in f:
            if not line.strip():
                continue
            entry_count += 1
            ident = decode_record_id(line, id_field)
            if ident is not None:
                ids.append(ident)
    return entry_count, ids
