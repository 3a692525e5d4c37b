# verisync/core/parser.py
"""
Manifest parser: raw fetched text -> Manifest.

Each non-blank line has the form ``path|count|id1,id2,...,idN,``. The line
is split on its first two ``|`` characters; the id list is split on ``,``
with trailing empty tokens (from a trailing separator) dropped.

Malformed lines are skipped and reported as ParseIssue entries. When a
path appears more than once the last occurrence wins.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from verisync.schemas.manifest import Manifest, ManifestEntry, ParseIssue, ParseOutcome
from verisync.utils.logger import setup_logger

logger = setup_logger(__name__)

FIELD_SEPARATOR = "|"
ID_SEPARATOR = ","


def split_ids(field: str) -> Tuple[str, ...]:
    ids = field.split(ID_SEPARATOR)
    while ids and ids[-1] == "":
        ids.pop()
    return tuple(ids)


def _parse_line(line: str) -> Tuple[ManifestEntry | None, str | None]:
    parts = line.split(FIELD_SEPARATOR, 2)
    if len(parts) != 3:
        return None, f"expected 3 '|'-separated fields, got {len(parts)}"

    path, count_field, ids_field = parts
    if not path:
        return None, "empty path"
    try:
        entry_count = int(count_field.strip())
    except ValueError:
        return None, f"non-numeric entry count {count_field!r}"
    if entry_count < 0:
        return None, f"negative entry count {entry_count}"

    return ManifestEntry(path=path, entry_count=entry_count, ids=split_ids(ids_field)), None


def parse_manifest(text: str, source: str) -> ParseOutcome:
    """Parse the raw manifest text fetched from `source`.

    :param text: Raw manifest text, one entry per line.
    :type text: str
    :param source: Label of the source, recorded on the manifest and on issues.
    :type source: str
    :return: The manifest plus any skipped-line issues and duplicate paths.
    :rtype: ParseOutcome
    """
    entries: Dict[str, ManifestEntry] = {}
    issues: List[ParseIssue] = []
    duplicates: List[str] = []

    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.rstrip("\r\n")
        if not line.strip():
            continue

        entry, reason = _parse_line(line)
        if entry is None:
            logger.warning(f"Skipping malformed manifest line {line_number} from {source}: {reason}")
            issues.append(
                ParseIssue(source=source, line_number=line_number, reason=reason, raw=line)
            )
            continue

        if entry.path in entries:
            logger.debug(f"Duplicate path in {source} manifest, keeping last: {entry.path}")
            duplicates.append(entry.path)
        entries[entry.path] = entry

    logger.info(
        f"Parsed {len(entries)} sessions from {source}",
        extra={"source": source, "sessions": len(entries), "skipped": len(issues)},
    )
    return ParseOutcome(
        manifest=Manifest(source=source, entries=entries),
        issues=issues,
        duplicate_paths=duplicates,
    )
