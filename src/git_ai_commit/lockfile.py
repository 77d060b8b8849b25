"""Lock-file detection and ``git diff --numstat`` parsing.

Lock files regenerate wholesale and can dwarf the rest of a diff, so large
ones are summarised instead of being sent to the engine.
"""

from __future__ import annotations

import dataclasses
import posixpath

LOCK_FILE_NAMES = frozenset({"go.sum"})
LOCK_FILE_SUFFIXES = (".lock", "-lock.json", "-lock.yaml")

# Lock-file diffs at least this large are summarised.
SUMMARY_THRESHOLD = 150 * 1024


@dataclasses.dataclass(frozen=True)
class FileStat:
    filename: str
    added: int = 0
    deleted: int = 0
    binary: bool = False


def is_lock_file(filename: str) -> bool:
    base = posixpath.basename(filename)
    if base in LOCK_FILE_NAMES:
        return True
    return base.lower().endswith(LOCK_FILE_SUFFIXES)


def parse_numstat(output: str) -> list[FileStat]:
    """Parse ``added<TAB>deleted<TAB>path`` lines; binary files show ``-``."""
    stats = []
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        parts = line.split("\t")
        if len(parts) != 3:
            continue
        added, deleted, name = parts
        if added == "-" and deleted == "-":
            stats.append(FileStat(name, binary=True))
            continue
        stats.append(FileStat(name, _to_int(added), _to_int(deleted)))
    return stats


def _to_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return 0


def summary(stat: FileStat, size: int) -> str:
    return (
        f"diff --git a/{stat.filename} b/{stat.filename}\n"
        f"[Lock file: +{stat.added} -{stat.deleted} lines, {size} bytes, content omitted]\n\n"
    )
