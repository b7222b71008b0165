"""
utils
=====

Small, shared helpers: qualified-name parsing, table filtering and text I/O.

Nothing here depends on the rest of the package, so it is safe to import
from anywhere.
"""

from __future__ import annotations

import fnmatch
import re
from pathlib import Path
from typing import List, Sequence

_NAME_PART_RE = re.compile(r"\[([^\]]*)\]|([^.\[\]]+)")


def _name_parts(qualified_name: str) -> List[str]:
    return [bracketed or plain for bracketed, plain in _NAME_PART_RE.findall(qualified_name or "")]


def get_schema_name(qualified_name: str) -> str:
    """Return the schema part of a two-part name.

    >>> get_schema_name("[dbo].[Table1]")
    'dbo'
    >>> get_schema_name("Table1")
    ''
    """
    parts = _name_parts(qualified_name)
    return parts[-2] if len(parts) >= 2 else ""


def get_object_name(qualified_name: str) -> str:
    """Return the object part of a two-part name.

    >>> get_object_name("[dbo].[Table1]")
    'Table1'
    >>> get_object_name("Table1")
    'Table1'
    """
    parts = _name_parts(qualified_name)
    return parts[-1] if parts else ""


# -----------------------------
# Table filtering (include/exclude patterns)
# -----------------------------
def sql_like_to_fnmatch(pattern: str) -> str:
    """Convert SQL LIKE pattern (% and _) to fnmatch (* and ?)."""
    return pattern.replace("%", "*").replace("_", "?")


def matches_pattern(name: str, pattern: str, case_sensitive: bool = False) -> bool:
    """Return True if *name* matches *pattern*.

    Pattern rules:
    - If pattern starts with ``re:``, treat the rest as a regex (searched).
    - Else treat as SQL LIKE (supports % and _) matched against the whole name.
    """
    if pattern.startswith("re:"):
        flags = 0 if case_sensitive else re.IGNORECASE
        return re.search(pattern[3:], name, flags) is not None
    fm = sql_like_to_fnmatch(pattern)
    if case_sensitive:
        return fnmatch.fnmatchcase(name, fm)
    return fnmatch.fnmatchcase(name.lower(), fm.lower())


def filter_tables(
    tables: Sequence[str],
    include: Sequence[str],
    exclude: Sequence[str],
    case_sensitive: bool = False,
) -> List[str]:
    """Filter table keys based on include/exclude patterns.

    Patterns are matched against the bare object name, so ``Order%`` keeps
    ``[dbo].[Orders]``.

    Args:
        tables: Table keys, in snapshot order.
        include: Keep only tables matching any include pattern (if non-empty).
        exclude: Drop tables matching any exclude pattern.

    Returns:
        Filtered list, original order preserved.
    """
    result = []
    for table in tables:
        name = get_object_name(table)
        if include and not any(matches_pattern(name, p, case_sensitive) for p in include):
            continue
        if any(matches_pattern(name, p, case_sensitive) for p in exclude):
            continue
        result.append(table)
    return result


# -----------------------------
# Text I/O
# -----------------------------
def read_text(path: Path) -> str:
    """Read UTF-8 text from *path*; an empty string if the file does not exist."""
    if not path.exists():
        return ""
    return path.read_text(encoding="utf-8", errors="replace")


def write_text(path: Path, content: str) -> None:
    """Write UTF-8 text to *path* with normalized newlines, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    content = content.replace("\r\n", "\n").replace("\r", "\n")
    path.write_text(content, encoding="utf-8")
