"""
reporting
=========

Plain-text rendering of a :class:`~schemadiff.differences.Differences` tree.

The output is a deterministic, depth-first walk of the tree: identical trees
always render to identical text. Every ``render_*`` helper returns its text
without a trailing newline; only :func:`render_differences` terminates lines.

Primary API
-----------
- :func:`render_differences`
- :func:`write_report`

Example output::

    Schema comparison result

    Database 1: [localhost].[Northwind1]
    Database 2: [localhost].[Northwind2]


    TABLE DIFFERENCES

    Table: [Orders]
         [Status] - is allowed null in database 1 and is not allowed null in database 2
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple

from .differences import (
    DatabaseObjectDifference,
    Difference,
    Differences,
    ExtendedPropertyDifference,
    TableDifference,
    TableSubItemDifference,
)
from .utils import write_text

TAB = " " * 5

NO_DIFFERENCES = "NO DIFFERENCES HAVE BEEN FOUND"


def _join(head: str, detail: str) -> str:
    """Append *detail* to *head*, separated by a space unless it opens a new line."""
    if detail.startswith("\n"):
        return head + detail
    return f"{head} {detail}"


def _value(value: object) -> str:
    return "" if value is None else str(value)


def render_existence(diff: Difference) -> str:
    """Return the sentinel for a node that exists on one side only."""
    if diff.exists_in_both:
        return ""
    return f"does not exist in database {2 if diff.exists_in_database1 else 1}"


def render_attribute_list(items: Sequence[str]) -> str:
    """Render attribute differences: one inline item or an indented block."""
    if not items:
        return ""
    if len(items) == 1:
        return f"- {items[0]}"
    return "".join(f"\n{TAB} - {item}" for item in items)


def render_extended_property(diff: ExtendedPropertyDifference) -> str:
    if not diff.is_different:
        return ""
    if not diff.exists_in_both:
        return render_existence(diff)
    return f"value is different; [{_value(diff.value1)}] in database 1, [{_value(diff.value2)}] in database 2"


def _property_lines(properties: Dict[str, ExtendedPropertyDifference], indent: str) -> List[str]:
    return [
        f"\n{indent}Extended property: [{name}] - {render_extended_property(diff)}"
        for name, diff in properties.items()
        if diff.is_different
    ]


def _permission_lines(permissions: Dict[str, Difference], indent: str) -> List[str]:
    return [
        f"\n{indent}Permission: [{name}] {render_existence(diff)}"
        for name, diff in permissions.items()
        if diff.is_different
    ]


def render_sub_item(diff: TableSubItemDifference) -> str:
    """Render a column, index, relation or trigger node."""
    if not diff.is_different:
        return ""
    if not diff.exists_in_both:
        return render_existence(diff)
    parts = [render_attribute_list(diff.differences)]
    parts.extend(_property_lines(diff.extended_properties, TAB + TAB))
    return "".join(parts)


def _sub_item_lines(items: Dict[str, TableSubItemDifference], prefix: Callable[[TableSubItemDifference], str]) -> List[str]:
    return [
        _join(f"\n{TAB}{prefix(diff)}[{name}]", render_sub_item(diff))
        for name, diff in items.items()
        if diff.is_different
    ]


def render_table(diff: TableDifference) -> str:
    """Render a table node; children appear as columns, triggers, indexes, relations, properties, permissions."""
    if not diff.is_different:
        return ""
    if not diff.exists_in_both:
        return render_existence(diff)

    lines: List[str] = []
    lines.extend(_sub_item_lines(diff.columns, lambda _: ""))
    lines.extend(_sub_item_lines(diff.triggers, lambda _: "Trigger: "))
    lines.extend(_sub_item_lines(diff.indexes, lambda node: f"{node.item_type or 'Index'}: "))
    lines.extend(_sub_item_lines(diff.relations, lambda _: "Relation: "))
    lines.extend(_property_lines(diff.extended_properties, TAB))
    lines.extend(_permission_lines(diff.permissions, TAB))
    return "".join(lines)


def render_database_object(diff: DatabaseObjectDifference) -> str:
    """Render a view, function, stored procedure or synonym node."""
    if not diff.is_different:
        return ""
    if not diff.exists_in_both:
        return render_existence(diff)

    lines: List[str] = []
    if diff.definitions_are_different:
        lines.append(f"\n{TAB}Definitions are different")
    lines.extend(_property_lines(diff.extended_properties, TAB))
    lines.extend(_permission_lines(diff.permissions, TAB))
    return "".join(lines)


def _render_top_property(diff: ExtendedPropertyDifference) -> str:
    return f"- {render_extended_property(diff)}"


# (category attribute, section title, entity kind, node renderer)
SECTIONS: Tuple[Tuple[str, str, str, Callable], ...] = (
    ("extended_properties", "EXTENDED PROPERTY", "Extended property", _render_top_property),
    ("tables", "TABLE", "Table", render_table),
    ("views", "VIEW", "View", render_database_object),
    ("functions", "FUNCTION", "Function", render_database_object),
    ("stored_procedures", "STORED PROCEDURE", "Stored procedure", render_database_object),
    ("synonyms", "SYNONYM", "Synonym", render_database_object),
)


def render_differences(differences: Differences) -> str:
    """Render the whole report.

    Parameters
    ----------
    differences:
        Diff tree produced by the engine.

    Returns
    -------
    str
        The report text, ``\\n``-terminated. Sections are emitted only for
        categories with at least one differing entity.
    """
    out: List[str] = [
        "Schema comparison result\n\n",
        f"Database 1: {differences.database1}\n",
        f"Database 2: {differences.database2}\n\n",
    ]

    if not differences.has_differences:
        out.append(NO_DIFFERENCES + "\n")
        return "".join(out)

    for attr, title, kind, render in SECTIONS:
        items = getattr(differences, attr)
        lines = [
            _join(f"{kind}: [{name}]", render(diff)) + "\n"
            for name, diff in items.items()
            if diff.is_different
        ]
        if lines:
            out.append(f"\n{title} DIFFERENCES\n\n")
            out.extend(lines)

    return "".join(out)


def write_report(path: Path, differences: Differences) -> Path:
    """Render *differences* and write them to *path* as UTF-8."""
    write_text(path, render_differences(differences))
    return path
