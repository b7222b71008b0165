"""
differences
===========

The diff tree produced by :class:`schemadiff.engine.DifferenceEngine`.

Every node records where its entity exists through a :class:`Presence`
value. Nodes that exist on one side only never carry attribute or child
data. All ``is_different`` / ``has_*`` predicates are computed from the
current map contents on every access.

Maps keep insertion order: matched and database-1-only entries in database
1's order, then database-2-only entries in database 2's order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .normalizer import definitions_differ


class Presence(Enum):
    """Where a compared entity exists."""

    BOTH = "both"
    ONLY_IN_1 = "only_in_1"
    ONLY_IN_2 = "only_in_2"

    @property
    def exists_in_database1(self) -> bool:
        return self is not Presence.ONLY_IN_2

    @property
    def exists_in_database2(self) -> bool:
        return self is not Presence.ONLY_IN_1

    @property
    def exists_in_both(self) -> bool:
        return self is Presence.BOTH


@dataclass
class Difference:
    """Base node: presence only. Also used as-is for permissions."""

    presence: Presence

    @property
    def exists_in_database1(self) -> bool:
        return self.presence.exists_in_database1

    @property
    def exists_in_database2(self) -> bool:
        return self.presence.exists_in_database2

    @property
    def exists_in_both(self) -> bool:
        return self.presence.exists_in_both

    @property
    def is_different(self) -> bool:
        return not self.exists_in_both


PermissionDifference = Difference


@dataclass
class ExtendedPropertyDifference(Difference):
    value1: Optional[str] = None
    value2: Optional[str] = None

    @property
    def is_different(self) -> bool:
        return not self.exists_in_both or self.value1 != self.value2


def _any_different(items: Iterable[Difference]) -> bool:
    return any(item.is_different for item in items)


@dataclass
class TableSubItemDifference(Difference):
    """A column, index, relation or trigger of a table present in both databases."""

    differences: List[str] = field(default_factory=list)
    item_type: Optional[str] = None
    extended_properties: Dict[str, ExtendedPropertyDifference] = field(default_factory=dict)

    @property
    def has_extended_property_differences(self) -> bool:
        return _any_different(self.extended_properties.values())

    @property
    def is_different(self) -> bool:
        return (
            not self.exists_in_both
            or len(self.differences) > 0
            or self.has_extended_property_differences
        )


@dataclass
class TableDifference(Difference):
    columns: Dict[str, TableSubItemDifference] = field(default_factory=dict)
    indexes: Dict[str, TableSubItemDifference] = field(default_factory=dict)
    relations: Dict[str, TableSubItemDifference] = field(default_factory=dict)
    triggers: Dict[str, TableSubItemDifference] = field(default_factory=dict)
    extended_properties: Dict[str, ExtendedPropertyDifference] = field(default_factory=dict)
    permissions: Dict[str, PermissionDifference] = field(default_factory=dict)

    @property
    def has_column_differences(self) -> bool:
        return _any_different(self.columns.values())

    @property
    def has_index_differences(self) -> bool:
        return _any_different(self.indexes.values())

    @property
    def has_relation_differences(self) -> bool:
        return _any_different(self.relations.values())

    @property
    def has_trigger_differences(self) -> bool:
        return _any_different(self.triggers.values())

    @property
    def has_extended_property_differences(self) -> bool:
        return _any_different(self.extended_properties.values())

    @property
    def has_permission_differences(self) -> bool:
        return _any_different(self.permissions.values())

    @property
    def is_different(self) -> bool:
        return (
            not self.exists_in_both
            or self.has_column_differences
            or self.has_relation_differences
            or self.has_index_differences
            or self.has_trigger_differences
            or self.has_extended_property_differences
            or self.has_permission_differences
        )


@dataclass
class DatabaseObjectDifference(Difference):
    """A view, function, stored procedure or synonym."""

    definition1: Optional[str] = None
    definition2: Optional[str] = None
    extended_properties: Dict[str, ExtendedPropertyDifference] = field(default_factory=dict)
    permissions: Dict[str, PermissionDifference] = field(default_factory=dict)

    @property
    def definitions_are_different(self) -> bool:
        if not self.exists_in_both:
            return False
        return definitions_differ(self.definition1, self.definition2)

    @property
    def has_extended_property_differences(self) -> bool:
        return _any_different(self.extended_properties.values())

    @property
    def has_permission_differences(self) -> bool:
        return _any_different(self.permissions.values())

    @property
    def is_different(self) -> bool:
        return (
            not self.exists_in_both
            or self.definitions_are_different
            or self.has_extended_property_differences
            or self.has_permission_differences
        )


@dataclass
class Differences:
    """Root of the diff tree."""

    database1: str
    database2: str
    extended_properties: Dict[str, ExtendedPropertyDifference] = field(default_factory=dict)
    tables: Dict[str, TableDifference] = field(default_factory=dict)
    views: Dict[str, DatabaseObjectDifference] = field(default_factory=dict)
    functions: Dict[str, DatabaseObjectDifference] = field(default_factory=dict)
    stored_procedures: Dict[str, DatabaseObjectDifference] = field(default_factory=dict)
    synonyms: Dict[str, DatabaseObjectDifference] = field(default_factory=dict)

    def categories(self) -> Dict[str, Dict[str, Difference]]:
        """Top-level maps in report order."""
        return {
            "extended_properties": self.extended_properties,
            "tables": self.tables,
            "views": self.views,
            "functions": self.functions,
            "stored_procedures": self.stored_procedures,
            "synonyms": self.synonyms,
        }

    @property
    def has_differences(self) -> bool:
        return any(_any_different(items.values()) for items in self.categories().values())

    def __str__(self) -> str:
        from .reporting import render_differences

        return render_differences(self)
