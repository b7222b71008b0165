"""
engine
======

Builds the :class:`~schemadiff.differences.Differences` tree for two
snapshots.

The engine is constructed per run from one :class:`ComparisonOptions` value
and never touches a database: both snapshots are fully populated, read-only
inputs. Categories run in a fixed order (database properties, tables,
synonyms, views and routines) and only when their option is enabled.

Typical use::

    differences = DifferenceEngine(ComparisonOptions()).build(snapshot1, snapshot2)
    print(render_differences(differences))
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from .comparators import (
    DESCRIPTION_PROPERTY,
    column_differences,
    compare_extended_properties,
    compare_permissions,
    description_differences,
    index_differences,
    relation_differences,
    trigger_differences,
)
from .config import ComparisonOptions
from .differences import DatabaseObjectDifference, Differences, TableDifference, TableSubItemDifference
from .errors import ConfigurationError, MissingInputError
from .matcher import key_by, match, match_grouped
from .schema import (
    Column,
    DatabaseSnapshot,
    ExtendedProperty,
    Index,
    Permission,
    PermissionObjectType,
    PropertyObjectType,
    Relation,
    Routine,
    Table,
    Trigger,
)

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]

FUNCTIONS = "functions"
STORED_PROCEDURES = "stored_procedures"


class DifferenceEngine:
    """Compare two snapshots according to a set of options.

    Parameters
    ----------
    options:
        Category switches; defaults to :class:`ComparisonOptions` defaults.
    on_status:
        Optional callback receiving progress messages (they are also logged
        at INFO level).
    """

    def __init__(self, options: Optional[ComparisonOptions] = None, on_status: Optional[StatusCallback] = None):
        self.options = options or ComparisonOptions()
        self.on_status = on_status
        self.database1: Optional[DatabaseSnapshot] = None
        self.database2: Optional[DatabaseSnapshot] = None

    # -------------------------
    # entry point
    # -------------------------

    def build(self, database1: Optional[DatabaseSnapshot], database2: Optional[DatabaseSnapshot]) -> Differences:
        """Validate both snapshots and return their differences.

        Raises
        ------
        MissingInputError
            If either snapshot is ``None``.
        ConfigurationError
            If both snapshots identify the same database.
        """
        if database1 is None or database2 is None:
            missing = "database 1" if database1 is None else "database 2"
            raise MissingInputError(f"snapshot for {missing} is missing")

        if database1.identity == database2.identity:
            raise ConfigurationError(f"both snapshots refer to the same database: {database1.name}")

        self.database1 = database1
        self.database2 = database2

        differences = Differences(database1=database1.name, database2=database2.name)
        self._status("Inspecting differences")

        if self.options.properties:
            differences.extended_properties = compare_extended_properties(
                _database_properties(database1),
                _database_properties(database2),
            )

        self._status("Inspecting tables")
        differences.tables = match(database1.tables, database2.tables, TableDifference, self._compare_table)

        if self.options.synonyms:
            self._status("Inspecting synonyms")
            differences.synonyms = match(
                database1.synonyms,
                database2.synonyms,
                DatabaseObjectDifference,
                self._object_comparer(PermissionObjectType.SYNONYM),
            )

        if self.options.objects:
            self._status("Inspecting views")
            differences.views = match(
                database1.views,
                database2.views,
                DatabaseObjectDifference,
                self._object_comparer(PermissionObjectType.VIEW),
            )

            self._status("Inspecting routines")
            routines = match_grouped(
                database1.routines,
                database2.routines,
                lambda routine: FUNCTIONS if routine.is_function else STORED_PROCEDURES,
                DatabaseObjectDifference,
                self._compare_routine,
            )
            differences.functions = routines.get(FUNCTIONS, {})
            differences.stored_procedures = routines.get(STORED_PROCEDURES, {})

        logger.debug(
            "Compared %d table(s), %d view(s), %d function(s), %d stored procedure(s), %d synonym(s)",
            len(differences.tables),
            len(differences.views),
            len(differences.functions),
            len(differences.stored_procedures),
            len(differences.synonyms),
        )
        return differences

    def _status(self, message: str) -> None:
        logger.info(message)
        if self.on_status is not None:
            self.on_status(message)

    # -------------------------
    # tables
    # -------------------------

    def _compare_table(self, name: str, diff: TableDifference, table1: Table, table2: Table) -> None:
        if self.options.columns:
            diff.columns = match(
                key_by(table1.columns, lambda c: c.name),
                key_by(table2.columns, lambda c: c.name),
                TableSubItemDifference,
                lambda key, node, c1, c2: self._compare_column(name, table1, table2, node, c1, c2),
            )

        if self.options.indexes:
            diff.indexes = self._compare_indexes(name, table1, table2)

        if self.options.relations:
            diff.relations = match(
                key_by(table1.relations, lambda r: r.name),
                key_by(table2.relations, lambda r: r.name),
                TableSubItemDifference,
                _compare_relation,
            )

        if self.options.permissions:
            diff.permissions = compare_permissions(
                _permissions(self.database1, PermissionObjectType.TABLE, name),
                _permissions(self.database2, PermissionObjectType.TABLE, name),
            )

        if self.options.properties:
            diff.extended_properties = compare_extended_properties(
                _table_properties(self.database1, name),
                _table_properties(self.database2, name),
            )

        if self.options.triggers:
            diff.triggers = match(
                key_by(table1.triggers, lambda t: t.name),
                key_by(table2.triggers, lambda t: t.name),
                TableSubItemDifference,
                _compare_trigger,
            )

    def _compare_column(
        self,
        table_name: str,
        table1: Table,
        table2: Table,
        diff: TableSubItemDifference,
        column1: Column,
        column2: Column,
    ) -> None:
        diff.differences.extend(column_differences(column1, column2, table1, table2, self.options.ordinal_positions))

        if self.options.properties:
            props1 = _column_properties(self.database1, table_name, column1.name)
            props2 = _column_properties(self.database2, table_name, column2.name)
            diff.differences.extend(description_differences(props1, props2))
            diff.extended_properties = compare_extended_properties(
                [p for p in props1 if p.property_name != DESCRIPTION_PROPERTY],
                [p for p in props2 if p.property_name != DESCRIPTION_PROPERTY],
            )

    def _compare_indexes(self, table_name: str, table1: Table, table2: Table) -> Dict[str, TableSubItemDifference]:
        indexes1 = key_by(table1.indexes, lambda i: i.name)
        indexes2 = key_by(table2.indexes, lambda i: i.name)

        def compare_index(name: str, diff: TableSubItemDifference, index1: Index, index2: Index) -> None:
            diff.differences.extend(index_differences(index1, index2))
            if self.options.properties:
                diff.extended_properties = compare_extended_properties(
                    _index_properties(self.database1, table_name, name),
                    _index_properties(self.database2, table_name, name),
                )

        nodes = match(indexes1, indexes2, TableSubItemDifference, compare_index)
        for name, node in nodes.items():
            index = indexes1[name] if node.exists_in_database1 else indexes2[name]
            node.item_type = index.item_type
        return nodes

    # -------------------------
    # views, routines, synonyms
    # -------------------------

    def _object_comparer(
        self, object_type: PermissionObjectType
    ) -> Callable[[str, DatabaseObjectDifference, str, str], None]:
        """Comparer for objects stored as ``name -> definition`` (views, synonyms)."""

        def compare(name: str, diff: DatabaseObjectDifference, definition1: str, definition2: str) -> None:
            diff.definition1 = definition1
            diff.definition2 = definition2
            self._compare_object_metadata(name, diff, object_type)

        return compare

    def _compare_routine(self, name: str, diff: DatabaseObjectDifference, routine1: Routine, routine2: Routine) -> None:
        diff.definition1 = routine1.definition
        diff.definition2 = routine2.definition
        object_type = PermissionObjectType.FUNCTION if routine1.is_function else PermissionObjectType.STORED_PROCEDURE
        self._compare_object_metadata(name, diff, object_type)

    def _compare_object_metadata(
        self, name: str, diff: DatabaseObjectDifference, object_type: PermissionObjectType
    ) -> None:
        if self.options.properties:
            diff.extended_properties = compare_extended_properties(
                _routine_properties(self.database1, name),
                _routine_properties(self.database2, name),
            )

        if self.options.permissions:
            diff.permissions = compare_permissions(
                _permissions(self.database1, object_type, name),
                _permissions(self.database2, object_type, name),
            )


def _compare_relation(name: str, diff: TableSubItemDifference, relation1: Relation, relation2: Relation) -> None:
    diff.differences.extend(relation_differences(relation1, relation2))


def _compare_trigger(name: str, diff: TableSubItemDifference, trigger1: Trigger, trigger2: Trigger) -> None:
    diff.differences.extend(trigger_differences(trigger1, trigger2))


# ---- property / permission scopes ----
def _database_properties(database: DatabaseSnapshot) -> List[ExtendedProperty]:
    return [p for p in database.extended_properties if p.object_type is PropertyObjectType.DATABASE]


def _table_properties(database: DatabaseSnapshot, table_name: str) -> List[ExtendedProperty]:
    return [
        p
        for p in database.extended_properties
        if p.object_type is PropertyObjectType.TABLE and p.owner == table_name
    ]


def _column_properties(database: DatabaseSnapshot, table_name: str, column_name: str) -> List[ExtendedProperty]:
    return [
        p
        for p in database.extended_properties
        if p.object_type is PropertyObjectType.TABLE_COLUMN and p.owner == table_name and p.column_name == column_name
    ]


def _index_properties(database: DatabaseSnapshot, table_name: str, index_name: str) -> List[ExtendedProperty]:
    return [
        p
        for p in database.extended_properties
        if p.object_type is PropertyObjectType.INDEX and p.table_name == table_name and p.index_name == index_name
    ]


def _routine_properties(database: DatabaseSnapshot, name: str) -> List[ExtendedProperty]:
    return [
        p
        for p in database.extended_properties
        if p.object_type is PropertyObjectType.ROUTINE and p.object_name == name
    ]


def _permissions(database: DatabaseSnapshot, object_type: PermissionObjectType, name: str) -> List[Permission]:
    return [p for p in database.permissions if p.object_type is object_type and p.object_name == name]


def compare(
    database1: Optional[DatabaseSnapshot],
    database2: Optional[DatabaseSnapshot],
    options: Optional[ComparisonOptions] = None,
) -> Differences:
    """Shortcut for ``DifferenceEngine(options).build(database1, database2)``."""
    return DifferenceEngine(options).build(database1, database2)
