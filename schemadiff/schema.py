"""
schema
======

Typed snapshot structures consumed by the comparison engine.

A :class:`DatabaseSnapshot` is the complete extracted schema model of one
database at one point in time. The engine only ever reads these structures;
turning live connections or exported files into them is the job of a loader
(see :mod:`schemadiff.snapshot`).

Optional attributes (lengths, precisions, collation, ...) are ``None`` when
the source did not report a value, which keeps "absent" distinguishable from
"present and equal".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional


class PropertyObjectType(Enum):
    """Kind of object an extended property is attached to."""

    DATABASE = "DATABASE"
    ROUTINE = "ROUTINE"
    ROUTINE_COLUMN = "ROUTINE_COLUMN"
    TABLE = "TABLE"
    TABLE_COLUMN = "TABLE_COLUMN"
    INDEX = "INDEX"


class PermissionObjectType(Enum):
    """Kind of object a permission is granted on."""

    DATABASE = "DATABASE"
    STORED_PROCEDURE = "STORED_PROCEDURE"
    FUNCTION = "FUNCTION"
    SYNONYM = "SYNONYM"
    TABLE = "TABLE"
    VIEW = "VIEW"


@dataclass
class Column:
    name: str
    ordinal_position: int = 0
    data_type: str = ""
    is_nullable: bool = True
    column_default: Optional[str] = None
    character_maximum_length: Optional[int] = None
    numeric_precision: Optional[int] = None
    numeric_precision_radix: Optional[int] = None
    numeric_scale: Optional[int] = None
    datetime_precision: Optional[int] = None
    character_set_name: Optional[str] = None
    collation_name: Optional[str] = None
    is_full_text_indexed: bool = False
    is_computed: bool = False
    is_identity: bool = False
    identity_seed: Optional[Decimal] = None
    identity_increment: Optional[Decimal] = None
    is_sparse: bool = False
    is_column_set: bool = False


@dataclass
class Index:
    """A table index or key constraint.

    ``columns`` and ``included_columns`` map column name to ``True`` for
    ascending order and ``False`` for descending, in key order.
    """

    name: str
    table_name: str = ""
    is_primary_key: bool = False
    clustered: bool = False
    unique: bool = False
    is_unique_key: bool = False
    filegroup: Optional[str] = None
    columns: Dict[str, bool] = field(default_factory=dict)
    included_columns: Dict[str, bool] = field(default_factory=dict)

    @property
    def full_id(self) -> str:
        return f"[{self.table_name}].[{self.name}]"

    @property
    def item_type(self) -> str:
        """Label used when reporting this index: primary key, unique key or index."""
        if self.is_primary_key:
            return "Primary key"
        return "Unique key" if self.is_unique_key else "Index"


@dataclass
class Relation:
    """A foreign key; column lists are already-concatenated strings."""

    name: str
    child_table: str = ""
    child_columns: str = ""
    unique_constraint_name: str = ""
    parent_table: str = ""
    parent_columns: str = ""
    update_rule: str = ""
    delete_rule: str = ""


@dataclass
class Trigger:
    name: str
    table_name: str = ""
    owner: str = ""
    filegroup: Optional[str] = None
    is_update: bool = False
    is_delete: bool = False
    is_insert: bool = False
    is_after: bool = False
    is_instead_of: bool = False
    is_disabled: bool = False
    definition: str = ""


@dataclass
class Table:
    columns: List[Column] = field(default_factory=list)
    indexes: List[Index] = field(default_factory=list)
    relations: List[Relation] = field(default_factory=list)
    triggers: List[Trigger] = field(default_factory=list)

    def column_has_unique_index(self, column_name: str) -> bool:
        """Return True if a unique index covers exactly this one column."""
        for index in self.indexes:
            if index.unique and len(index.columns) == 1 and column_name in index.columns:
                return True
        return False


@dataclass
class Routine:
    """A user-defined function or stored procedure.

    ``routine_type`` is the discriminator reported by the database
    (``FUNCTION`` or ``PROCEDURE``); only a case-insensitive ``function``
    makes the routine a function.
    """

    routine_type: str = ""
    definition: str = ""

    @property
    def is_function(self) -> bool:
        return (self.routine_type or "").lower() == "function"


@dataclass
class ExtendedProperty:
    object_type: PropertyObjectType
    property_name: str
    property_value: Optional[str] = None
    object_name: Optional[str] = None
    table_name: Optional[str] = None
    column_name: Optional[str] = None
    index_name: Optional[str] = None

    @property
    def owner(self) -> Optional[str]:
        """Name of the table or routine the property belongs to."""
        return self.object_name or self.table_name

    @property
    def full_id(self) -> str:
        """Identity of the property across databases."""
        kind = self.object_type.value
        if self.object_type is PropertyObjectType.INDEX:
            return f"[{self.table_name}].[{self.index_name}].[{self.property_name}].[{kind}]"
        if self.object_type is PropertyObjectType.DATABASE or not self.owner:
            return self.property_name
        if not self.column_name:
            return f"[{self.owner}].[{self.property_name}].[{kind}]"
        return f"[{self.owner}].[{self.property_name}].[{self.column_name}].[{kind}]"


@dataclass
class Permission:
    object_type: PermissionObjectType
    permission_type: str
    permission_state: str = "GRANT"
    role_name: Optional[str] = None
    user_name: Optional[str] = None
    object_name: Optional[str] = None
    column_name: Optional[str] = None
    source_type: Optional[str] = None

    @property
    def full_id(self) -> str:
        """Identity of the grant across databases.

        Uses the raw ``sys.objects`` type when known, so a scalar function
        that became table-valued is a different grant.
        """
        principal = f"[{self.role_name}].[]" if self.role_name else f"[].[{self.user_name or ''}]"
        return (
            f"{principal}.[{self.permission_type}].[{self.permission_state}]"
            f".[{self.source_type or self.object_type.value}].[{self.object_name or ''}].[{self.column_name or ''}]"
        )

    def describe(self) -> str:
        """Human-readable description; used as the key of permission differences."""
        denied = "" if self.permission_state == "GRANT" else "DENIED "
        kind = "role" if self.role_name else "user"
        principal = self.role_name or self.user_name or ""
        if self.permission_type == "REFERENCES":
            return f"REFERENCES column: [{self.column_name or ''}] {denied}for {kind}: [{principal}]"
        return f"[{self.permission_type}] {denied}for {kind}: [{principal}]"


@dataclass
class DatabaseSnapshot:
    """Schema model of one database.

    ``tables``, ``views`` (name -> definition), ``synonyms``
    (name -> base object) and ``routines`` are ordered mappings; their
    iteration order decides the order of the report.
    """

    name: str
    tables: Dict[str, Table] = field(default_factory=dict)
    views: Dict[str, str] = field(default_factory=dict)
    synonyms: Dict[str, str] = field(default_factory=dict)
    routines: Dict[str, Routine] = field(default_factory=dict)
    extended_properties: List[ExtendedProperty] = field(default_factory=list)
    permissions: List[Permission] = field(default_factory=list)

    @property
    def identity(self) -> str:
        """Case-insensitive identity used to detect a self-compare."""
        return self.name.strip().lower()
