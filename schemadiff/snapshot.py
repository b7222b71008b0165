"""
snapshot
========

Load :class:`~schemadiff.schema.DatabaseSnapshot` objects from YAML or JSON
files.

Snapshot files are exports of a database's schema metadata. The loader maps
their loosely-typed values onto the typed snapshot structures so the engine
never sees raw rows.

Example ``northwind1.yml``::

    connection_string: "Data Source=localhost;Initial Catalog=Northwind1;Integrated Security=True"
    tables:
      Orders:
        columns:
          - {name: OrderID, data_type: int, is_nullable: false, is_identity: true,
             identity_seed: 1, identity_increment: 1}
          - {name: Status, data_type: varchar, character_maximum_length: 20}
        indexes:
          - name: PK_Orders
            columns: "OrderID"
            description: "clustered, unique, primary key located on PRIMARY"
          - name: IX_Orders_Status
            columns: "Status(-)"
    views:
      vOpenOrders: "SELECT * FROM dbo.Orders WHERE Status = 'open'"
    synonyms:
      Ord: "[dbo].[Orders]"
    routines:
      GetOrder: {routine_type: PROCEDURE, definition: "CREATE PROCEDURE GetOrder ..."}
    extended_properties:
      - {property_name: MS_Description, property_value: "Order status", table_name: Orders, column_name: Status}
    permissions:
      - {object_type: USER_TABLE, object_name: Orders, permission_type: SELECT, role_name: reporting}

Index columns may be a comma-separated string (``(-)`` marks descending), a
list of names, or a ``name -> ascending`` mapping.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import fields, replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .config import TableFilter
from .errors import SnapshotFormatError
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
from .utils import filter_tables, read_text

logger = logging.getLogger(__name__)

PERMISSION_OBJECT_TYPES: Dict[str, PermissionObjectType] = {
    "SQL_STORED_PROCEDURE": PermissionObjectType.STORED_PROCEDURE,
    "USER_TABLE": PermissionObjectType.TABLE,
    "SYNONYM": PermissionObjectType.SYNONYM,
    "VIEW": PermissionObjectType.VIEW,
    "SQL_SCALAR_FUNCTION": PermissionObjectType.FUNCTION,
    "SQL_TABLE_VALUED_FUNCTION": PermissionObjectType.FUNCTION,
    "SQL_INLINE_TABLE_VALUED_FUNCTION": PermissionObjectType.FUNCTION,
}

_SERVER_KEYS = ("data source", "server", "address", "addr", "network address")
_DATABASE_KEYS = ("initial catalog", "database")

_FILEGROUP_RE = re.compile(r"located on\s+(.*)$")

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off", ""}


# ---- scalar coercion ----
def _to_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise SnapshotFormatError(f"{field_name}: expected a boolean, got {value!r}")


def _to_int(value: Any, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise SnapshotFormatError(f"{field_name}: expected an integer, got {value!r}") from e


def _to_decimal(value: Any, field_name: str) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise SnapshotFormatError(f"{field_name}: expected a number, got {value!r}") from e


def _to_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _coerce(cls: type, raw: Mapping[str, Any], where: str) -> Dict[str, Any]:
    """Pick the dataclass fields of *cls* from *raw*, converting by declared type."""
    if not isinstance(raw, Mapping):
        raise SnapshotFormatError(f"{where}: expected a mapping, got {type(raw).__name__}")

    known = {f.name: f for f in fields(cls)}
    unknown = sorted(set(raw) - set(known))
    if unknown:
        logger.debug("%s: ignoring unknown keys %s", where, ", ".join(map(str, unknown)))

    out: Dict[str, Any] = {}
    for name, f in known.items():
        if name not in raw:
            continue
        value = raw[name]
        label = f"{where}.{name}"
        kind = str(f.type)
        if kind == "bool":
            out[name] = _to_bool(value, label)
        elif kind in ("int", "Optional[int]"):
            converted = _to_int(value, label)
            out[name] = converted if converted is not None or kind != "int" else 0
        elif kind == "Optional[Decimal]":
            out[name] = _to_decimal(value, label)
        elif kind in ("str", "Optional[str]"):
            converted = _to_str(value)
            out[name] = converted if converted is not None or kind != "str" else ""
        else:
            out[name] = value
    return out


# ---- naming ----
def parse_connection_string(connection_string: str) -> Dict[str, str]:
    """Split ``key=value;key=value`` into a dict with lower-cased keys."""
    out: Dict[str, str] = {}
    for part in (connection_string or "").split(";"):
        if "=" not in part:
            continue
        key, _, value = part.partition("=")
        out[key.strip().lower()] = value.strip()
    return out


def friendly_name(connection_string: str) -> str:
    """Return ``[server].[database]`` for a SQL Server style connection string.

    >>> friendly_name("Data Source=localhost;Initial Catalog=Northwind1;Integrated Security=True")
    '[localhost].[Northwind1]'
    """
    parts = parse_connection_string(connection_string)
    server = next((parts[k] for k in _SERVER_KEYS if k in parts), "")
    database = next((parts[k] for k in _DATABASE_KEYS if k in parts), "")
    return f"[{server}].[{database}]"


# ---- entities ----
def _require_name(values: Mapping[str, Any], where: str) -> None:
    if not values.get("name"):
        raise SnapshotFormatError(f"{where}: entry has no name")


def parse_index_columns(value: Any, where: str = "index") -> Dict[str, bool]:
    """Return an ordered ``column -> ascending`` mapping.

    Accepts ``"a, b(-)"``, ``["a", "b(-)"]`` or ``{"a": true, "b": false}``.
    """
    if value is None or value == "":
        return {}
    if isinstance(value, Mapping):
        return {str(k): _to_bool(v, f"{where}.{k}") for k, v in value.items()}
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list):
        raise SnapshotFormatError(f"{where}: unsupported column list {value!r}")

    out: Dict[str, bool] = {}
    for item in value:
        name = str(item)
        descending = "(-)" in name
        out.setdefault(name.replace("(-)", "").strip(), not descending)
    return out


def parse_index_description(description: str) -> Dict[str, Any]:
    """Derive index flags from an ``sp_helpindex`` style description.

    >>> parse_index_description("nonclustered, unique, unique key located on PRIMARY")["is_unique_key"]
    True
    """
    text = description or ""
    match = _FILEGROUP_RE.search(text)
    return {
        "is_primary_key": "primary key" in text,
        "clustered": "nonclustered" not in text,
        "unique": "unique" in text,
        "is_unique_key": "unique key" in text,
        "filegroup": match.group(1).strip() if match else None,
    }


def _load_index(raw: Mapping[str, Any], table_name: str, where: str) -> Index:
    raw = dict(raw)
    columns = parse_index_columns(raw.pop("columns", None), f"{where}.columns")
    included = parse_index_columns(raw.pop("included_columns", None), f"{where}.included_columns")
    values: Dict[str, Any] = {}
    if "description" in raw:
        values.update(parse_index_description(str(raw.pop("description"))))
    values.update(_coerce(Index, raw, where))
    _require_name(values, where)
    values.setdefault("table_name", table_name)
    return Index(columns=columns, included_columns=included, **values)


def _load_list(raw: Any, where: str) -> List[Any]:
    if raw is None:
        return []
    if isinstance(raw, Mapping):
        # name -> attributes
        return [dict(attrs or {}, name=name) for name, attrs in raw.items()]
    if not isinstance(raw, list):
        raise SnapshotFormatError(f"{where}: expected a list or mapping")
    return raw


def _load_table(name: str, raw: Mapping[str, Any]) -> Table:
    where = f"tables.{name}"
    if raw is None:
        return Table()
    if not isinstance(raw, Mapping):
        raise SnapshotFormatError(f"{where}: expected a mapping")

    columns = []
    for position, item in enumerate(_load_list(raw.get("columns"), f"{where}.columns"), start=1):
        values = _coerce(Column, item, f"{where}.columns")
        _require_name(values, f"{where}.columns #{position}")
        values.setdefault("ordinal_position", position)
        columns.append(Column(**values))

    indexes = [
        _load_index(item, name, f"{where}.indexes")
        for item in _load_list(raw.get("indexes"), f"{where}.indexes")
    ]

    relations = []
    for item in _load_list(raw.get("relations"), f"{where}.relations"):
        values = _coerce(Relation, item, f"{where}.relations")
        _require_name(values, f"{where}.relations")
        values.setdefault("child_table", name)
        relations.append(Relation(**values))

    triggers = []
    for item in _load_list(raw.get("triggers"), f"{where}.triggers"):
        values = _coerce(Trigger, item, f"{where}.triggers")
        _require_name(values, f"{where}.triggers")
        values.setdefault("table_name", name)
        triggers.append(Trigger(**values))

    return Table(columns=columns, indexes=indexes, relations=relations, triggers=triggers)


def property_object_type(raw: Mapping[str, Any]) -> PropertyObjectType:
    """Derive the owner kind of an extended property from its raw fields."""
    explicit = raw.get("object_type")
    if explicit:
        try:
            return PropertyObjectType(str(explicit).upper())
        except ValueError as e:
            raise SnapshotFormatError(f"extended_properties: unknown object_type {explicit!r}") from e

    property_type = str(raw.get("property_type") or "").upper()
    if property_type == "INDEX":
        return PropertyObjectType.INDEX
    if raw.get("table_name"):
        return PropertyObjectType.TABLE_COLUMN if raw.get("column_name") else PropertyObjectType.TABLE
    if property_type != "DATABASE" and raw.get("object_name"):
        return PropertyObjectType.ROUTINE_COLUMN if raw.get("column_name") else PropertyObjectType.ROUTINE
    return PropertyObjectType.DATABASE


def _load_extended_property(raw: Mapping[str, Any]) -> ExtendedProperty:
    values = _coerce(ExtendedProperty, raw, "extended_properties")
    if not values.get("property_name"):
        raise SnapshotFormatError("extended_properties: property_name is required")
    values["object_type"] = property_object_type(raw)
    return ExtendedProperty(**values)


def permission_object_type(raw_type: Optional[str]) -> PermissionObjectType:
    """Map a ``sys.objects`` type description to :class:`PermissionObjectType`."""
    value = str(raw_type or "").upper()
    if value in PERMISSION_OBJECT_TYPES:
        return PERMISSION_OBJECT_TYPES[value]
    try:
        return PermissionObjectType(value)
    except ValueError:
        return PermissionObjectType.DATABASE


def _load_permission(raw: Mapping[str, Any]) -> Permission:
    values = _coerce(Permission, raw, "permissions")
    if not values.get("permission_type"):
        raise SnapshotFormatError("permissions: permission_type is required")
    values["object_type"] = permission_object_type(raw.get("object_type"))
    values["source_type"] = str(raw["object_type"]).upper() if raw.get("object_type") else None
    values["permission_type"] = values["permission_type"].upper()
    values["permission_state"] = (values.get("permission_state") or "GRANT").upper()
    return Permission(**values)


def _load_routine(name: str, raw: Any) -> Routine:
    if not isinstance(raw, Mapping):
        raise SnapshotFormatError(f"routines.{name}: expected a mapping with routine_type and definition")
    return Routine(**_coerce(Routine, raw, f"routines.{name}"))


def _keyed(raw: Any, where: str) -> Dict[str, Any]:
    """Accept ``name -> value`` mappings or lists of ``{name: ...}`` entries."""
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return {str(k): v for k, v in raw.items()}
    if isinstance(raw, list):
        out: Dict[str, Any] = {}
        for item in raw:
            if not isinstance(item, Mapping) or "name" not in item:
                raise SnapshotFormatError(f"{where}: list entries need a name")
            rest = {k: v for k, v in item.items() if k != "name"}
            out.setdefault(str(item["name"]), rest)
        return out
    raise SnapshotFormatError(f"{where}: expected a list or mapping")


def _definitions(raw: Any, where: str, value_key: str) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for name, value in _keyed(raw, where).items():
        if isinstance(value, Mapping):
            value = value.get(value_key, "")
        out[name] = "" if value is None else str(value)
    return out


def snapshot_from_dict(data: Mapping[str, Any], name: Optional[str] = None) -> DatabaseSnapshot:
    """Build a :class:`DatabaseSnapshot` from parsed snapshot data.

    Parameters
    ----------
    data:
        Parsed YAML/JSON document.
    name:
        Display name override; otherwise ``name`` or the friendly name of
        ``connection_string`` is used.

    Raises
    ------
    SnapshotFormatError
        If the document is malformed or has no usable name.
    """
    if not isinstance(data, Mapping):
        raise SnapshotFormatError("snapshot root must be a mapping")

    display = name or data.get("name")
    if not display and data.get("connection_string"):
        display = friendly_name(str(data["connection_string"]))
    if not display:
        raise SnapshotFormatError("snapshot needs a name or a connection_string")

    tables = {
        table_name: _load_table(table_name, raw)
        for table_name, raw in _keyed(data.get("tables"), "tables").items()
    }
    routines = {
        routine_name: _load_routine(routine_name, raw)
        for routine_name, raw in _keyed(data.get("routines"), "routines").items()
    }
    extended_properties = [
        _load_extended_property(raw) for raw in _load_list(data.get("extended_properties"), "extended_properties")
    ]
    permissions = [_load_permission(raw) for raw in _load_list(data.get("permissions"), "permissions")]

    return DatabaseSnapshot(
        name=str(display),
        tables=tables,
        views=_definitions(data.get("views"), "views", "definition"),
        synonyms=_definitions(data.get("synonyms"), "synonyms", "base_object_name"),
        routines=routines,
        extended_properties=extended_properties,
        permissions=permissions,
    )


def load_snapshot(path: Path, name: Optional[str] = None) -> DatabaseSnapshot:
    """Read a YAML (``.yml``/``.yaml``) or JSON (``.json``) snapshot file.

    Raises
    ------
    SnapshotFormatError
        If the file is missing, unparsable or malformed.
    """
    if not path.exists():
        raise SnapshotFormatError(f"snapshot not found: {path}")

    text = read_text(path)
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SnapshotFormatError(f"cannot parse snapshot {path}: {e}") from e

    try:
        snapshot = snapshot_from_dict(data or {}, name=name)
    except SnapshotFormatError as e:
        raise SnapshotFormatError(f"{path}: {e}") from e

    logger.info(
        "Loaded %s from %s: %d table(s), %d view(s), %d routine(s), %d synonym(s)",
        snapshot.name,
        path,
        len(snapshot.tables),
        len(snapshot.views),
        len(snapshot.routines),
        len(snapshot.synonyms),
    )
    return snapshot


def apply_table_filter(snapshot: DatabaseSnapshot, table_filter: TableFilter) -> DatabaseSnapshot:
    """Return a copy of *snapshot* keeping only tables selected by *table_filter*."""
    if not table_filter.include and not table_filter.exclude:
        return snapshot
    kept = filter_tables(
        list(snapshot.tables),
        table_filter.include,
        table_filter.exclude,
        case_sensitive=table_filter.case_sensitive,
    )
    logger.debug("Table filter kept %d of %d table(s) in %s", len(kept), len(snapshot.tables), snapshot.name)
    return replace(snapshot, tables={name: snapshot.tables[name] for name in kept})
