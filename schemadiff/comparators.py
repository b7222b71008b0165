"""
comparators
===========

Field-by-field comparison rules for entities present in both databases.

Each ``*_differences`` function returns the human-readable delta lines for
one pair of entities, in a fixed field order. Optional values (lengths,
precisions, collation, character set) are compared only when both sides
report one; a value present on one side only is not a difference.

The property and permission helpers build keyed diff maps for the extended
properties or grants attached to one object.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

from .differences import Difference, ExtendedPropertyDifference, PermissionDifference
from .matcher import key_by, match
from .normalizer import definitions_differ
from .schema import Column, ExtendedProperty, Index, Permission, Relation, Table, Trigger

DESCRIPTION_PROPERTY = "MS_Description"


def _text(value: object) -> str:
    return "" if value is None else str(value)


def _is(flag: bool) -> str:
    return "is" if flag else "is not"


def _both(value1: object, value2: object) -> bool:
    return value1 is not None and value2 is not None


# ---- columns ----
def column_differences(
    column1: Column,
    column2: Column,
    table1: Table,
    table2: Table,
    compare_ordinal: bool = False,
) -> List[str]:
    """Return the attribute differences between two columns of the same table.

    *table1* and *table2* are the owning tables; they decide whether the
    column takes part in a single-column unique index on each side.
    """
    out: List[str] = []
    c1, c2 = column1, column2

    if compare_ordinal and c1.ordinal_position != c2.ordinal_position:
        out.append(
            f"ordinal position is different - is [{c1.ordinal_position}] in database 1 "
            f"and is [{c2.ordinal_position}] in database 2"
        )

    if c1.data_type != c2.data_type:
        out.append(
            f"data type is different - Database 1 has type of {c1.data_type.upper()} "
            f"and database 2 has type of {c2.data_type.upper()}"
        )

    if _both(c1.character_maximum_length, c2.character_maximum_length) and (
        c1.character_maximum_length != c2.character_maximum_length
    ):
        out.append(
            f"max length is different - Database 1 has max length of [{c1.character_maximum_length:,}] "
            f"and database 2 has max length of [{c2.character_maximum_length:,}]"
        )

    if c1.is_nullable != c2.is_nullable:
        out.append(
            f"is {'' if c1.is_nullable else 'not '}allowed null in database 1 "
            f"and is {'' if c2.is_nullable else 'not '}allowed null in database 2"
        )

    for label, attr in (
        ("numeric precision", "numeric_precision"),
        ("numeric precision radix", "numeric_precision_radix"),
        ("numeric scale", "numeric_scale"),
        ("datetime precision", "datetime_precision"),
    ):
        v1, v2 = getattr(c1, attr), getattr(c2, attr)
        if _both(v1, v2) and v1 != v2:
            out.append(f"{label} is different - is [{v1}] in database 1 and is [{v2}] in database 2")

    if c1.column_default != c2.column_default:
        out.append(
            f"default value is different - is {_text(c1.column_default)} in database 1 "
            f"and is {_text(c2.column_default)} in database 2"
        )

    for label, attr in (("collation", "collation_name"), ("character set", "character_set_name")):
        v1, v2 = getattr(c1, attr), getattr(c2, attr)
        if _both(v1, v2) and v1 != v2:
            out.append(f"{label} is different - is [{v1}] in database 1 and is [{v2}] in database 2")

    unique1 = table1.column_has_unique_index(c1.name)
    unique2 = table2.column_has_unique_index(c2.name)
    if unique1 != unique2:
        out.append(
            f"{'has' if unique1 else 'does not have'} a unique constraint in database 1 "
            f"and {'has' if unique2 else 'does not have'} a unique constraint in database 2"
        )

    if c1.is_full_text_indexed != c2.is_full_text_indexed:
        out.append(
            f"{_is(c1.is_full_text_indexed)} full-text indexed in database 1 "
            f"and {_is(c2.is_full_text_indexed)} full-text indexed in database 2"
        )

    if c1.is_computed != c2.is_computed:
        out.append(f"{_is(c1.is_computed)} computed in database 1 and {_is(c2.is_computed)} computed in database 2")

    if c1.is_identity != c2.is_identity:
        out.append(
            f"{_is(c1.is_identity)} an identity column in database 1 "
            f"and {_is(c2.is_identity)} an identity column in database 2"
        )

    if c1.is_identity and c2.is_identity:
        if _both(c1.identity_seed, c2.identity_seed) and c1.identity_seed != c2.identity_seed:
            out.append(
                f"identity seed is different - is [{_text(c1.identity_seed)}] in database 1 "
                f"and is [{_text(c2.identity_seed)}] in database 2"
            )
        if _both(c1.identity_increment, c2.identity_increment) and c1.identity_increment != c2.identity_increment:
            out.append(
                f"identity increment is different - is [{_text(c1.identity_increment)}] in database 1 "
                f"and is [{_text(c2.identity_increment)}] in database 2"
            )

    if c1.is_sparse != c2.is_sparse:
        out.append(f"{_is(c1.is_sparse)} sparse in database 1 and {_is(c2.is_sparse)} sparse in database 2")

    if c1.is_column_set != c2.is_column_set:
        out.append(
            f"{_is(c1.is_column_set)} a column-set in database 1 and {_is(c2.is_column_set)} a column-set in database 2"
        )

    return out


def description_differences(
    properties1: Sequence[ExtendedProperty],
    properties2: Sequence[ExtendedProperty],
) -> List[str]:
    """Report the ``MS_Description`` property of a column as attribute lines."""
    desc1 = next((p for p in properties1 if p.property_name == DESCRIPTION_PROPERTY), None)
    desc2 = next((p for p in properties2 if p.property_name == DESCRIPTION_PROPERTY), None)

    if desc1 is not None and desc2 is None:
        return ["description exists in database 1 and does not exist in database 2"]
    if desc1 is None and desc2 is not None:
        return ["description exists in database 2 and does not exist in database 1"]
    if desc1 is not None and desc2 is not None and desc1.property_value != desc2.property_value:
        return [
            f"description is different - is [{_text(desc1.property_value)}] in database 1 "
            f"and is [{_text(desc2.property_value)}] in database 2"
        ]
    return []


# ---- indexes ----
def _direction(ascending: bool) -> str:
    return "ascending" if ascending else "descending"


def key_column_differences(
    columns1: Dict[str, bool],
    columns2: Dict[str, bool],
    label: str = "column",
) -> List[str]:
    """Symmetric key difference of two ordered ``column -> ascending`` maps.

    Walks database 1's columns (direction mismatch, or missing from database
    2), then database 2's columns missing from database 1.
    """
    out: List[str] = []
    noun = "ordering" if label == "column" else f"{label} ordering"

    for column, ascending1 in columns1.items():
        if column in columns2:
            ascending2 = columns2[column]
            if ascending1 != ascending2:
                out.append(
                    f"[{column}] {noun} is different - {_direction(ascending1)} on database 1 "
                    f"and {_direction(ascending2)} on database 2"
                )
        else:
            out.append(f"[{column}] {label} does not exist in database 2 index")

    for column in columns2:
        if column not in columns1:
            out.append(f"[{column}] {label} does not exist in database 1 index")

    return out


def index_differences(index1: Index, index2: Index) -> List[str]:
    """Return the attribute differences between two indexes with the same identity."""
    out: List[str] = []

    if index1.clustered != index2.clustered:
        out.append(
            f"clustering is different - {_is(index1.clustered)} clustered in database 1 "
            f"and {_is(index2.clustered)} clustered in database 2"
        )

    if index1.unique != index2.unique:
        out.append(
            f"uniqueness is different - {_is(index1.unique)} unique in database 1 "
            f"and {_is(index2.unique)} unique in database 2"
        )

    if index1.is_unique_key != index2.is_unique_key:
        kind1 = "unique key" if index1.is_unique_key else "index"
        kind2 = "unique key" if index2.is_unique_key else "index"
        out.append(f"type is different - {kind1} in database 1 and {kind2} in database 2")

    if index1.is_primary_key != index2.is_primary_key:
        out.append(
            f"primary is different - {_is(index1.is_primary_key)} a primary key in database 1 "
            f"and {_is(index2.is_primary_key)} a primary key in database 2"
        )

    if index1.filegroup != index2.filegroup:
        out.append(
            f"filegroup is different - [{_text(index1.filegroup)}] in database 1 "
            f"and [{_text(index2.filegroup)}] in database 2"
        )

    if list(index1.columns.items()) != list(index2.columns.items()):
        out.extend(key_column_differences(index1.columns, index2.columns))

    if list(index1.included_columns.items()) != list(index2.included_columns.items()):
        out.extend(key_column_differences(index1.included_columns, index2.included_columns, '"included column"'))

    return out


# ---- relations ----
def relation_differences(relation1: Relation, relation2: Relation) -> List[str]:
    """Compare two foreign keys field by field on their concatenated column lists."""
    out: List[str] = []
    for label, attr in (
        ("child column list", "child_columns"),
        ("parent column list", "parent_columns"),
        ("update rule", "update_rule"),
        ("delete rule", "delete_rule"),
    ):
        v1, v2 = getattr(relation1, attr), getattr(relation2, attr)
        if v1 != v2:
            out.append(f'{label} is different - is "{_text(v1)}" in database 1 and is "{_text(v2)}" in database 2')
    return out


# ---- triggers ----
TRIGGER_FLAGS = (
    ("update", "is_update"),
    ("delete", "is_delete"),
    ("insert", "is_insert"),
    ("after", "is_after"),
    ("instead-of", "is_instead_of"),
    ("disabled", "is_disabled"),
)


def trigger_differences(trigger1: Trigger, trigger2: Trigger) -> List[str]:
    out: List[str] = []

    if trigger1.filegroup != trigger2.filegroup:
        out.append(
            f"filegroup is different - is {_text(trigger1.filegroup)} in database 1 "
            f"and is {_text(trigger2.filegroup)} in database 2"
        )

    if trigger1.owner != trigger2.owner:
        out.append(f"owner is different - is {trigger1.owner} in database 1 and is {trigger2.owner} in database 2")

    for label, attr in TRIGGER_FLAGS:
        v1, v2 = getattr(trigger1, attr), getattr(trigger2, attr)
        if v1 != v2:
            out.append(
                f"{label} is different - is {'' if v1 else 'not '}{label} in database 1 "
                f"and is {'' if v2 else 'not '}{label} in database 2"
            )

    if definitions_differ(trigger1.definition, trigger2.definition):
        out.append("definitions are different")

    return out


# ---- extended properties & permissions ----
def _fill_property_values(
    full_id: str,
    node: ExtendedPropertyDifference,
    property1: ExtendedProperty,
    property2: ExtendedProperty,
) -> None:
    node.value1 = property1.property_value
    node.value2 = property2.property_value


def compare_extended_properties(
    properties1: Iterable[ExtendedProperty],
    properties2: Iterable[ExtendedProperty],
) -> Dict[str, ExtendedPropertyDifference]:
    """Match the properties of one object by identity; key the result by property name."""
    by_id1 = key_by(properties1, lambda p: p.full_id)
    by_id2 = key_by(properties2, lambda p: p.full_id)
    nodes = match(by_id1, by_id2, lambda presence: ExtendedPropertyDifference(presence), _fill_property_values)

    out: Dict[str, ExtendedPropertyDifference] = {}
    for full_id, node in nodes.items():
        prop = by_id1.get(full_id) or by_id2[full_id]
        out.setdefault(prop.property_name, node)
    return out


def compare_permissions(
    permissions1: Iterable[Permission],
    permissions2: Iterable[Permission],
) -> Dict[str, PermissionDifference]:
    """Match grants on one object by identity; key the result by their description."""
    by_id1 = key_by(permissions1, lambda p: p.full_id)
    by_id2 = key_by(permissions2, lambda p: p.full_id)
    nodes = match(by_id1, by_id2, Difference)

    out: Dict[str, PermissionDifference] = {}
    for full_id, node in nodes.items():
        permission = by_id1.get(full_id) or by_id2[full_id]
        out.setdefault(permission.describe(), node)
    return out
