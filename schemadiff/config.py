"""
config
======

Comparison options and YAML configuration loading.

Example ``config.yml``::

    out: report.txt
    options:
      columns: true
      indexes: true
      relations: true
      objects: true
      triggers: true
      permissions: true
      properties: true
      synonyms: true
      ordinal_positions: false

    table_filter:
      include: ["Order%"]
      exclude: ["re:^tmp"]
      case_sensitive: false

    left:
      snapshot: snapshots/northwind1.yml
      name: "[localhost].[Northwind1]"

    right:
      snapshot: snapshots/northwind2.yml

Side settings (``left``/``right``) are resolved with this precedence:

1. environment variable ``SCHEMADIFF_<SIDE>_<FIELD>``
2. CLI flag ``--<side>-<field>``
3. config file value
"""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

ENV_PREFIX = "SCHEMADIFF"
SIDES = ("left", "right")


@dataclass(frozen=True)
class ComparisonOptions:
    """Boolean switches controlling which categories are compared.

    A disabled category is neither computed nor rendered.
    """

    columns: bool = True
    indexes: bool = True
    relations: bool = True
    objects: bool = True
    triggers: bool = True
    permissions: bool = True
    properties: bool = True
    synonyms: bool = True
    ordinal_positions: bool = False


@dataclass(frozen=True)
class TableFilter:
    """Include/exclude patterns for table selection."""

    include: List[str]
    exclude: List[str]
    case_sensitive: bool = False


@dataclass(frozen=True)
class SideConfig:
    """Where to load one side's snapshot from, and how to label it."""

    snapshot: Path
    name: Optional[str]
    label: str


def load_config(path: Path) -> Dict[str, Any]:
    """Load a YAML config file.

    Raises
    ------
    SystemExit
        If the file does not exist.
    """
    if not path.exists():
        raise SystemExit(f"ERROR: config not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def deep_get(d: Mapping[str, Any], keys: List[str], default: Any = None) -> Any:
    """Safely get a nested dict value with default."""
    cur: Any = d
    for k in keys:
        if not isinstance(cur, dict) or k not in cur:
            return default
        cur = cur[k]
    return cur


def get_env_var(side: str, field: str) -> Optional[str]:
    """Return ``SCHEMADIFF_<SIDE>_<FIELD>`` if set and non-empty."""
    value = os.environ.get(f"{ENV_PREFIX}_{side.upper()}_{field.upper()}")
    return value or None


def read_options(cfg: Mapping[str, Any], args: argparse.Namespace) -> ComparisonOptions:
    """Build :class:`ComparisonOptions` from config, then apply CLI flags.

    ``--no-<option>`` flags switch a category off; ``--ordinal-positions``
    switches ordinal position checks on.
    """
    values: Dict[str, bool] = {}
    for f in fields(ComparisonOptions):
        values[f.name] = bool(deep_get(cfg, ["options", f.name], f.default))
        if getattr(args, f"no_{f.name}", False):
            values[f.name] = False

    if getattr(args, "ordinal_positions", False):
        values["ordinal_positions"] = True

    return ComparisonOptions(**values)


def read_table_filter(cfg: Mapping[str, Any], args: argparse.Namespace) -> TableFilter:
    """Combine config patterns with CLI ``--include``/``--exclude`` patterns."""
    include = list(deep_get(cfg, ["table_filter", "include"], []) or [])
    exclude = list(deep_get(cfg, ["table_filter", "exclude"], []) or [])
    include.extend(getattr(args, "include", None) or [])
    exclude.extend(getattr(args, "exclude", None) or [])
    case_sensitive = bool(deep_get(cfg, ["table_filter", "case_sensitive"], False))
    return TableFilter(include=include, exclude=exclude, case_sensitive=case_sensitive)


def _side_value(cfg: Mapping[str, Any], side: str, field: str, overrides: Mapping[str, Any]) -> Optional[str]:
    env = get_env_var(side, field)
    if env is not None:
        return env
    cli = overrides.get(f"{side}_{field}")
    if cli:
        return str(cli)
    value = deep_get(cfg, [side, field])
    return str(value) if value else None


def build_side(cfg: Mapping[str, Any], side: str, overrides: Mapping[str, Any]) -> SideConfig:
    """Resolve the snapshot location and display name for *side*.

    Relative snapshot paths are taken as-is (relative to the working
    directory).

    Raises
    ------
    SystemExit
        If no snapshot path is configured, with hints on how to set one.
    """
    snapshot = _side_value(cfg, side, "snapshot", overrides)
    if not snapshot:
        raise SystemExit(
            f"ERROR: missing {side}.snapshot; set it in the config file, "
            f"pass --{side}-snapshot, or export {ENV_PREFIX}_{side.upper()}_SNAPSHOT"
        )
    return SideConfig(
        snapshot=Path(snapshot),
        name=_side_value(cfg, side, "name", overrides),
        label=side,
    )
