"""
cli
===

``schemadiff`` command-line entry point.

Loads two snapshot files (see :mod:`schemadiff.snapshot`), compares them and
prints the report, or writes it to ``--out``.

Usage::

    schemadiff --config config.yml
    schemadiff --left-snapshot db1.yml --right-snapshot db2.yml --no-permissions --include "Order%"

Exit codes: ``0`` when no differences were found, ``1`` when there are
differences. Errors exit with an ``ERROR: ...`` message.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from .config import SIDES, ComparisonOptions, build_side, deep_get, load_config, read_options, read_table_filter
from .engine import DifferenceEngine
from .errors import SchemaDiffError
from .reporting import render_differences, write_report
from .snapshot import apply_table_filter, load_snapshot

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="schemadiff",
        description="Compare two database schema snapshots and report every difference.",
    )
    ap.add_argument("--config", default=None, help="Path to config.yml (optional)")
    ap.add_argument("--out", default=None, help="Write the report to this file instead of stdout")

    # toggles
    for f in fields(ComparisonOptions):
        if f.default is True:
            ap.add_argument(
                f"--no-{f.name.replace('_', '-')}",
                dest=f"no_{f.name}",
                action="store_true",
                help=f"Do not compare {f.name.replace('_', ' ')}",
            )
    ap.add_argument("--ordinal-positions", action="store_true", help="Also compare column ordinal positions")

    # include/exclude table filters (repeatable)
    ap.add_argument(
        "--include",
        action="append",
        default=[],
        help="Include table pattern (repeatable). SQL LIKE (%% _) or regex via re:... e.g. --include 'Order%%'",
    )
    ap.add_argument(
        "--exclude",
        action="append",
        default=[],
        help="Exclude table pattern (repeatable). SQL LIKE (%% _) or regex via re:... e.g. --exclude 'tmp%%'",
    )

    for side in SIDES:
        ap.add_argument(f"--{side}-snapshot", default=None, help=f"Snapshot file for the {side} database")
        ap.add_argument(f"--{side}-name", default=None, help=f"Display name override for the {side} database")

    ap.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")
    return ap


def run(args: argparse.Namespace) -> int:
    """Execute one comparison and return the process exit code."""
    cfg: Dict[str, Any] = load_config(Path(args.config)) if args.config else {}

    options = read_options(cfg, args)
    table_filter = read_table_filter(cfg, args)
    overrides = vars(args)
    sides = [build_side(cfg, side, overrides) for side in SIDES]

    snapshots = []
    for side in sides:
        snapshot = load_snapshot(side.snapshot, name=side.name)
        snapshots.append(apply_table_filter(snapshot, table_filter))
    logger.info("Comparing %s with %s", snapshots[0].name, snapshots[1].name)

    differences = DifferenceEngine(options).build(snapshots[0], snapshots[1])

    out = args.out or deep_get(cfg, ["out"])
    if out:
        path = write_report(Path(out), differences)
        print(f"Report written to {path}", file=sys.stderr)
    else:
        sys.stdout.write(render_differences(differences))

    return 1 if differences.has_differences else 0


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Run the CLI entry-point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        code = run(args)
    except SchemaDiffError as e:
        raise SystemExit(f"ERROR: {e}") from e
    raise SystemExit(code)


if __name__ == "__main__":
    main()
