"""
schemadiff
==========

Schema difference engine for relational databases.

Compares two schema snapshots (tables with their columns, indexes, foreign
keys and triggers, plus views, routines, synonyms, permissions and extended
properties) and produces a diff tree and a plain-text report.

Modules:

- :mod:`schemadiff.engine` builds the diff tree
- :mod:`schemadiff.reporting` renders it
- :mod:`schemadiff.snapshot` loads snapshot files
- :mod:`schemadiff.cli` is the ``schemadiff`` command
"""

from .config import ComparisonOptions
from .differences import Differences, Presence
from .engine import DifferenceEngine, compare
from .errors import ConfigurationError, MissingInputError, SchemaDiffError, SnapshotFormatError
from .normalizer import clean_definition_text
from .reporting import render_differences
from .snapshot import load_snapshot

__all__ = [
    "ComparisonOptions",
    "ConfigurationError",
    "DifferenceEngine",
    "Differences",
    "MissingInputError",
    "Presence",
    "SchemaDiffError",
    "SnapshotFormatError",
    "clean_definition_text",
    "compare",
    "load_snapshot",
    "render_differences",
]

__version__ = "0.1.0"
