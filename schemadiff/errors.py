"""
errors
======

Exceptions raised by the comparison engine and the snapshot loader.

All of them are raised *before* any comparison begins. Inside the comparison
itself there is no error path: an entity missing from one side is reported
through its presence flag, and a missing optional attribute is simply not
compared.
"""

from __future__ import annotations


class SchemaDiffError(Exception):
    """Base class for all schemadiff errors."""


class ConfigurationError(SchemaDiffError):
    """Both snapshots resolve to the same database."""


class MissingInputError(SchemaDiffError):
    """A required snapshot was not supplied."""


class SnapshotFormatError(SchemaDiffError):
    """A snapshot file could not be read or has an unexpected shape."""
