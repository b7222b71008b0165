"""
normalizer
==========

Text cleaning for SQL object bodies (views, routines, triggers).

Two definitions are considered equal when their cleaned forms are equal, so
comments, ``dbo`` qualifiers, square brackets and whitespace layout never
register as schema drift.
"""

from __future__ import annotations

import re
from typing import Optional

BLOCK_COMMENT_RE = re.compile(r"/\*[^*]*\*+(?:[^/*][^*]*\*+)*/")
LINE_COMMENT_RE = re.compile(r"--[^\r\n]*")
DBO_RE = re.compile(r"\[dbo\]\.|dbo\.")
BRACKETS_RE = re.compile(r"[\[\]]")
COMMA_RE = re.compile(r"\s*,\s*")
WHITESPACE_RE = re.compile(r"\s{2,}")


def _clean_once(text: str, strip_whitespace: bool) -> str:
    text = BLOCK_COMMENT_RE.sub(" ", text)
    text = LINE_COMMENT_RE.sub("", text)
    text = DBO_RE.sub("", text)
    text = BRACKETS_RE.sub("", text)

    if strip_whitespace:
        text = COMMA_RE.sub(", ", text)
        text = WHITESPACE_RE.sub(" ", text)

    return text.strip()


def clean_definition_text(definition: Optional[str], strip_whitespace: bool = True) -> str:
    """Return *definition* with cosmetic formatting removed.

    Steps, in order: block comments, line comments, ``dbo.``/``[dbo].``
    qualifiers and square brackets are removed; then, if *strip_whitespace*
    is set, whitespace around commas becomes ``", "`` and runs of two or more
    whitespace characters become one space. The result is trimmed.

    Removing a bracket or qualifier can join text into a new comment marker
    (``-[x]-`` becomes ``--``), so the steps repeat until the text is stable.
    This makes the function idempotent.

    Parameters
    ----------
    definition:
        SQL text, or ``None``.
    strip_whitespace:
        Whether to normalize whitespace as well.

    Returns
    -------
    str
        Cleaned text. Empty for ``None`` or empty input.

    Examples
    --------
    >>> clean_definition_text("[dbo].[Foo]", True)
    'Foo'
    >>> clean_definition_text("SELECT a,b  -- note\\nFROM t", True)
    'SELECT a, b FROM t'
    """
    if not definition:
        return ""

    text = definition
    while True:
        cleaned = _clean_once(text, strip_whitespace)
        if cleaned == text:
            return cleaned
        text = cleaned


def definitions_differ(definition1: Optional[str], definition2: Optional[str]) -> bool:
    """Return True if two SQL bodies differ once cleaned (whitespace included)."""
    return clean_definition_text(definition1, True) != clean_definition_text(definition2, True)
