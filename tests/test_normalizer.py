"""Unit tests for normalizer module."""

import pytest

from schemadiff.normalizer import clean_definition_text, definitions_differ


class TestCleanDefinitionText:
    """Tests for clean_definition_text function."""

    def test_none_and_empty_yield_empty_string(self) -> None:
        """Test None and empty input return an empty string."""
        assert clean_definition_text(None, True) == ""
        assert clean_definition_text("", False) == ""

    def test_strips_dbo_and_brackets(self) -> None:
        """Test dbo qualifier and square brackets are removed."""
        assert clean_definition_text("[dbo].[Foo]", True) == "Foo"
        assert clean_definition_text("dbo.Foo", True) == "Foo"

    def test_strips_block_comments(self) -> None:
        """Test block comments are removed, including multi-line ones."""
        text = "SELECT /* pick\n all ** columns */ * FROM t"
        assert clean_definition_text(text, True) == "SELECT * FROM t"

    def test_strips_line_comments(self) -> None:
        """Test line comments are removed up to the line end."""
        text = "SELECT a -- first column\nFROM t"
        assert clean_definition_text(text, True) == "SELECT a FROM t"

    def test_normalizes_commas(self) -> None:
        """Test whitespace around commas becomes a single comma-space."""
        assert clean_definition_text("SELECT a ,b,   c FROM t", True) == "SELECT a, b, c FROM t"

    def test_collapses_whitespace(self) -> None:
        """Test runs of whitespace collapse to one space."""
        assert clean_definition_text("SELECT\n\t a\r\n  FROM   t", True) == "SELECT a FROM t"

    def test_keeps_whitespace_when_not_stripping(self) -> None:
        """Test whitespace layout survives when strip_whitespace is False."""
        assert clean_definition_text("  SELECT a ,b\n FROM [t]  ", False) == "SELECT a ,b\n FROM t"

    @pytest.mark.parametrize(
        "text",
        [
            "CREATE VIEW [dbo].[v] AS /* c */ SELECT a , b FROM dbo.t -- tail",
            "-[x]- trailing",
            "/* a */ /* b */\n\nSELECT 1",
            "dbo.[dbo].x , , y",
        ],
    )
    @pytest.mark.parametrize("strip_whitespace", [True, False])
    def test_idempotent(self, text: str, strip_whitespace: bool) -> None:
        """Test cleaning an already cleaned text changes nothing."""
        once = clean_definition_text(text, strip_whitespace)
        assert clean_definition_text(once, strip_whitespace) == once


class TestDefinitionsDiffer:
    """Tests for definitions_differ function."""

    def test_formatting_only_changes_are_equal(self) -> None:
        """Test comments, qualifiers and layout do not count as differences."""
        a = "CREATE VIEW [dbo].[vOrders] AS\n  SELECT OrderID,Status FROM [dbo].[Orders]"
        b = "CREATE VIEW vOrders AS -- open orders\nSELECT OrderID , Status FROM Orders"
        assert not definitions_differ(a, b)

    def test_real_change_is_different(self) -> None:
        """Test a changed column list is a difference."""
        assert definitions_differ("SELECT a FROM t", "SELECT a, b FROM t")

    def test_none_equals_empty(self) -> None:
        """Test a missing definition equals an empty one."""
        assert not definitions_differ(None, "")
