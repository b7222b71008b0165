"""Unit tests for matcher module."""

from typing import List, Tuple

from schemadiff.differences import Difference, Presence, TableSubItemDifference
from schemadiff.matcher import key_by, match, match_grouped


class TestKeyBy:
    """Tests for key_by function."""

    def test_keeps_input_order(self) -> None:
        """Test keys come out in input order."""
        out = key_by(["b", "a", "c"], lambda s: s.upper())
        assert list(out) == ["B", "A", "C"]

    def test_first_occurrence_wins(self) -> None:
        """Test a duplicate key keeps the first item."""
        out = key_by([("x", 1), ("x", 2)], lambda t: t[0])
        assert out == {"x": ("x", 1)}


class TestMatch:
    """Tests for match function."""

    def test_union_order(self) -> None:
        """Test database 1 order first, then database-2-only keys in database 2 order."""
        items1 = {"a": 1, "b": 2, "c": 3}
        items2 = {"d": 4, "b": 2, "e": 5, "a": 1}
        out = match(items1, items2, Difference)
        assert list(out) == ["a", "b", "c", "d", "e"]

    def test_presence_values(self) -> None:
        """Test each key gets the right presence."""
        out = match({"a": 1, "b": 2}, {"b": 2, "c": 3}, Difference)
        assert out["a"].presence is Presence.ONLY_IN_1
        assert out["b"].presence is Presence.BOTH
        assert out["c"].presence is Presence.ONLY_IN_2
        assert out["a"].exists_in_database1 and not out["a"].exists_in_database2
        assert out["c"].exists_in_database2 and not out["c"].exists_in_database1

    def test_compare_called_once_for_matched_keys_only(self) -> None:
        """Test the comparator runs exactly once per key present on both sides."""
        calls: List[Tuple[str, int, int]] = []

        def compare(key: str, node: TableSubItemDifference, a: int, b: int) -> None:
            calls.append((key, a, b))
            if a != b:
                node.differences.append(f"{a} != {b}")

        out = match({"a": 1, "b": 2}, {"b": 3, "c": 4}, TableSubItemDifference, compare)
        assert calls == [("b", 2, 3)]
        assert out["b"].differences == ["2 != 3"]
        assert out["a"].differences == []
        assert out["c"].differences == []

    def test_empty_inputs(self) -> None:
        """Test empty collections produce an empty map."""
        assert match({}, {}, Difference) == {}


class TestMatchGrouped:
    """Tests for match_grouped function."""

    @staticmethod
    def group(value: str) -> str:
        return "functions" if value.lower() == "function" else "procedures"

    def test_routes_by_group(self) -> None:
        """Test keys land in the bucket of their group."""
        out = match_grouped(
            {"f1": "FUNCTION", "p1": "PROCEDURE"},
            {"f1": "FUNCTION", "p2": "PROCEDURE"},
            self.group,
            Difference,
        )
        assert list(out["functions"]) == ["f1"]
        assert list(out["procedures"]) == ["p1", "p2"]
        assert out["procedures"]["p2"].presence is Presence.ONLY_IN_2

    def test_reclassified_routine_appears_in_both_buckets(self) -> None:
        """Test a routine whose kind changed is matched in database 1's bucket and listed in database 2's."""
        out = match_grouped({"r": "FUNCTION"}, {"r": "PROCEDURE"}, self.group, Difference)
        assert out["functions"]["r"].presence is Presence.BOTH
        assert out["procedures"]["r"].presence is Presence.ONLY_IN_2
