"""Tests for the schemadiff command line."""

from pathlib import Path
from typing import List

import pytest

from schemadiff.cli import build_parser, main

DB1 = """
name: "[localhost].[Northwind1]"
tables:
  Orders:
    columns:
      - {name: OrderID, data_type: int, is_nullable: false}
      - {name: Status, data_type: varchar, is_nullable: true}
    indexes:
      - {name: IX_Status, columns: "Status"}
  tmp_Load:
    columns:
      - {name: a, data_type: int}
"""

DB2 = """
name: "[localhost].[Northwind2]"
tables:
  Orders:
    columns:
      - {name: OrderID, data_type: int, is_nullable: false}
      - {name: Status, data_type: varchar, is_nullable: false}
    indexes:
      - {name: IX_Status, columns: "Status(-)"}
"""


@pytest.fixture
def snapshots(tmp_path: Path) -> List[Path]:
    left = tmp_path / "db1.yml"
    right = tmp_path / "db2.yml"
    left.write_text(DB1, encoding="utf-8")
    right.write_text(DB2, encoding="utf-8")
    return [left, right]


def run_cli(args: List[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(args)
    return exc_info.value.code


class TestParser:
    """Tests for argument parsing."""

    def test_toggle_flags(self) -> None:
        """Test every default-on category gets a --no-* flag."""
        args = build_parser().parse_args(["--no-indexes", "--no-permissions", "--ordinal-positions"])
        assert args.no_indexes is True
        assert args.no_permissions is True
        assert args.no_columns is False
        assert args.ordinal_positions is True

    def test_repeatable_filters(self) -> None:
        """Test --include and --exclude accumulate."""
        args = build_parser().parse_args(["--include", "A%", "--include", "B%", "--exclude", "re:^tmp"])
        assert args.include == ["A%", "B%"]
        assert args.exclude == ["re:^tmp"]


class TestMain:
    """End-to-end runs of main()."""

    def test_differences_exit_one(self, snapshots: List[Path], capsys: pytest.CaptureFixture) -> None:
        """Test differences are printed and exit with 1."""
        code = run_cli(["--left-snapshot", str(snapshots[0]), "--right-snapshot", str(snapshots[1])])
        out = capsys.readouterr().out
        assert code == 1
        assert out.startswith("Schema comparison result\n\nDatabase 1: [localhost].[Northwind1]\n")
        assert "Table: [Orders]\n     [Status] - is allowed null in database 1 and is not allowed null in database 2" in out
        assert "     Index: [IX_Status] - [Status] ordering is different" in out
        assert "Table: [tmp_Load] does not exist in database 2" in out

    def test_filters_and_toggles(self, snapshots: List[Path], capsys: pytest.CaptureFixture) -> None:
        """Test --exclude and --no-indexes narrow the report."""
        code = run_cli([
            "--left-snapshot", str(snapshots[0]),
            "--right-snapshot", str(snapshots[1]),
            "--exclude", "tmp%",
            "--no-indexes",
        ])
        out = capsys.readouterr().out
        assert code == 1
        assert "tmp_Load" not in out
        assert "Index:" not in out

    def test_no_differences_exit_zero(self, snapshots: List[Path], capsys: pytest.CaptureFixture) -> None:
        """Test comparing a snapshot with a renamed copy of itself exits 0."""
        code = run_cli([
            "--left-snapshot", str(snapshots[0]),
            "--right-snapshot", str(snapshots[0]),
            "--right-name", "copy",
        ])
        assert code == 0
        assert capsys.readouterr().out.endswith("NO DIFFERENCES HAVE BEEN FOUND\n")

    def test_config_and_out_file(self, snapshots: List[Path], tmp_path: Path) -> None:
        """Test a config file drives the run and the report goes to --out."""
        config = tmp_path / "config.yml"
        config.write_text(
            f"options:\n  columns: false\n  indexes: false\n"
            f"left:\n  snapshot: {snapshots[0]}\nright:\n  snapshot: {snapshots[1]}\n"
            f"table_filter:\n  include: [Orders]\n",
            encoding="utf-8",
        )
        report = tmp_path / "out" / "report.txt"
        code = run_cli(["--config", str(config), "--out", str(report)])
        assert code == 0
        assert report.read_text(encoding="utf-8").endswith("NO DIFFERENCES HAVE BEEN FOUND\n")

    def test_same_database_is_an_error(self, snapshots: List[Path]) -> None:
        """Test comparing a database with itself exits with an error message."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--left-snapshot", str(snapshots[0]), "--right-snapshot", str(snapshots[0])])
        assert str(exc_info.value.code).startswith("ERROR: both snapshots refer to the same database")

    def test_missing_snapshot_file(self, tmp_path: Path, snapshots: List[Path]) -> None:
        """Test an unreadable snapshot exits with an error message."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--left-snapshot", str(tmp_path / "nope.yml"), "--right-snapshot", str(snapshots[1])])
        assert "ERROR: snapshot not found" in str(exc_info.value.code)
