"""Unit tests for the Table entity."""

from __future__ import annotations

import pytest

from row_store.domain.entities import Table
from row_store.domain.errors import ArityError, ConstraintViolation, SchemaError, ViolationKind
from row_store.domain.value_objects import ColumnConstraint, ColumnDefinition


@pytest.mark.unit
class TestTableSchema:
    """Tests for table construction."""

    def test_creation(self, users_columns: list[ColumnDefinition]) -> None:
        """A new table is empty and exposes its columns."""
        table = Table("users", users_columns)

        assert table.name == "users"
        assert table.column_count == 3
        assert table.row_count == 0
        assert table.primary_key_column is not None
        assert table.primary_key_column.name == "id"
        assert table.column_pairs() == [("id", "INT"), ("email", "STRING"), ("name", "STRING")]

    def test_from_column_pairs(self) -> None:
        """Pairs build a constraint-free table."""
        table = Table.from_column_pairs("t", [("a", "INT"), ("b", "STRING")])

        assert table.primary_key_column is None
        assert all(col.constraints == ColumnConstraint.NONE for col in table.columns)

    def test_zero_columns(self) -> None:
        """A table may have no columns."""
        table = Table("empty", [])

        assert table.column_count == 0
        assert table.insert_row([]) == 0

    def test_duplicate_column_name(self) -> None:
        """Duplicate column names are rejected."""
        with pytest.raises(SchemaError):
            Table("t", [ColumnDefinition("a"), ColumnDefinition("a")])

    def test_two_primary_keys(self) -> None:
        """At most one PRIMARY_KEY column."""
        with pytest.raises(SchemaError, match="more than one primary key"):
            Table(
                "t",
                [
                    ColumnDefinition("a", "INT", ColumnConstraint.PRIMARY_KEY),
                    ColumnDefinition("b", "INT", ColumnConstraint.PRIMARY_KEY),
                ],
            )

    @pytest.mark.parametrize("name", ["", "a/b", "a\\b", "a,b", "a\nb", "a\x00b", "a\udcffb"])
    def test_invalid_table_name(self, name: str) -> None:
        """Names that cannot be stored are rejected."""
        with pytest.raises(SchemaError):
            Table(name, [ColumnDefinition("a")])

    def test_invalid_column_name(self) -> None:
        """Column names may not contain the field separator."""
        with pytest.raises(SchemaError):
            Table("t", [ColumnDefinition("a,b")])

    def test_invalid_column_type(self) -> None:
        """Column types may not contain line breaks."""
        with pytest.raises(SchemaError):
            Table("t", [ColumnDefinition("a", "IN\nT")])

    def test_unencodable_column_name(self) -> None:
        """Column names must be encodable as UTF-8."""
        with pytest.raises(SchemaError):
            Table("t", [ColumnDefinition("a\udcff")])


@pytest.mark.unit
class TestTableInsert:
    """Tests for insert validation."""

    @pytest.fixture
    def table(self, users_columns: list[ColumnDefinition]) -> Table:
        """Create the users table."""
        return Table("users", users_columns)

    def test_insert_returns_position(self, table: Table) -> None:
        """Rows are appended in order."""
        assert table.insert_row(["1", "a@x", "Alice"]) == 0
        assert table.insert_row(["2", "b@x", "Bob"]) == 1
        assert table.rows == (("1", "a@x", "Alice"), ("2", "b@x", "Bob"))

    def test_arity_mismatch(self, table: Table) -> None:
        """Too few or too many values."""
        with pytest.raises(ArityError) as exc_info:
            table.insert_row(["1", "a@x"])

        assert exc_info.value.expected == 3
        assert exc_info.value.actual == 2
        assert exc_info.value.message == "Expected 3 values, got 2"

        with pytest.raises(ArityError):
            table.insert_row(["1", "a@x", "Alice", "extra"])

    def test_not_null(self, table: Table) -> None:
        """An empty value in a NOT_NULL column is rejected."""
        with pytest.raises(ConstraintViolation) as exc_info:
            table.insert_row(["1", "a@x", ""])

        assert exc_info.value.kind is ViolationKind.NOT_NULL
        assert exc_info.value.message == "Column 'name' cannot be NULL"

    def test_primary_key_is_not_null(self, table: Table) -> None:
        """An empty primary key is a NOT NULL violation."""
        with pytest.raises(ConstraintViolation) as exc_info:
            table.insert_row(["", "a@x", "Alice"])

        assert exc_info.value.kind is ViolationKind.NOT_NULL
        assert exc_info.value.column == "id"

    def test_duplicate_primary_key(self, table: Table) -> None:
        """A repeated primary key is rejected."""
        table.insert_row(["1", "a@x", "Alice"])

        with pytest.raises(ConstraintViolation) as exc_info:
            table.insert_row(["1", "b@x", "Bob"])

        assert exc_info.value.kind is ViolationKind.DUPLICATE_PRIMARY_KEY
        assert exc_info.value.message == "Duplicate primary key value '1'"

    def test_duplicate_unique(self, table: Table) -> None:
        """A repeated UNIQUE value is rejected."""
        table.insert_row(["1", "a@x", "Alice"])

        with pytest.raises(ConstraintViolation) as exc_info:
            table.insert_row(["2", "a@x", "Bob"])

        assert exc_info.value.kind is ViolationKind.DUPLICATE_UNIQUE
        assert exc_info.value.message == "Duplicate value 'a@x' in unique column 'email'"

    def test_empty_unique_values_are_exempt(self, table: Table) -> None:
        """Several rows may leave a UNIQUE column empty."""
        table.insert_row(["1", "", "Alice"])
        table.insert_row(["2", "", "Bob"])

        assert table.row_count == 2

    def test_validation_order(self, table: Table) -> None:
        """NOT NULL is checked before uniqueness."""
        table.insert_row(["1", "a@x", "Alice"])

        with pytest.raises(ConstraintViolation) as exc_info:
            table.insert_row(["1", "a@x", ""])

        assert exc_info.value.kind is ViolationKind.NOT_NULL

    @pytest.mark.parametrize("value", ["x\ny", "x\r", "\r", "\n", "\udcff"])
    def test_unstorable_value(self, table: Table, value: str) -> None:
        """Values with line breaks or unencodable characters are rejected."""
        with pytest.raises(ConstraintViolation) as exc_info:
            table.insert_row(["1", "a@x", value])

        assert exc_info.value.kind is ViolationKind.UNSTORABLE_VALUE
        assert exc_info.value.column == "name"
        assert table.row_count == 0
        assert table.indexed_values("id") == frozenset()

    def test_unstorable_checked_before_not_null(self, table: Table) -> None:
        """A line break is reported even when another column is NULL."""
        with pytest.raises(ConstraintViolation) as exc_info:
            table.insert_row(["1", "a\nb", ""])

        assert exc_info.value.kind is ViolationKind.UNSTORABLE_VALUE

    def test_failed_insert_leaves_state_unchanged(self, table: Table) -> None:
        """Rejected rows touch neither rows nor indexes."""
        table.insert_row(["1", "a@x", "Alice"])

        with pytest.raises(ConstraintViolation):
            table.insert_row(["2", "a@x", "Bob"])

        assert table.row_count == 1
        assert table.indexed_values("id") == frozenset({"1"})
        assert table.indexed_values("email") == frozenset({"a@x"})
        # The rejected primary key is still free
        assert table.insert_row(["2", "b@x", "Bob"]) == 1

    def test_indexes_track_inserted_values(self, table: Table) -> None:
        """Index contents equal the distinct values in the column."""
        table.insert_row(["1", "a@x", "Alice"])
        table.insert_row(["2", "", "Bob"])

        assert table.indexed_values("id") == frozenset({"1", "2"})
        assert table.indexed_values("email") == frozenset({"a@x", ""})

    def test_indexed_values_unknown_column(self, table: Table) -> None:
        """Only PRIMARY_KEY and UNIQUE columns keep a value set."""
        with pytest.raises(KeyError):
            table.indexed_values("name")
        with pytest.raises(KeyError):
            table.indexed_values("missing")

    def test_find_by_primary_key(self, table: Table) -> None:
        """Point lookups go through the primary-key index."""
        table.insert_row(["1", "a@x", "Alice"])
        table.insert_row(["2", "b@x", "Bob"])

        assert table.find_by_primary_key("2") == ["2", "b@x", "Bob"]
        assert table.find_by_primary_key("3") is None

    def test_rows_are_not_aliased(self, table: Table) -> None:
        """Mutating the caller's list does not change the stored row."""
        values = ["1", "a@x", "Alice"]
        table.insert_row(values)
        values[2] = "Mallory"

        assert table.rows[0] == ("1", "a@x", "Alice")


@pytest.mark.unit
class TestTableSelect:
    """Tests for select and scan."""

    @pytest.fixture
    def table(self, users_columns: list[ColumnDefinition]) -> Table:
        """Create a populated users table."""
        table = Table("users", users_columns)
        table.insert_row(["1", "a@x", "Alice"])
        table.insert_row(["2", "b@x", "Bob"])
        table.insert_row(["3", "c@x", "Alice"])
        return table

    def test_select_all(self, table: Table) -> None:
        """No columns and no condition returns every row."""
        assert table.select_rows() == [
            ["1", "a@x", "Alice"],
            ["2", "b@x", "Bob"],
            ["3", "c@x", "Alice"],
        ]

    def test_select_with_where(self, table: Table) -> None:
        """Equality filter keeps insertion order."""
        assert table.select_rows(["id"], "name=Alice") == [["1"], ["3"]]

    def test_select_quoted_literal(self, table: Table) -> None:
        """Double quotes around the literal are stripped."""
        assert table.select_rows(["name"], 'id="2"') == [["Bob"]]

    def test_scan_is_lazy(self, table: Table) -> None:
        """scan yields tuples one at a time."""
        rows = table.scan(["email"])

        assert next(rows) == ("a@x",)
        assert list(rows) == [("b@x",), ("c@x",)]
