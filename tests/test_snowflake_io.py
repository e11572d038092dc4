"""Unit tests for Snowflake loading."""

import math
from unittest.mock import call, patch

import pytest
from snowflake.connector.errors import ProgrammingError

from json_tabular.snowflake_io import load_records_to_snowflake

CONNECTION = {
    "account": "acct",
    "user": "user",
    "password": "secret",
    "warehouse": "WH",
    "database": "DB",
    "schema": "PUBLIC",
}


def test_load_creates_table_and_binds_rows() -> None:
    """Test the table is created and rows are bound as parameters."""
    records = [{"id": 1, "name": "a"}, {"id": 2, "name": "b"}]
    with patch("json_tabular.snowflake_io.snowflake.connector.connect") as mock_connect:
        conn = mock_connect.return_value
        cursor = conn.cursor.return_value
        count = load_records_to_snowflake(records, "my table", drop_existing=True, **CONNECTION)

    assert count == 2
    executed = [c.args[0] for c in cursor.execute.call_args_list]
    assert executed[0] == 'DROP TABLE IF EXISTS "my_table"'
    assert executed[1] == 'CREATE TABLE "my_table" (\n  "id" BIGINT,\n  "name" VARCHAR(255)\n);'
    cursor.executemany.assert_called_once_with(
        'INSERT INTO "my_table" ("id", "name") VALUES (%s, %s)',
        [(1, "a"), (2, "b")],
    )
    conn.commit.assert_called_once()
    conn.close.assert_called_once()


def test_load_passes_backslashes_through_unchanged() -> None:
    """Test backslashes reach the driver as data, never inside a SQL literal."""
    records = [{"path": "C:\\new"}, {"path": "ends with\\"}]
    with patch("json_tabular.snowflake_io.snowflake.connector.connect") as mock_connect:
        cursor = mock_connect.return_value.cursor.return_value
        load_records_to_snowflake(records, "paths", **CONNECTION)

    sql, rows = cursor.executemany.call_args.args
    assert "\\" not in sql
    assert rows == [("C:\\new",), ("ends with\\",)]


def test_load_binds_missing_and_non_finite_values_as_null() -> None:
    """Test missing columns and NaN bind as None; nested values bind as JSON text."""
    records = [{"a": math.nan, "b": {"k": [1]}}, {"a": True}]
    with patch("json_tabular.snowflake_io.snowflake.connector.connect") as mock_connect:
        cursor = mock_connect.return_value.cursor.return_value
        load_records_to_snowflake(records, "t", **CONNECTION)

    assert cursor.executemany.call_args.args[1] == [(None, '{"k":[1]}'), (True, None)]


def test_load_inserts_in_batches() -> None:
    """Test rows are split into batch_size chunks."""
    records = [{"id": i} for i in range(5)]
    with patch("json_tabular.snowflake_io.snowflake.connector.connect") as mock_connect:
        cursor = mock_connect.return_value.cursor.return_value
        assert load_records_to_snowflake(records, "t", batch_size=2, **CONNECTION) == 5

    sql = 'INSERT INTO "t" ("id") VALUES (%s)'
    assert cursor.executemany.call_args_list == [
        call(sql, [(0,), (1,)]),
        call(sql, [(2,), (3,)]),
        call(sql, [(4,)]),
    ]


def test_load_empty_records_skips_connection() -> None:
    """Test empty record sets never connect."""
    with patch("json_tabular.snowflake_io.snowflake.connector.connect") as mock_connect:
        assert load_records_to_snowflake([], "t", **CONNECTION) == 0
        mock_connect.assert_not_called()


def test_load_rejects_invalid_batch_size() -> None:
    """Test non-positive batch sizes are rejected before connecting."""
    with patch("json_tabular.snowflake_io.snowflake.connector.connect") as mock_connect:
        with pytest.raises(ValueError, match="batch_size"):
            load_records_to_snowflake([{"a": 1}], "t", batch_size=0, **CONNECTION)
        mock_connect.assert_not_called()


def test_load_wraps_programming_errors() -> None:
    """Test Snowflake errors are re-raised with context."""
    with patch("json_tabular.snowflake_io.snowflake.connector.connect") as mock_connect:
        conn = mock_connect.return_value
        conn.cursor.return_value.executemany.side_effect = ProgrammingError("bad sql")
        with pytest.raises(ProgrammingError, match="Failed to load records"):
            load_records_to_snowflake([{"a": 1}], "t", **CONNECTION)
    conn.commit.assert_not_called()
    conn.close.assert_called_once()
