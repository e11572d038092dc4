"""Snowflake integration for flattened JSON records.

The table definition comes from the same type inference as
:func:`json_tabular.sql_generator.generate_sql`; the generated types
(``BIGINT``, ``DOUBLE PRECISION``, ``VARCHAR(255)``, ``TEXT``, ``BOOLEAN``)
and double-quoted identifiers are valid Snowflake SQL. Row values are bound
as parameters rather than inlined, because Snowflake string literals treat
backslash as an escape character.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Mapping, Optional, Sequence

try:
    import snowflake.connector
    from snowflake.connector.errors import ProgrammingError
except ImportError:
    raise ImportError(
        "snowflake-connector-python is required for Snowflake integration. "
        "Install it with: pip install snowflake-connector-python"
    )

from .flattener import scalar_text
from .sql_generator import (
    collect_columns,
    create_table_statement,
    infer_column_types,
    quote_identifier,
    sanitize_table_name,
)

logger = logging.getLogger(__name__)


def _bind_value(value: Any) -> Any:
    """Convert a record value to a driver parameter; NULL for None and non-finite numbers."""
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    return scalar_text(value)


def load_records_to_snowflake(
    records: Sequence[Mapping[str, Any]],
    table_name: str,
    account: str,
    user: str,
    password: str,
    warehouse: str,
    database: str,
    schema: str,
    role: Optional[str] = None,
    drop_existing: bool = False,
    batch_size: int = 1000,
) -> int:
    """Create a table from records and insert them into Snowflake.

    Parameters
    ----------
    records : Sequence[Mapping[str, Any]]
        Flat records to load.
    table_name : str
        Target table name (sanitized the same way as in generated SQL).
    account : str
        Snowflake account identifier.
    user : str
        Snowflake username.
    password : str
        Snowflake password.
    warehouse : str
        Snowflake warehouse name.
    database : str
        Snowflake database name.
    schema : str
        Snowflake schema name.
    role : Optional[str], optional
        Snowflake role (default: None).
    drop_existing : bool, optional
        Drop the table first if it already exists (default: False).
    batch_size : int, optional
        Number of rows bound per ``executemany`` call (default: 1000).

    Returns
    -------
    int
        Number of rows inserted.

    Raises
    ------
    ValueError
        If batch_size is not positive.
    ProgrammingError
        If Snowflake operation fails.
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    if not records:
        return 0

    table = sanitize_table_name(table_name)
    columns = collect_columns(records)
    create_sql = create_table_statement(table, infer_column_types(records, columns))
    placeholders = ", ".join(["%s"] * len(columns))
    column_list = ", ".join(quote_identifier(column) for column in columns)
    insert_sql = f"INSERT INTO {quote_identifier(table)} ({column_list}) VALUES ({placeholders})"
    rows = [tuple(_bind_value(record.get(column)) for column in columns) for record in records]

    conn = snowflake.connector.connect(
        account=account,
        user=user,
        password=password,
        warehouse=warehouse,
        database=database,
        schema=schema,
        role=role,
    )
    try:
        cursor = conn.cursor()
        if drop_existing:
            cursor.execute(f"DROP TABLE IF EXISTS {quote_identifier(table)}")
        cursor.execute(create_sql)

        for i in range(0, len(rows), batch_size):
            cursor.executemany(insert_sql, rows[i : i + batch_size])

        conn.commit()
        cursor.close()
        logger.info("Loaded %d rows into %s.%s", len(rows), schema, table)
        return len(rows)

    except ProgrammingError as e:
        raise ProgrammingError(f"Failed to load records into Snowflake: {e}") from e
    finally:
        conn.close()
