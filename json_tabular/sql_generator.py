"""SQL generation for flattened JSON records.

This module turns a record set into a single ``CREATE TABLE`` statement and
one ``INSERT`` statement per record. Column types are inferred from every
value observed in a column (boolean, then numeric, then string).

Values are rendered as SQL literals with single quotes doubled. This is
literal escaping for a generated script, not a prepared-statement binding;
do not feed untrusted output of this module to a database with elevated
privileges without reviewing it.

Identifiers that collide after sanitization (for example ``a-b`` and
``a_b`` as table names) are not detected.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .flattener import scalar_text

DEFAULT_TABLE_NAME = "converted_data"
EMPTY_PLACEHOLDER = "-- No data to convert"
VARCHAR_LIMIT = 255

BIGINT_MIN = -(2 ** 63)
BIGINT_MAX = 2 ** 63 - 1

_UNSAFE_TABLE_CHARS = re.compile(r"[^A-Za-z0-9_]")


@dataclass
class ColumnTypeProfile:
    """Summary of the value kinds observed in one column.

    Attributes
    ----------
    has_null : bool
        A null or missing value was seen.
    has_boolean : bool
        A boolean was seen.
    has_number : bool
        An int or float was seen.
    has_string : bool
        A string, or an object/array rendered as text, was seen.
    all_integers : bool
        Every number seen is a finite integer within signed 64-bit range.
    max_length : int
        Longest string (or rendered object/array) seen.
    """

    has_null: bool = False
    has_boolean: bool = False
    has_number: bool = False
    has_string: bool = False
    all_integers: bool = True
    max_length: int = 0

    def observe(self, value: Any) -> None:
        """Fold one value into the profile."""
        if value is None:
            self.has_null = True
        elif isinstance(value, bool):
            self.has_boolean = True
        elif isinstance(value, (int, float)):
            self.has_number = True
            if not _is_bigint(value):
                self.all_integers = False
        else:
            self.has_string = True
            self.max_length = max(self.max_length, len(scalar_text(value)))

    def sql_type(self) -> str:
        """Return the SQL type this profile infers."""
        if self.has_boolean and not self.has_number and not self.has_string:
            return "BOOLEAN"
        if self.has_number and not self.has_string:
            return "BIGINT" if self.all_integers else "DOUBLE PRECISION"
        if 0 < self.max_length <= VARCHAR_LIMIT:
            return f"VARCHAR({VARCHAR_LIMIT})"
        return "TEXT"


def _is_bigint(value: Any) -> bool:
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return False
        value = int(value)
    return BIGINT_MIN <= value <= BIGINT_MAX


def profile_column(values: Iterable[Any]) -> ColumnTypeProfile:
    """Build a :class:`ColumnTypeProfile` from a column's values."""
    profile = ColumnTypeProfile()
    for value in values:
        profile.observe(value)
    return profile


def infer_sql_type(values: Iterable[Any]) -> str:
    """Infer a SQL column type from a column's values.

    Parameters
    ----------
    values : Iterable[Any]
        Every value of the column, with None standing in for missing values.

    Returns
    -------
    str
        ``BOOLEAN``, ``BIGINT``, ``DOUBLE PRECISION``, ``VARCHAR(255)`` or
        ``TEXT``.

    Examples
    --------
    >>> infer_sql_type([1, 2, 3])
    'BIGINT'
    >>> infer_sql_type([1, 2.5])
    'DOUBLE PRECISION'
    >>> infer_sql_type(["a", 1])
    'VARCHAR(255)'
    """
    return profile_column(values).sql_type()


def sanitize_table_name(table_name: str) -> str:
    """Replace every character outside ``[A-Za-z0-9_]`` with an underscore."""
    return _UNSAFE_TABLE_CHARS.sub("_", table_name)


def quote_identifier(identifier: str) -> str:
    """Wrap an identifier in double quotes, doubling embedded double quotes."""
    return '"' + identifier.replace('"', '""') + '"'


def collect_columns(records: Iterable[Mapping[str, Any]]) -> List[str]:
    """Return the union of record keys in first-seen order."""
    seen: Dict[str, None] = {}
    for record in records:
        for key in record:
            seen.setdefault(key, None)
    return list(seen)


def infer_column_types(records: Sequence[Mapping[str, Any]], columns: Sequence[str]) -> Dict[str, str]:
    """Infer a SQL type for each column; missing values count as null."""
    return {
        column: infer_sql_type(record.get(column) for record in records)
        for column in columns
    }


def render_sql_value(value: Any) -> str:
    """Render a value as a SQL literal.

    Parameters
    ----------
    value : Any
        Value to render.

    Returns
    -------
    str
        ``NULL`` for None and non-finite numbers, ``TRUE``/``FALSE`` for
        booleans, decimal text for numbers and a single-quoted string with
        single quotes doubled for everything else.
    """
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return "NULL"
        return scalar_text(value)
    return "'" + scalar_text(value).replace("'", "''") + "'"


def create_table_statement(table_name: str, column_types: Mapping[str, str]) -> str:
    """Build a ``CREATE TABLE`` statement with one column per line."""
    lines = [f"CREATE TABLE {quote_identifier(table_name)} ("]
    definitions = [f"  {quote_identifier(column)} {sql_type}" for column, sql_type in column_types.items()]
    lines.append(",\n".join(definitions))
    lines.append(");")
    return "\n".join(line for line in lines if line)


def insert_statement(table_name: str, columns: Sequence[str], record: Mapping[str, Any]) -> str:
    """Build an ``INSERT`` for one record; missing columns become ``NULL``."""
    column_list = ", ".join(quote_identifier(column) for column in columns)
    values = ", ".join(render_sql_value(record.get(column)) for column in columns)
    return f"INSERT INTO {quote_identifier(table_name)} ({column_list}) VALUES ({values});"


def _timestamp(moment: datetime) -> str:
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment.isoformat(timespec="milliseconds") + "Z"


def generate_sql(
    records: Sequence[Mapping[str, Any]],
    table_name: str = DEFAULT_TABLE_NAME,
    generated_at: Optional[datetime] = None,
) -> str:
    """Generate a ``CREATE TABLE`` plus ``INSERT`` script from records.

    Parameters
    ----------
    records : Sequence[Mapping[str, Any]]
        Flat records; they need not share the same columns.
    table_name : str, optional
        Target table name, sanitized before use (default: "converted_data").
    generated_at : datetime | None, optional
        Timestamp for the header comment (default: now, UTC).

    Returns
    -------
    str
        The script, or ``"-- No data to convert"`` for an empty record set.
    """
    if not records:
        return EMPTY_PLACEHOLDER

    safe_table = sanitize_table_name(table_name)
    columns = collect_columns(records)
    column_types = infer_column_types(records, columns)

    moment = generated_at or datetime.now(timezone.utc)
    header = "\n".join(
        [
            f"-- SQL Generated: {_timestamp(moment)}",
            f"-- Table: {safe_table}",
            f"-- Records: {len(records)}",
        ]
    )
    create_sql = create_table_statement(safe_table, column_types)
    inserts = "\n".join(insert_statement(safe_table, columns, record) for record in records)

    return f"{header}\n\n{create_sql}\n\n{inserts}"
