"""Conversion pipeline: raw JSON text to SQL or CSV output.

The pipeline parses the input, flattens it once and runs exactly one of the
two generators. A :class:`FreeTierGate` decides beforehand whether the input
is small enough to convert without payment; the gate only sees line and
record counts and knows nothing about sessions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .csv_io import generate_csv
from .flattener import parse_and_flatten
from .sql_generator import DEFAULT_TABLE_NAME, generate_sql

logger = logging.getLogger(__name__)


class OutputFormat(str, Enum):
    SQL = "sql"
    CSV = "csv"

    @classmethod
    def parse(cls, value: "OutputFormat | str") -> "OutputFormat":
        """Return the member for ``value``, raising ValueError if unknown."""
        try:
            return cls(value)
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"output_format must be one of {choices}, got {value!r}") from None


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of one conversion request.

    Attributes
    ----------
    output : str
        Generated SQL or CSV text; empty when payment is required.
    line_count : int
        Number of lines in the raw input.
    nesting_level : int
        Maximum nesting depth of the input.
    record_count : int
        Number of flat records the input produced.
    requires_payment : bool
        True when the gate refused to generate output.
    """

    output: str
    line_count: int
    nesting_level: int
    record_count: int
    requires_payment: bool = False


@dataclass(frozen=True)
class FreeTierGate:
    """Size limits for unpaid conversions; ``None`` disables a limit."""

    max_lines: Optional[int] = 50
    max_records: Optional[int] = None

    def requires_payment(self, line_count: int, record_count: int, paid: bool = False) -> bool:
        if paid:
            return False
        if self.max_lines is not None and line_count > self.max_lines:
            return True
        if self.max_records is not None and record_count > self.max_records:
            return True
        return False


def count_lines(text: str) -> int:
    """Count ``\\n``-separated lines; empty text is one line."""
    return text.count("\n") + 1


def convert(
    json_text: str,
    output_format: OutputFormat | str,
    table_name: Optional[str] = None,
    gate: Optional[FreeTierGate] = None,
    paid: bool = False,
) -> ConversionResult:
    """Convert raw JSON text into SQL or CSV.

    Parameters
    ----------
    json_text : str
        Raw JSON input.
    output_format : OutputFormat | str
        ``sql`` or ``csv``.
    table_name : str | None, optional
        Table name for SQL output (default: "converted_data").
    gate : FreeTierGate | None, optional
        Size gate; None converts unconditionally.
    paid : bool, optional
        Whether the caller has already paid (bypasses the gate).

    Returns
    -------
    ConversionResult
        The generated output, or an empty output flagged ``requires_payment``.

    Raises
    ------
    InvalidJSONError
        If ``json_text`` is not valid JSON.
    ValueError
        If ``output_format`` is unknown.
    """
    fmt = OutputFormat.parse(output_format)
    line_count = count_lines(json_text)
    flattened = parse_and_flatten(json_text)

    if gate is not None and gate.requires_payment(line_count, flattened.record_count, paid):
        logger.info(
            "Conversion gated: %d lines, %d records exceed the free tier",
            line_count,
            flattened.record_count,
        )
        return ConversionResult(
            output="",
            line_count=line_count,
            nesting_level=flattened.max_depth,
            record_count=flattened.record_count,
            requires_payment=True,
        )

    if fmt is OutputFormat.SQL:
        output = generate_sql(flattened.records, table_name or DEFAULT_TABLE_NAME)
    else:
        output = generate_csv(flattened.records)

    logger.debug("Converted %d records to %s", flattened.record_count, fmt.value)
    return ConversionResult(
        output=output,
        line_count=line_count,
        nesting_level=flattened.max_depth,
        record_count=flattened.record_count,
    )
