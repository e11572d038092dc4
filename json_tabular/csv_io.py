"""CSV helpers for flattened records.

This module renders flattened JSON records as CSV text and writes it to
disk. Fields that could be read as spreadsheet formulas (leading ``=``,
``+``, ``-`` or ``@``) are quoted along with fields containing commas,
quotes or line breaks.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from .flattener import scalar_text

FIELD_SEPARATOR = ","
ROW_SEPARATOR = "\n"

_QUOTE_TRIGGERS = (",", '"', "\n", "\r")
_FORMULA_PREFIXES = ("=", "+", "-", "@")


def collect_headers(records: Iterable[Mapping[str, Any]]) -> List[str]:
    """Collect the union of record keys in first-seen order.

    Parameters
    ----------
    records : Iterable[Mapping[str, Any]]
        Records to scan.

    Returns
    -------
    List[str]
        The first record's keys, followed by keys introduced by later
        records in the order they first appear.
    """
    headers: Dict[str, None] = {}
    for record in records:
        for key in record:
            headers.setdefault(key, None)
    return list(headers)


def escape_csv_value(value: Any) -> str:
    """Render one CSV field.

    Parameters
    ----------
    value : Any
        Field value.

    Returns
    -------
    str
        Empty for None; otherwise the value's text form, wrapped in double
        quotes (with embedded quotes doubled) when it contains a comma,
        quote or line break or starts with a formula character.

    Examples
    --------
    >>> escape_csv_value("a,b")
    '"a,b"'
    >>> escape_csv_value("=1+1")
    '"=1+1"'
    >>> escape_csv_value(None)
    ''
    """
    if value is None:
        return ""

    text = scalar_text(value)
    if any(trigger in text for trigger in _QUOTE_TRIGGERS) or text.startswith(_FORMULA_PREFIXES):
        return '"' + text.replace('"', '""') + '"'
    return text


def generate_csv(records: Sequence[Mapping[str, Any]]) -> str:
    """Generate CSV text with a union of all keys as headers.

    Parameters
    ----------
    records : Sequence[Mapping[str, Any]]
        Records to render. Missing keys become empty fields.

    Returns
    -------
    str
        Header row followed by one row per record, joined by ``\\n`` with no
        trailing newline. Empty string for an empty record set.
    """
    if not records:
        return ""

    headers = collect_headers(records)
    rows = [FIELD_SEPARATOR.join(escape_csv_value(header) for header in headers)]
    for record in records:
        rows.append(FIELD_SEPARATOR.join(escape_csv_value(record.get(header)) for header in headers))
    return ROW_SEPARATOR.join(rows)


def write_csv(
    records: Sequence[Mapping[str, Any]],
    output_path: Path | str,
    encoding: str = "utf-8",
) -> None:
    """Write records to a CSV file.

    Parameters
    ----------
    records : Sequence[Mapping[str, Any]]
        Records to write. Each mapping represents a row.
    output_path : Path | str
        Path to output CSV file; parent directories are created.
    encoding : str, optional
        File encoding (default: "utf-8").

    Raises
    ------
    OSError
        If the file cannot be written.
    """
    if isinstance(output_path, str):
        output_path = Path(output_path)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    # newline="" keeps "\n" and any "\r" inside quoted fields untranslated.
    with output_path.open("w", newline="", encoding=encoding) as handle:
        handle.write(generate_csv(records))
