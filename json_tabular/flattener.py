"""Core JSON flattening utilities.

This module turns an arbitrarily nested JSON value into a list of flat
records suitable for a single table. Nested object keys are joined with an
underscore, arrays of primitives collapse into one comma-separated field and
arrays of objects explode into one record per element.

Sibling arrays contribute records additively: an object holding two
unrelated arrays of length N and M yields N + M records, never N * M. A chain
of nested arrays still multiplies because each level narrows the parent
context down to one element.

Known limitation
----------------
Arrays nested directly inside arrays have no key to build an index column
from, so their index is stored under ``_index_level_<n>``. Two such anonymous
arrays at the same level under different parents share that column name and
the later one overwrites the earlier one.
"""

from __future__ import annotations

import json
import math
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional

Record = Dict[str, Any]

KEY_SEPARATOR = "_"
ROOT_VALUE_KEY = "value"
INDEX_SUFFIX = "_index"
ANONYMOUS_INDEX_PREFIX = "_index_level_"
LIST_JOINER = ", "

# Integral floats beyond this lose exactness, so they keep their float text.
_MAX_EXACT_FLOAT = 2 ** 53


class InvalidJSONError(ValueError):
    """Raised when raw input text is not valid JSON.

    Parameters
    ----------
    message : str
        Decoder message describing the problem.
    lineno : int | None, optional
        1-based line of the error, when known.
    colno : int | None, optional
        1-based column of the error, when known.
    """

    def __init__(self, message: str, lineno: Optional[int] = None, colno: Optional[int] = None) -> None:
        self.message = message
        self.lineno = lineno
        self.colno = colno
        if lineno is not None and colno is not None:
            message = f"{message} (line {lineno}, column {colno})"
        super().__init__(message)


class FlattenResult(NamedTuple):
    """Records produced from one JSON value plus its maximum nesting depth."""

    records: List[Record]
    max_depth: int

    @property
    def record_count(self) -> int:
        return len(self.records)


def is_scalar(value: Any) -> bool:
    """Check if value is a JSON scalar (anything that is not an object or array).

    Parameters
    ----------
    value : Any
        Value to check.

    Returns
    -------
    bool
        False for mappings and lists, True otherwise (including None).
    """
    return not isinstance(value, (Mapping, list))


def _float_text(value: float) -> str:
    """Shortest round-trip digits of a finite float, laid out like JavaScript's number text."""
    sign = "-" if value < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(str(digit) for digit in digit_tuple)
    # value == 0.<digits> * 10**point
    point = len(digits) + exponent

    if len(digits) <= point <= 21:
        return sign + digits + "0" * (point - len(digits))
    if 0 < point <= 21:
        return f"{sign}{digits[:point]}.{digits[point:]}"
    if -6 < point <= 0:
        return f"{sign}0.{'0' * -point}{digits}"

    power = point - 1
    mantissa = digits if len(digits) == 1 else f"{digits[0]}.{digits[1:]}"
    return f"{sign}{mantissa}e{'+' if power >= 0 else '-'}{abs(power)}"


def scalar_text(value: Any) -> str:
    """Return the canonical text form of a value.

    This is the single "string form" shared by primitive-array joining, CSV
    fields and SQL literals.

    Parameters
    ----------
    value : Any
        Value to render.

    Returns
    -------
    str
        ``true``/``false`` for booleans, integral numbers without a trailing
        ``.0``, ``NaN``/``Infinity``/``-Infinity`` for non-finite floats,
        compact JSON for objects and arrays, and ``""`` for None.

    Examples
    --------
    >>> scalar_text(True)
    'true'
    >>> scalar_text(2.0)
    '2'
    >>> scalar_text({"a": [1, 2]})
    '{"a":[1,2]}'
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < _MAX_EXACT_FLOAT:
            return str(int(value))
        return _float_text(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (Mapping, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def join_scalars(items: Iterable[Any]) -> str:
    """Join non-null scalars with ``", "``; nulls are dropped first."""
    return LIST_JOINER.join(scalar_text(item) for item in items if item is not None)


def parse_json(text: str | bytes) -> Any:
    """Parse raw JSON text into Python values.

    Objects become insertion-ordered dicts. ``NaN`` and ``Infinity`` literals
    are accepted and become non-finite floats.

    Raises
    ------
    InvalidJSONError
        If the text is not valid JSON.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidJSONError(exc.msg, exc.lineno, exc.colno) from exc
    except UnicodeDecodeError as exc:
        raise InvalidJSONError(f"Input is not valid UTF-8: {exc.reason}") from exc


def nesting_depth(value: Any, level: int = 0) -> int:
    """Return the maximum container depth of a JSON value.

    Every value reached through an object or array is visited one level below
    its container; scalars report the level they were visited at.

    Parameters
    ----------
    value : Any
        JSON-like value.
    level : int, optional
        Level of ``value`` itself (default: 0 for the root).

    Returns
    -------
    int
        Maximum level seen anywhere in the tree.

    Examples
    --------
    >>> nesting_depth({"a": {"b": {"c": 1}}})
    3
    >>> nesting_depth([])
    0
    """
    if isinstance(value, Mapping):
        children: Iterable[Any] = value.values()
    elif isinstance(value, list):
        children = value
    else:
        return level
    return max((nesting_depth(child, level + 1) for child in children), default=level)


def explode(
    value: Any,
    prefix: str = "",
    parent_context: Optional[Mapping[str, Any]] = None,
    source_path: str = "",
    array_level: int = 0,
) -> List[Record]:
    """Explode a JSON value into flat records.

    Parameters
    ----------
    value : Any
        JSON-like value (dict, list, or scalar).
    prefix : str, optional
        Column-name prefix accumulated from ancestor keys.
    parent_context : Mapping[str, Any] | None, optional
        Flat fields inherited from ancestors; copied, never mutated.
    source_path : str, optional
        Key path of the outermost array being exploded.
    array_level : int, optional
        Number of arrays entered so far; names anonymous index columns.

    Returns
    -------
    List[Record]
        At least one record.
    """
    context: Record = dict(parent_context or {})

    if isinstance(value, list):
        return _explode_array(value, prefix, context, source_path, array_level)
    if isinstance(value, Mapping):
        return _explode_object(value, prefix, context, source_path, array_level)

    context[prefix or ROOT_VALUE_KEY] = value
    return [context]


def _explode_array(
    items: List[Any],
    prefix: str,
    context: Record,
    source_path: str,
    array_level: int,
) -> List[Record]:
    if not items:
        context[prefix] = None
        return [context]

    if all(is_scalar(item) for item in items):
        context[prefix] = join_scalars(items)
        return [context]

    index_key = f"{prefix}{INDEX_SUFFIX}" if prefix else f"{ANONYMOUS_INDEX_PREFIX}{array_level}"
    item_source = source_path or prefix or "root"

    records: List[Record] = []
    for idx, item in enumerate(items):
        item_context = dict(context)
        item_context[index_key] = idx
        records.extend(explode(item, prefix, item_context, item_source, array_level + 1))
    return records


def _explode_object(
    obj: Mapping[str, Any],
    prefix: str,
    base: Record,
    source_path: str,
    array_level: int,
) -> List[Record]:
    # Records with a different cardinality than the base row.
    nested_explosions: List[Record] = []

    for key, value in obj.items():
        full_key = f"{prefix}{KEY_SEPARATOR}{key}" if prefix else str(key)

        if isinstance(value, list):
            if not value:
                base[full_key] = None
            elif all(is_scalar(item) for item in value):
                base[full_key] = join_scalars(value)
            else:
                nested_explosions.extend(
                    explode(value, full_key, base, source_path or full_key, array_level + 1)
                )
        elif isinstance(value, Mapping):
            nested = explode(value, full_key, base, source_path, array_level)
            if len(nested) > 1:
                nested_explosions.extend(nested)
            else:
                for nested_key, nested_value in nested[0].items():
                    if nested_key not in base:
                        base[nested_key] = nested_value
        else:
            base[full_key] = value

    if nested_explosions:
        return [{**base, **record} for record in nested_explosions]
    return [base]


def flatten(value: Any) -> FlattenResult:
    """Flatten a parsed JSON value into records plus its nesting depth.

    Parameters
    ----------
    value : Any
        Parsed JSON value.

    Returns
    -------
    FlattenResult
        ``(records, max_depth)``; ``records`` is never empty.

    Examples
    --------
    >>> flatten({"tags": ["x", "y", None]})
    FlattenResult(records=[{'tags': 'x, y'}], max_depth=2)
    """
    return FlattenResult(records=explode(value), max_depth=nesting_depth(value))


def parse_and_flatten(text: str | bytes) -> FlattenResult:
    """Parse raw JSON text and flatten it.

    Raises
    ------
    InvalidJSONError
        If the text is not valid JSON.
    """
    return flatten(parse_json(text))
