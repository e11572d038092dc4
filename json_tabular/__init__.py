"""JSON to tabular conversion toolkit.

This package flattens arbitrarily nested JSON into flat records and renders
them as a SQL script (``CREATE TABLE`` plus ``INSERT`` statements) or as CSV,
with optional loaders for MongoDB and Snowflake.
"""

from .converter import ConversionResult, FreeTierGate, OutputFormat, convert
from .csv_io import generate_csv, write_csv
from .flattener import FlattenResult, InvalidJSONError, flatten, parse_and_flatten, parse_json
from .sql_generator import generate_sql, infer_sql_type

try:
    from .mongodb_io import ingest_records_to_mongodb, query_mongodb
except ImportError:
    # pymongo not available
    pass

try:
    from .snowflake_io import load_records_to_snowflake
except ImportError:
    # snowflake-connector-python not available
    pass

__all__ = [
    "ConversionResult",
    "FlattenResult",
    "FreeTierGate",
    "InvalidJSONError",
    "OutputFormat",
    "convert",
    "flatten",
    "generate_csv",
    "generate_sql",
    "infer_sql_type",
    "parse_and_flatten",
    "parse_json",
    "write_csv",
]
