"""
config
======

Settings for the conversion service and CLI.

Values are layered: built-in defaults, then an optional YAML file, then
environment variables.

Example ``config.yml``::

    table_name: converted_data
    output_format: sql

    gate:
      free_line_limit: 50
      free_record_limit: null

    pending:
      ttl_seconds: 3600

    logging:
      level: INFO

    server:
      host: 127.0.0.1
      port: 8000

Environment overrides
---------------------
``JSON_TABULAR_TABLE_NAME``, ``JSON_TABULAR_OUTPUT_FORMAT``,
``JSON_TABULAR_FREE_LINE_LIMIT``, ``JSON_TABULAR_FREE_RECORD_LIMIT``
(empty or ``none`` disables the limit) and ``JSON_TABULAR_LOG_LEVEL``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

OUTPUT_FORMATS = ("sql", "csv")
ENV_PREFIX = "JSON_TABULAR_"


@dataclass(frozen=True)
class Settings:
    """Runtime settings.

    Attributes:
        table_name: Default table name for SQL output.
        output_format: Default output format, ``sql`` or ``csv``.
        free_line_limit: Inputs with more raw lines require payment (None disables).
        free_record_limit: Inputs producing more records require payment (None disables).
        pending_ttl_seconds: Lifetime of a stored pending conversion.
        log_level: Logging level name.
        host: Bind address for ``serve``.
        port: Bind port for ``serve``.
    """

    table_name: str = "converted_data"
    output_format: str = "sql"
    free_line_limit: Optional[int] = 50
    free_record_limit: Optional[int] = None
    pending_ttl_seconds: int = 3600
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    def __post_init__(self) -> None:
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(
                f"output_format must be one of {', '.join(OUTPUT_FORMATS)}, got {self.output_format!r}"
            )
        for name in ("free_line_limit", "free_record_limit"):
            limit = getattr(self, name)
            if limit is not None and limit < 0:
                raise ValueError(f"{name} must be non-negative, got {limit}")


def load_config(path: Path) -> Dict[str, Any]:
    """Load YAML config file."""
    if not path.exists():
        raise SystemExit(f"ERROR: config file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def deep_get(d: Mapping[str, Any], keys: List[str], default: Any = None) -> Any:
    """Safely get nested dict value with default."""
    cur: Any = d
    for k in keys:
        if not isinstance(cur, Mapping) or k not in cur:
            return default
        cur = cur[k]
    return cur


def _as_limit(value: Any, field: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if value == "" or value.lower() == "none":
            return None
    if isinstance(value, bool):
        raise ValueError(f"{field} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be an integer, got {value!r}") from None


def _from_mapping(cfg: Mapping[str, Any], base: Settings) -> Settings:
    updates: Dict[str, Any] = {}

    for field, keys in (
        ("table_name", ["table_name"]),
        ("output_format", ["output_format"]),
        ("log_level", ["logging", "level"]),
        ("host", ["server", "host"]),
    ):
        value = deep_get(cfg, keys)
        if value is not None:
            updates[field] = str(value)

    for field, keys in (
        ("free_line_limit", ["gate", "free_line_limit"]),
        ("free_record_limit", ["gate", "free_record_limit"]),
    ):
        section = deep_get(cfg, keys[:-1])
        if isinstance(section, Mapping) and keys[-1] in section:
            updates[field] = _as_limit(section[keys[-1]], ".".join(keys))

    for field, keys in (
        ("pending_ttl_seconds", ["pending", "ttl_seconds"]),
        ("port", ["server", "port"]),
    ):
        value = deep_get(cfg, keys)
        if value is not None:
            parsed = _as_limit(value, ".".join(keys))
            if parsed is not None:
                updates[field] = parsed

    return replace(base, **updates)


def _from_environ(environ: Mapping[str, str], base: Settings) -> Settings:
    updates: Dict[str, Any] = {}

    for field in ("table_name", "output_format", "log_level"):
        value = environ.get(ENV_PREFIX + field.upper())
        if value:
            updates[field] = value

    for field in ("free_line_limit", "free_record_limit"):
        name = ENV_PREFIX + field.upper()
        if name in environ:
            updates[field] = _as_limit(environ[name], name)

    return replace(base, **updates)


def load_settings(path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build :class:`Settings` from defaults, a YAML file and the environment.

    Args:
        path: Optional YAML config path; a missing file exits with an error.
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        The merged settings.

    Raises:
        ValueError: If a configured value is invalid.
        SystemExit: If ``path`` does not exist.
    """
    settings = Settings()
    if path is not None:
        settings = _from_mapping(load_config(Path(path)), settings)
    return _from_environ(os.environ if environ is None else environ, settings)
