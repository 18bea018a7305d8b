"""
Configuration Loader (``escrow_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen
``escrow_config.schema`` dataclasses.  Callers use
``escrow_config.get_active_config()`` rather than this module.

Invariants enforced
-------------------
* Required keys raise ``KeyError`` when missing; no silent defaults for
  ``config_id``, ``version`` or ``database.url``.
* Unknown top-level or section keys raise ``ValueError`` so that a typo
  never silently falls back to a default.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Out-of-range limits  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from escrow_config.schema import DatabaseConfig, EscrowConfig, LedgerConfig, LoggingConfig

_TOP_LEVEL_KEYS = frozenset({"config_id", "version", "database", "logging", "ledger"})
_DATABASE_KEYS = frozenset({"url", "echo", "pool_size", "max_overflow"})
_LOGGING_KEYS = frozenset({"level"})
_LEDGER_KEYS = frozenset({"max_reference_length", "max_amount"})

# invoices.reference is String(255)
_REFERENCE_COLUMN_LENGTH = 255
_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level")
    return data


def _check_keys(section: str, data: dict[str, Any], allowed: frozenset[str]) -> None:
    unknown = set(data) - allowed
    if unknown:
        raise ValueError(f"Unknown {section} keys: {sorted(unknown)}")


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    _check_keys("database", data, _DATABASE_KEYS)
    return DatabaseConfig(
        url=data["url"],
        echo=bool(data.get("echo", False)),
        pool_size=int(data.get("pool_size", 5)),
        max_overflow=int(data.get("max_overflow", 10)),
    )


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    _check_keys("logging", data, _LOGGING_KEYS)
    level = str(data.get("level", "INFO")).upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"Invalid logging level: {level}")
    return LoggingConfig(level=level)


def parse_ledger(data: dict[str, Any]) -> LedgerConfig:
    _check_keys("ledger", data, _LEDGER_KEYS)
    max_reference_length = int(data.get("max_reference_length", 128))
    max_amount = int(data.get("max_amount", 2**63 - 1))
    if not 0 < max_reference_length <= _REFERENCE_COLUMN_LENGTH:
        raise ValueError(
            f"max_reference_length must be in 1..{_REFERENCE_COLUMN_LENGTH}, "
            f"got {max_reference_length}"
        )
    if not 0 < max_amount <= 2**63 - 1:
        raise ValueError(f"max_amount must be in 1..2**63-1, got {max_amount}")
    return LedgerConfig(max_reference_length=max_reference_length, max_amount=max_amount)


def parse_config(data: dict[str, Any]) -> EscrowConfig:
    """
    Parse a raw configuration mapping into an ``EscrowConfig``.

    Raises:
        KeyError: if ``config_id``, ``version``, ``database`` or
            ``database.url`` is missing.
        ValueError: on unknown keys or out-of-range values.
    """
    _check_keys("top-level", data, _TOP_LEVEL_KEYS)
    return EscrowConfig(
        config_id=data["config_id"],
        version=int(data["version"]),
        database=parse_database(data["database"]),
        logging=parse_logging(data.get("logging") or {}),
        ledger=parse_ledger(data.get("ledger") or {}),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
