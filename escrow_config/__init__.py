"""
escrow_config -- single public entrypoint for escrow configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.

Architecture position:
    Configuration -- sits above ``invoice_escrow``.  The kernel MUST NEVER
    import from ``escrow_config``; ``escrow_config.bridges`` translates the
    loaded configuration into kernel arguments.

Resolution order:
    1. explicit ``path`` argument
    2. ``INVOICE_ESCROW_CONFIG`` environment variable
    3. packaged ``escrow_config/sets/default.yaml``

    ``DATABASE_URL`` in the environment overrides ``database.url``.

Audit relevance:
    Every successful ``get_active_config()`` call emits an
    ``ESCROW_CONFIG_TRACE`` log entry with config_id, version, and checksum.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from pathlib import Path

from escrow_config.loader import compute_checksum, load_yaml_file, parse_config
from escrow_config.schema import DatabaseConfig, EscrowConfig, LedgerConfig, LoggingConfig

_logger = logging.getLogger("invoice_escrow.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

CONFIG_PATH_ENV = "INVOICE_ESCROW_CONFIG"
DATABASE_URL_ENV = "DATABASE_URL"


def get_active_config(path: Path | str | None = None) -> EscrowConfig:
    """The ONLY public configuration entrypoint.

    Raises:
        FileNotFoundError: If the resolved configuration file does not exist.
        KeyError: If a required key is missing.
        ValueError: If the configuration is structurally invalid.
    """
    resolved = Path(path or os.environ.get(CONFIG_PATH_ENV) or _DEFAULT_CONFIG_PATH)
    config = parse_config(load_yaml_file(resolved))

    database_url = os.environ.get(DATABASE_URL_ENV)
    if database_url:
        config = dataclasses.replace(
            config, database=dataclasses.replace(config.database, url=database_url)
        )

    _logger.info(
        "ESCROW_CONFIG_TRACE",
        extra={
            "trace_type": "ESCROW_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "config_checksum": config.checksum,
            "config_path": str(resolved),
            "database_url_overridden": bool(database_url),
        },
    )
    return config


__all__ = [
    "DatabaseConfig",
    "EscrowConfig",
    "LedgerConfig",
    "LoggingConfig",
    "compute_checksum",
    "get_active_config",
]
