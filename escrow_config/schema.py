"""
EscrowConfig schema.

Typed, frozen view of the YAML configuration.  The loader parses YAML into
these dataclasses; nothing at runtime reads YAML or environment variables
except ``escrow_config.get_active_config()``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings passed to ``init_engine_from_url``."""

    url: str
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class LedgerConfig:
    """Limits applied by InvoiceLedger.create_invoice."""

    max_reference_length: int = 128
    max_amount: int = 2**63 - 1


@dataclass(frozen=True)
class EscrowConfig:
    """Complete runtime configuration."""

    config_id: str
    version: int
    database: DatabaseConfig
    logging: LoggingConfig
    ledger: LedgerConfig
    checksum: str = ""
