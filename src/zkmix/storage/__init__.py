"""Storage layer for persistent data."""

from zkmix.storage.database import (
    Base,
    DatabaseManager,
    DepositRow,
    PoolStateRow,
    SpentNullifierRow,
    SqlRegistry,
    get_db_manager,
    reset_db_manager,
)

__all__ = [
    "Base",
    "DatabaseManager",
    "DepositRow",
    "PoolStateRow",
    "SpentNullifierRow",
    "SqlRegistry",
    "get_db_manager",
    "reset_db_manager",
]
