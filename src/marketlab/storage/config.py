"""Storage and runtime configuration for Market Lab.

This module reads configuration from environment variables and provides a
factory for the market data repository.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .file_repo import FileMarketDataRepository
from .repository import MarketDataRepository

# Default configuration (can be overridden via environment variables)
DEFAULT_DATA_PATH = Path(__file__).resolve().parent.parent / "data"
DEFAULT_LOG_LEVEL = "WARNING"


def get_data_path() -> Path:
    """Get configured market data directory from environment."""
    return Path(os.environ.get("MARKETLAB_DATA_PATH", str(DEFAULT_DATA_PATH)))


def get_log_level() -> int:
    """Get configured log level from environment.

    Unknown level names fall back to the default.
    """
    name = os.environ.get("MARKETLAB_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
    level = logging.getLevelName(name)
    if isinstance(level, int):
        return level
    return logging.getLevelName(DEFAULT_LOG_LEVEL)


def get_random_seed() -> Optional[int]:
    """Get configured random seed from environment.

    Returns:
        The seed, or None when unset or not an integer
    """
    raw = os.environ.get("MARKETLAB_RANDOM_SEED")
    if raw is None or not raw.strip().lstrip("-").isdigit():
        return None
    return int(raw)


def get_market_data_repository(data_path: str | Path | None = None) -> MarketDataRepository:
    """Factory function to create the market data repository.

    Args:
        data_path: Data directory to use. If None, uses environment config.

    Returns:
        MarketDataRepository instance
    """
    if data_path is None:
        data_path = get_data_path()
    return FileMarketDataRepository(data_path)
