"""Storage module for Market Lab.

This module provides the read-only repository for sectors and market
situations.

Usage:
    from marketlab.storage import get_market_data_repository

    repo = get_market_data_repository()
    sectors = repo.list_sectors()
    situations = repo.list_market_situations()

Configuration via environment variables:
    MARKETLAB_DATA_PATH: Directory with sectors.json and market_situations.json
        (default: the data bundled with the package)
    MARKETLAB_LOG_LEVEL: Log level for the terminal app (default: "WARNING")
    MARKETLAB_RANDOM_SEED: Integer seed for reproducible runs (default: unset)
"""

from .config import (
    DEFAULT_DATA_PATH,
    get_data_path,
    get_log_level,
    get_market_data_repository,
    get_random_seed,
)
from .file_repo import FileMarketDataRepository
from .repository import MarketDataRepository

__all__ = [
    # Abstract interface
    "MarketDataRepository",
    # File implementation
    "FileMarketDataRepository",
    # Configuration
    "DEFAULT_DATA_PATH",
    "get_data_path",
    "get_log_level",
    "get_random_seed",
    # Factory functions
    "get_market_data_repository",
]
