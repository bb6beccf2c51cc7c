"""File-based repository implementation using JSON files.

The data directory holds two files:
    sectors.json            list of sector objects
    market_situations.json  list of market situation objects, in play order
"""

import json
import logging
from pathlib import Path
from typing import Optional

from marketlab.models import MarketSituation, Sector

from .repository import MarketDataRepository

logger = logging.getLogger(__name__)

SECTORS_FILE = "sectors.json"
MARKET_SITUATIONS_FILE = "market_situations.json"


class FileMarketDataRepository(MarketDataRepository):
    """JSON file-based market data repository.

    Files are read lazily on first access and kept in memory afterwards.
    Every market situation's performance groups are checked against the
    sector list on load.
    """

    def __init__(self, data_path: str | Path):
        """Initialize repository.

        Args:
            data_path: Directory containing the JSON data files
        """
        self.data_path = Path(data_path)
        self._sectors: Optional[list[Sector]] = None
        self._situations: Optional[list[MarketSituation]] = None

    def _read_json(self, filename: str) -> list[dict]:
        path = self.data_path / filename
        if not path.exists():
            raise ValueError(f"Market data file not found: {path}")
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"{path} must contain a JSON list, got {type(data).__name__}")
        return data

    def list_sectors(self) -> list[Sector]:
        """Return all sectors in display order."""
        if self._sectors is None:
            sectors = [Sector.model_validate(item) for item in self._read_json(SECTORS_FILE)]
            names = [s.name for s in sectors]
            duplicates = sorted({n for n in names if names.count(n) > 1})
            if duplicates:
                raise ValueError(f"Duplicate sector names: {duplicates}")
            logger.debug(f"Loaded {len(sectors)} sectors from {self.data_path}")
            self._sectors = sectors
        return list(self._sectors)

    def list_market_situations(self) -> list[MarketSituation]:
        """Return all market situations in play order."""
        if self._situations is None:
            sector_names = [s.name for s in self.list_sectors()]
            situations = []
            for index, item in enumerate(self._read_json(MARKET_SITUATIONS_FILE)):
                situation = MarketSituation.model_validate(item)
                try:
                    situation.validate_partition(sector_names)
                except ValueError as e:
                    raise ValueError(f"Market situation {index}: {e}") from e
                situations.append(situation)
            if not situations:
                raise ValueError(f"No market situations defined in {self.data_path}")
            logger.debug(f"Loaded {len(situations)} market situations from {self.data_path}")
            self._situations = situations
        return list(self._situations)
