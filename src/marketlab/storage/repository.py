"""Abstract repository interface for Market Lab static data.

Sectors and market situations are reference data: they are loaded once and
never written back. The engine only needs to read them, so the interface is
read-only.
"""

from abc import ABC, abstractmethod
from typing import Optional

from marketlab.models import MarketSituation, Sector


class MarketDataRepository(ABC):
    """Abstract base class for sector and scenario storage."""

    @abstractmethod
    def list_sectors(self) -> list[Sector]:
        """Return all sectors in display order."""
        pass

    @abstractmethod
    def list_market_situations(self) -> list[MarketSituation]:
        """Return all market situations in play order."""
        pass

    def get_sector(self, name: str) -> Optional[Sector]:
        """Look up a sector by name.

        Args:
            name: Sector name

        Returns:
            The sector, or None if not found
        """
        for sector in self.list_sectors():
            if sector.name == name:
                return sector
        return None

    def get_market_situation(self, index: int) -> Optional[MarketSituation]:
        """Load a market situation by its 0-based index.

        Args:
            index: Scenario index

        Returns:
            The market situation, or None if the index is out of range
        """
        situations = self.list_market_situations()
        if 0 <= index < len(situations):
            return situations[index]
        return None
