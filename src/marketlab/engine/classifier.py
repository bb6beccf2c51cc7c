"""Performance classification of sectors per scenario.

A sector's performance group is a lookup in the scenario's partition. The
lookup table for each scenario index is built once and cached until
invalidated.
"""

from __future__ import annotations

import logging
from typing import Sequence

from marketlab.models import MarketSituation, PerformanceGroup

logger = logging.getLogger(__name__)


class PerformanceClassifier:
    """Maps (sector, scenario index) to a PerformanceGroup.

    Classification is total: sectors missing from every group, and scenario
    indices with no scenario, resolve to NEUTRAL.
    """

    def __init__(self, situations: Sequence[MarketSituation]):
        self._situations = list(situations)
        self._cache: dict[int, dict[str, PerformanceGroup]] = {}

    def classify(self, sector_name: str, scenario_index: int) -> PerformanceGroup:
        """Return the performance group of a sector in a scenario."""
        return self._table(scenario_index).get(sector_name, PerformanceGroup.NEUTRAL)

    def sectors_in_group(self, group: PerformanceGroup, scenario_index: int) -> list[str]:
        """Sector names explicitly assigned to a group in a scenario."""
        return [name for name, g in self._table(scenario_index).items() if g == group]

    def is_in_group(self, sector_name: str, group: PerformanceGroup, scenario_index: int) -> bool:
        return self.classify(sector_name, scenario_index) == group

    def invalidate(self, scenario_index: int) -> None:
        """Drop the cached table for one scenario index."""
        self._cache.pop(scenario_index, None)

    def invalidate_all(self) -> None:
        self._cache.clear()

    def is_cached(self, scenario_index: int) -> bool:
        return scenario_index in self._cache

    def _table(self, scenario_index: int) -> dict[str, PerformanceGroup]:
        table = self._cache.get(scenario_index)
        if table is not None:
            return table

        table = {}
        if 0 <= scenario_index < len(self._situations):
            groups = self._situations[scenario_index].performance_groups
            # Later groups never override earlier ones; partitions are disjoint on load
            for group in (PerformanceGroup.POSITIVE, PerformanceGroup.NEGATIVE, PerformanceGroup.NEUTRAL):
                for name in groups.members(group):
                    table.setdefault(name, group)
        else:
            logger.warning(f"No market situation at index {scenario_index}; all sectors are neutral")

        self._cache[scenario_index] = table
        return table
