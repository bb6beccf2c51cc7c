"""Simulation context for Market Lab.

A SimulationContext owns everything one play session shares: the static
sectors and market situations, the random source, the clock, and the four
mutable stores (sample cache, test-result cache, action log and
classification cache). Engine components receive the context instead of
reaching for module-level state, so a test can build a fresh context per
case.

Usage:
    from marketlab.engine import SimulationContext

    context = SimulationContext.from_repository(random_seed=42)
    group = context.classifier.classify("Precious Metals", 0)
"""

from __future__ import annotations

import logging
import random
from typing import Callable, Optional, Sequence

from marketlab.engine.action_tracker import ActionTracker, wall_clock_ms
from marketlab.engine.classifier import PerformanceClassifier
from marketlab.engine.data_generator import SeededDataGenerator
from marketlab.engine.stat_tests import StatisticalTestEngine
from marketlab.models import MarketSituation, Sector
from marketlab.storage import MarketDataRepository, get_market_data_repository, get_random_seed

logger = logging.getLogger(__name__)


class SimulationContext:
    """Static data and mutable stores of one session.

    Attributes:
        sectors: All sectors in display order
        situations: All market situations in play order
        random: Random source for price moves
        clock: Millisecond clock
        data_generator: Sample generator and its cache
        test_engine: Statistical test engine and its cache
        tracker: Player action log
        classifier: Performance classifier and its cache
    """

    def __init__(
        self,
        sectors: Sequence[Sector],
        situations: Sequence[MarketSituation],
        random_seed: Optional[int] = None,
        clock: Callable[[], float] = wall_clock_ms,
    ) -> None:
        if not situations:
            raise ValueError("At least one market situation is required")
        self.sectors = tuple(sectors)
        self.situations = tuple(situations)
        self.random_seed = random_seed
        self.clock = clock

        self.random = random.Random(random_seed)
        # One independent stream per store, derived from the seed
        self.data_generator = SeededDataGenerator(self._child_random())
        self.test_engine = StatisticalTestEngine(self._child_random())
        self.tracker = ActionTracker(clock=clock)
        self.classifier = PerformanceClassifier(self.situations)

    @classmethod
    def from_repository(
        cls,
        repo: Optional[MarketDataRepository] = None,
        random_seed: Optional[int] = None,
        clock: Callable[[], float] = wall_clock_ms,
    ) -> SimulationContext:
        """Build a context from stored sectors and market situations.

        Args:
            repo: Repository to load from (default: configured repository)
            random_seed: Seed for reproducible runs (default: MARKETLAB_RANDOM_SEED)
            clock: Millisecond clock
        """
        if repo is None:
            repo = get_market_data_repository()
        if random_seed is None:
            random_seed = get_random_seed()
        sectors = repo.list_sectors()
        situations = repo.list_market_situations()
        logger.info(f"Loaded {len(sectors)} sectors and {len(situations)} market situations")
        return cls(sectors, situations, random_seed=random_seed, clock=clock)

    def _child_random(self) -> random.Random:
        if self.random_seed is None:
            return random.Random()
        return random.Random(self.random.getrandbits(32))

    @property
    def scenario_count(self) -> int:
        return len(self.situations)

    def get_sector(self, name: str) -> Optional[Sector]:
        for sector in self.sectors:
            if sector.name == name:
                return sector
        return None

    def get_situation(self, index: int) -> Optional[MarketSituation]:
        if 0 <= index < len(self.situations):
            return self.situations[index]
        return None

    def now(self) -> float:
        return self.clock()

    def reset(self) -> None:
        """Empty every store and point the tracker back at the first scenario."""
        self.data_generator.clear_cache()
        self.test_engine.clear_cache()
        self.tracker.clear_actions()
        self.tracker.set_current_scenario(0)
        self.classifier.invalidate_all()
