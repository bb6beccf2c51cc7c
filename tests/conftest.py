"""Shared pytest fixtures and markers for all tests."""

import pytest

from marketlab.engine import GameEngine, SimulationContext
from marketlab.models import Hypothesis, MarketSituation, PerformanceGroups, Sector
from marketlab.storage import DEFAULT_DATA_PATH, FileMarketDataRepository


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 100_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> float:
        self.now += ms
        return self.now


@pytest.fixture
def clock():
    """Provide a controllable millisecond clock."""
    return FakeClock()


@pytest.fixture
def repo():
    """Provide the repository over the packaged market data."""
    return FileMarketDataRepository(DEFAULT_DATA_PATH)


@pytest.fixture
def context(repo, clock):
    """Provide a seeded context over the packaged market data."""
    return SimulationContext.from_repository(repo, random_seed=1234, clock=clock)


@pytest.fixture
def engine(context):
    """Provide a game engine at the first market situation."""
    return GameEngine(context)


@pytest.fixture
def small_sectors():
    """Three sectors with distinct starting prices."""
    return [
        Sector(name="Alpha", current_price=100.0),
        Sector(name="Beta", current_price=50.0),
        Sector(name="Gamma", current_price=20.0),
    ]


@pytest.fixture
def small_situations():
    """Two market situations over the small sectors.

    Alpha is positive then negative, Beta is negative then positive, Gamma
    is neutral in the first situation and left out of the second.
    """
    return [
        MarketSituation(
            description="Alpha booms",
            recommended_tool="T-Test",
            expected_outcomes=("Alpha beats Beta",),
            performance_groups=PerformanceGroups(positive=("Alpha",), neutral=("Gamma",), negative=("Beta",)),
            hypotheses=(
                Hypothesis(
                    statement="The mean return of Alpha is higher than the mean return of Beta.",
                    narrative_hint="Alpha is booming.",
                ),
                Hypothesis(
                    statement="The proportion of days with positive returns for Gamma is higher than for Beta.",
                    narrative_hint="Beta is struggling.",
                ),
            ),
        ),
        MarketSituation(
            description="Beta recovers",
            recommended_tool="Chi-Square",
            performance_groups=PerformanceGroups(positive=("Beta",), negative=("Alpha",)),
            hypotheses=(
                Hypothesis(
                    statement="Beta outperforms Alpha.",
                    metric="Positive Return Days",
                    narrative_hint="Beta is back.",
                ),
            ),
        ),
    ]


@pytest.fixture
def small_context(small_sectors, small_situations, clock):
    """Provide a seeded context over the small market."""
    return SimulationContext(small_sectors, small_situations, random_seed=99, clock=clock)


@pytest.fixture
def small_engine(small_context):
    """Provide a game engine over the small market."""
    return GameEngine(small_context)
