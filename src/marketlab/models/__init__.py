"""Market Lab models.

This module exports the core data structures for the simulation.
"""

from .actions import ActionDetails, ActionSummary, PlayerAction, PlayerActionType
from .market import (
    Hypothesis,
    MarketSituation,
    MarketSituationView,
    PerformanceGroup,
    PerformanceGroups,
    PortfolioItem,
    Sector,
    TestCriteria,
)
from .results import (
    GroupChange,
    MetricType,
    MetricValidationResult,
    ScenarioPerformance,
    SectorPerformance,
    TestKind,
    TestResult,
)
from .state import GameState, round_money

__all__ = [
    # Enums
    "PerformanceGroup",
    "PlayerActionType",
    "MetricType",
    "TestKind",
    "GroupChange",
    # Market models
    "Sector",
    "PerformanceGroups",
    "TestCriteria",
    "Hypothesis",
    "MarketSituation",
    "MarketSituationView",
    "PortfolioItem",
    # State
    "GameState",
    "round_money",
    # Actions
    "ActionDetails",
    "ActionSummary",
    "PlayerAction",
    # Results
    "TestResult",
    "MetricValidationResult",
    # Reports
    "SectorPerformance",
    "ScenarioPerformance",
]
