"""Simulation and validation engine for Market Lab.

This module contains the core game logic including:
- data_generator: Seeded synthetic samples per metric and sector
- classifier: Sector performance groups per scenario
- stat_tests: T-Test and Chi-Square with appropriateness checks
- validator: Metric and test validation rules
- action_tracker: Deduplicated log of player decisions
- game_engine: Pure reducer and the engine owning the live state
- analysis: Hypothesis workflow used by presentation layers
- driver: Timer ticks and scenario completion
- report: End-of-scenario summary

Usage:
    from marketlab.engine import AutoProgressDriver, GameEngine, SimulationContext

    context = SimulationContext.from_repository()
    engine = GameEngine(context)
    driver = AutoProgressDriver(engine)

    engine.toggle_auto_progress()
    driver.tick()  # call every 100 ms

    engine.purchase("Precious Metals", 10)
    print(engine.state.total_value())
"""

from marketlab.engine.action_tracker import ActionTracker
from marketlab.engine.analysis import AnalysisRun, HypothesisAnalysis
from marketlab.engine.classifier import PerformanceClassifier
from marketlab.engine.context import SimulationContext
from marketlab.engine.data_generator import SeededDataGenerator, sector_seed
from marketlab.engine.driver import AutoProgressDriver
from marketlab.engine.game_engine import (
    AddMistake,
    AdvanceTime,
    AdvanceToNextScenario,
    CloseScenarioCompletionPopup,
    CompleteMeeting,
    GameAction,
    GameEngine,
    MarkToolShown,
    PayForHint,
    PurchaseSector,
    ResetGame,
    SellSector,
    ShowScenarioCompletionPopup,
    ToggleAutoProgress,
    UpdatePrices,
    create_initial_state,
    game_reducer,
    hint_cost,
)
from marketlab.engine.report import build_scenario_performance, group_change
from marketlab.engine.stat_tests import StatisticalTestEngine
from marketlab.engine.validator import (
    get_metric_type,
    get_test_error_message,
    is_test_appropriate,
    metric_for_hypothesis,
    metric_id_for_name,
    metric_name_for_id,
    normalize_metric_name,
    validate_metrics,
    validate_metrics_match_hypothesis,
    validate_test_for_metrics,
)

__all__ = [
    # Context and stores
    "SimulationContext",
    "SeededDataGenerator",
    "sector_seed",
    "PerformanceClassifier",
    "StatisticalTestEngine",
    "ActionTracker",
    # State machine
    "GameEngine",
    "GameAction",
    "game_reducer",
    "create_initial_state",
    "hint_cost",
    "PurchaseSector",
    "SellSector",
    "AdvanceTime",
    "ToggleAutoProgress",
    "ShowScenarioCompletionPopup",
    "CloseScenarioCompletionPopup",
    "AdvanceToNextScenario",
    "PayForHint",
    "ResetGame",
    "UpdatePrices",
    "AddMistake",
    "CompleteMeeting",
    "MarkToolShown",
    # Workflow
    "HypothesisAnalysis",
    "AnalysisRun",
    "AutoProgressDriver",
    "build_scenario_performance",
    "group_change",
    # Validation
    "validate_metrics",
    "validate_test_for_metrics",
    "validate_metrics_match_hypothesis",
    "is_test_appropriate",
    "get_test_error_message",
    "get_metric_type",
    "metric_for_hypothesis",
    "metric_id_for_name",
    "metric_name_for_id",
    "normalize_metric_name",
]
