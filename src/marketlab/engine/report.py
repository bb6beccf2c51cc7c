"""End-of-scenario performance report for Market Lab."""

from __future__ import annotations

from typing import Optional

from marketlab.engine.game_engine import GameEngine
from marketlab.models import (
    GroupChange,
    PerformanceGroup,
    ScenarioPerformance,
    SectorPerformance,
    round_money,
)

# Ordering used to compare groups between scenarios
_GROUP_RANK = {
    PerformanceGroup.NEGATIVE: 0,
    PerformanceGroup.NEUTRAL: 1,
    PerformanceGroup.POSITIVE: 2,
}


def group_change(previous: PerformanceGroup, current: PerformanceGroup) -> GroupChange:
    """Classify a move between performance groups.

    Examples:
        >>> group_change(PerformanceGroup.NEGATIVE, PerformanceGroup.NEUTRAL).value
        'improved'
    """
    if _GROUP_RANK[current] > _GROUP_RANK[previous]:
        return GroupChange.IMPROVED
    if _GROUP_RANK[current] < _GROUP_RANK[previous]:
        return GroupChange.WORSENED
    return GroupChange.STABLE


def build_scenario_performance(engine: GameEngine, scenario_index: Optional[int] = None) -> ScenarioPerformance:
    """Summarize the player's results in a scenario.

    Money figures come from the live state: the starting value is the
    stored baseline and the ending value is the current total value. Sector
    groups are compared with the previous scenario; in the first scenario
    every sector is stable.

    Args:
        engine: Game engine
        scenario_index: Scenario to summarize (default: the active one)
    """
    context = engine.context
    state = engine.state
    if scenario_index is None:
        scenario_index = state.current_situation_index
    situation = context.get_situation(scenario_index)
    description = situation.description if situation else ""

    starting_value = state.previous_capital
    ending_value = state.total_value()
    profit = round_money(ending_value - starting_value)
    profit_percentage = round(profit / starting_value * 100.0, 2) if starting_value else 0.0

    previous_index = max(0, scenario_index - 1)
    sector_performance = []
    for sector in context.sectors:
        current = context.classifier.classify(sector.name, scenario_index)
        previous = context.classifier.classify(sector.name, previous_index)
        sector_performance.append(
            SectorPerformance(
                sector=sector.name,
                previous_group=previous,
                current_group=current,
                change=group_change(previous, current),
            )
        )

    summary = context.tracker.get_action_summary(scenario_index)
    return ScenarioPerformance(
        scenario_index=scenario_index,
        scenario_description=description,
        starting_value=starting_value,
        ending_value=ending_value,
        profit=profit,
        profit_percentage=profit_percentage,
        actions=tuple(context.tracker.get_scenario_actions(scenario_index)),
        correct_decisions=summary.correct,
        incorrect_decisions=summary.incorrect,
        sector_performance=tuple(sector_performance),
    )
