"""Tests for the end-of-scenario performance report."""

import pytest

from marketlab.engine import GameEngine, build_scenario_performance, create_initial_state, group_change
from marketlab.models import GroupChange, PerformanceGroup, PlayerActionType, PortfolioItem


class TestGroupChange:
    """Tests for classifying moves between groups."""

    @pytest.mark.parametrize(
        "previous,current,expected",
        [
            (PerformanceGroup.NEGATIVE, PerformanceGroup.POSITIVE, GroupChange.IMPROVED),
            (PerformanceGroup.NEUTRAL, PerformanceGroup.POSITIVE, GroupChange.IMPROVED),
            (PerformanceGroup.POSITIVE, PerformanceGroup.NEUTRAL, GroupChange.WORSENED),
            (PerformanceGroup.NEUTRAL, PerformanceGroup.NEGATIVE, GroupChange.WORSENED),
            (PerformanceGroup.NEUTRAL, PerformanceGroup.NEUTRAL, GroupChange.STABLE),
        ],
    )
    def test_group_change(self, previous, current, expected):
        assert group_change(previous, current) == expected


class TestScenarioPerformance:
    """Tests for build_scenario_performance."""

    def test_first_scenario_all_stable(self, engine):
        report = build_scenario_performance(engine)
        assert report.scenario_index == 0
        assert report.scenario_description == engine.current_situation.description
        assert len(report.sector_performance) == 15
        assert all(s.change == GroupChange.STABLE for s in report.sector_performance)

    def test_money_figures(self, context):
        metals = context.get_sector("Precious Metals")
        state = create_initial_state(context).model_copy(
            update={
                "capital": 9000.0,
                "portfolio": [PortfolioItem(sector=metals, quantity=10, purchase_price=100.0)],
                "current_prices": {"Precious Metals": 150.0},
            }
        )
        report = build_scenario_performance(GameEngine(context, state=state))
        assert report.starting_value == 10000.0
        assert report.ending_value == 10500.0
        assert report.profit == 500.0
        assert report.profit_percentage == 5.0

    def test_loss(self, context):
        state = create_initial_state(context).model_copy(update={"capital": 9875.0})
        report = build_scenario_performance(GameEngine(context, state=state))
        assert report.profit == -125.0
        assert report.profit_percentage == -1.25

    def test_group_changes_against_previous_scenario(self, engine):
        engine.advance_to_next_scenario()
        report = build_scenario_performance(engine)
        changes = {s.sector: s for s in report.sector_performance}
        assert changes["Armor & Weapons"].change == GroupChange.IMPROVED
        assert changes["Armor & Weapons"].previous_group == PerformanceGroup.NEGATIVE
        assert changes["Food & Beverages"].change == GroupChange.WORSENED
        assert changes["Precious Metals"].change == GroupChange.STABLE

    def test_decision_counts(self, engine):
        tracker = engine.context.tracker
        tracker.add_action(PlayerActionType.HYPOTHESIS_SELECTION, {"is_correct": True})
        tracker.add_action(PlayerActionType.TEST_EXECUTION, {"test_kind": "Chi-Square", "is_correct": False})
        tracker.add_action(PlayerActionType.STOCK_PURCHASE, {"is_correct": True})
        report = build_scenario_performance(engine)
        assert len(report.actions) == 3
        assert report.correct_decisions == 2
        assert report.incorrect_decisions == 1

    def test_other_scenario_actions_excluded(self, engine):
        engine.context.tracker.add_action(PlayerActionType.STOCK_PURCHASE, {"is_correct": True})
        engine.advance_to_next_scenario()
        report = build_scenario_performance(engine)
        assert report.actions == ()
        assert build_scenario_performance(engine, scenario_index=0).correct_decisions == 1
