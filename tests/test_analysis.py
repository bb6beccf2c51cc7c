"""Tests for the hypothesis analysis workflow.

Uses the packaged first scenario, whose first hypothesis compares the mean
return of Food & Beverages (positive) with Precious Metals (neutral).
"""

import pytest

from marketlab.engine import HypothesisAnalysis
from marketlab.engine.validator import USE_T_TEST_MESSAGE
from marketlab.models import PlayerActionType, TestKind

FOOD = "Food & Beverages"
METALS = "Precious Metals"
ARMOR = "Armor & Weapons"


@pytest.fixture
def analysis(engine):
    return HypothesisAnalysis(engine)


def recorded(analysis, action_type):
    return [a for a in analysis.context.tracker.get_current_scenario_actions() if a.type == action_type]


class TestSelections:
    """Tests for hypothesis, sector and metric selection."""

    def test_select_hypothesis(self, analysis):
        action = analysis.select_hypothesis(0)
        assert action.details.is_correct
        assert action.details.hypothesis == analysis.hypotheses[0].statement
        assert analysis.hypothesis == analysis.hypotheses[0]

    def test_second_hypothesis_selection_not_recorded(self, analysis):
        analysis.select_hypothesis(0)
        assert analysis.select_hypothesis(1) is None
        assert analysis.hypothesis_index == 1
        assert len(recorded(analysis, PlayerActionType.HYPOTHESIS_SELECTION)) == 1

    def test_unknown_hypothesis(self, analysis):
        assert analysis.select_hypothesis(17) is None
        assert analysis.hypothesis is None

    def test_matching_sectors(self, analysis):
        analysis.select_hypothesis(0)
        action = analysis.select_sectors(METALS, FOOD)
        assert action.details.is_correct
        assert analysis.sectors == (METALS, FOOD)

    def test_wrong_sectors(self, analysis):
        analysis.select_hypothesis(0)
        action = analysis.select_sectors(FOOD, ARMOR)
        assert not action.details.is_correct
        assert action.details.error_message == "These sectors are not the ones the hypothesis compares."

    def test_same_sector_twice_is_wrong(self, analysis):
        analysis.select_hypothesis(0)
        assert not analysis.sectors_match_hypothesis(FOOD, FOOD)

    def test_sectors_without_hypothesis_are_wrong(self, analysis):
        assert not analysis.sectors_match_hypothesis(FOOD, METALS)

    def test_matching_metric(self, analysis):
        analysis.select_hypothesis(0)
        action = analysis.select_metrics(["Mean Return"])
        assert action.details.is_correct
        assert action.details.data_type == "numerical"

    def test_wrong_metric(self, analysis):
        analysis.select_hypothesis(0)
        action = analysis.select_metrics(["Positive Return Days"])
        assert not action.details.is_correct
        assert "does not match the hypothesis" in action.details.error_message


class TestExecuteTest:
    """Tests for judging and recording test runs."""

    def test_correct_test(self, analysis):
        analysis.select_hypothesis(0)
        verdict = analysis.execute_test("t-test", ["Mean Return", "Mean Return"])
        assert verdict.is_valid
        (action,) = recorded(analysis, PlayerActionType.TEST_EXECUTION)
        assert action.details.is_correct
        assert action.details.test_kind == "T-Test"

    def test_wrong_test(self, analysis):
        analysis.select_hypothesis(0)
        verdict = analysis.execute_test(TestKind.CHI_SQUARE, ["Mean Return"])
        assert not verdict.is_valid
        assert verdict.error_message == USE_T_TEST_MESSAGE
        (action,) = recorded(analysis, PlayerActionType.TEST_EXECUTION)
        assert not action.details.is_correct

    def test_wrong_metric_records_metric_selection(self, analysis):
        analysis.select_hypothesis(0)
        verdict = analysis.execute_test(TestKind.CHI_SQUARE, ["Positive Return Days"])
        assert not verdict.is_valid
        assert recorded(analysis, PlayerActionType.TEST_EXECUTION) == []
        (action,) = recorded(analysis, PlayerActionType.METRIC_SELECTION)
        assert not action.details.is_correct

    def test_sectors_recorded_with_test(self, analysis):
        analysis.select_hypothesis(0)
        analysis.execute_test(TestKind.T_TEST, ["Mean Return"], (FOOD, METALS))
        (action,) = recorded(analysis, PlayerActionType.SECTOR_SELECTION)
        assert action.details.sectors == (FOOD, METALS)


class TestRunAnalysis:
    """Tests for computing results on generated samples."""

    def test_sample_by_display_name(self, analysis):
        sample = analysis.sample("Mean Return", FOOD)
        assert len(sample) == 200
        assert sample == analysis.sample("mean_return", FOOD)

    def test_positive_vs_negative_is_significant(self, analysis):
        result = analysis.run_sector_test("Mean Return", FOOD, ARMOR, TestKind.T_TEST)
        assert result.significant
        assert not result.is_inappropriate

    def test_run_analysis(self, analysis):
        analysis.select_hypothesis(0)
        run = analysis.run_analysis(TestKind.T_TEST, ["Mean Return", "Mean Return"], (FOOD, METALS))
        assert run.verdict.is_valid
        assert run.result.test_kind == TestKind.T_TEST
        assert not run.result.is_inappropriate

    def test_run_analysis_uses_selected_sectors(self, analysis):
        analysis.select_hypothesis(0)
        analysis.select_sectors(FOOD, METALS)
        run = analysis.run_analysis(TestKind.T_TEST, ["Mean Return"])
        assert run.result is not None

    def test_wrong_test_gives_inconclusive_result(self, analysis):
        analysis.select_hypothesis(0)
        run = analysis.run_analysis(TestKind.CHI_SQUARE, ["Mean Return"], (FOOD, ARMOR))
        assert not run.verdict.is_valid
        assert run.result.is_inappropriate
        assert not run.result.significant

    def test_unknown_test_name_is_inconclusive(self, analysis):
        analysis.select_hypothesis(0)
        run = analysis.run_analysis("ANOVA", ["Mean Return"], (FOOD, ARMOR))
        assert not run.verdict.is_valid
        assert run.result.test_kind is None
        assert run.result.is_inappropriate
        assert not run.result.significant

    def test_no_sectors_no_result(self, analysis):
        analysis.select_hypothesis(0)
        run = analysis.run_analysis(TestKind.T_TEST, ["Mean Return"])
        assert run.result is None


class TestHintsAndPurchases:
    """Tests for paid hints and recorded purchases."""

    def test_hint_debits_capital_once(self, analysis):
        analysis.select_hypothesis(0)
        hint = analysis.purchase_hint()
        assert hint == analysis.hypotheses[0].narrative_hint
        assert analysis.engine.state.capital == 9000.0
        assert analysis.purchase_hint() == hint
        assert analysis.engine.state.capital == 9000.0

    def test_each_hypothesis_hint_paid_separately(self, analysis):
        analysis.select_hypothesis(0)
        analysis.purchase_hint()
        analysis.select_hypothesis(1)
        analysis.purchase_hint()
        assert analysis.engine.state.capital == 8000.0

    def test_unaffordable_hint(self, analysis):
        analysis.engine.purchase(METALS, 95)
        assert analysis.purchase_hint() is None
        assert analysis.engine.state.capital == 500.0

    def test_hint_price_follows_level(self, analysis):
        analysis.engine.advance_to_next_scenario()
        analysis.purchase_hint()
        assert analysis.engine.state.capital == 8000.0

    def test_record_purchase(self, analysis):
        assert analysis.record_purchase(FOOD, 5)
        (action,) = recorded(analysis, PlayerActionType.STOCK_PURCHASE)
        assert action.details.purchased_sector == FOOD
        assert action.details.quantity == 5
        assert action.details.is_correct

    def test_rejected_purchase_not_recorded(self, analysis):
        assert not analysis.record_purchase(FOOD, 1000)
        assert recorded(analysis, PlayerActionType.STOCK_PURCHASE) == []


class TestScenarioChange:
    """Tests for resetting selections on a new scenario."""

    def test_selections_reset(self, analysis):
        analysis.select_hypothesis(0)
        analysis.select_sectors(FOOD, METALS)
        analysis.engine.advance_to_next_scenario()
        assert analysis.scenario_index == 1
        assert analysis.hypothesis is None
        assert analysis.sectors is None

    def test_new_hypothesis_recorded_in_new_scenario(self, analysis):
        analysis.select_hypothesis(0)
        analysis.engine.advance_to_next_scenario()
        action = analysis.select_hypothesis(0)
        assert action is not None
        assert action.scenario_id == 1
