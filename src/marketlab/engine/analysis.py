"""Hypothesis analysis workflow for Market Lab.

HypothesisAnalysis is what a presentation layer calls while the player works
through one hypothesis: pick a hypothesis, pick two sectors, pick metrics,
run a test, and optionally buy a hint or act on the result by purchasing.
Every decision is judged before it is handed to the action tracker, so
recorded actions never need correcting afterwards.

Usage:
    analysis = HypothesisAnalysis(engine)
    analysis.select_hypothesis(0)
    analysis.select_sectors("Food & Beverages", "Precious Metals")
    run = analysis.run_analysis("T-Test", ["Mean Return", "Mean Return"])
    if run.result.significant:
        analysis.record_purchase("Food & Beverages", 10)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from marketlab.engine.game_engine import GameEngine
from marketlab.engine.validator import (
    metric_id_for_name,
    validate_metrics,
    validate_metrics_match_hypothesis,
    validate_test_for_metrics,
)
from marketlab.models import (
    ActionDetails,
    Hypothesis,
    MetricValidationResult,
    PlayerAction,
    PlayerActionType,
    TestKind,
    TestResult,
)
from marketlab.parameters import DEFAULT_SAMPLE_SIZE

logger = logging.getLogger(__name__)


@dataclass
class AnalysisRun:
    """Verdict on the player's choices plus the test they ran.

    Attributes:
        verdict: Whether metrics and test fit the hypothesis
        result: Test outcome on the generated samples (None when no sectors
            were selected)
    """

    verdict: MetricValidationResult
    result: Optional[TestResult] = None


class HypothesisAnalysis:
    """Records and evaluates a player's analysis of the active scenario.

    Selections reset whenever the engine moves to another scenario.
    """

    def __init__(self, engine: GameEngine, sample_size: int = DEFAULT_SAMPLE_SIZE):
        self.engine = engine
        self.context = engine.context
        self.sample_size = sample_size
        self._scenario_index = engine.state.current_situation_index
        self.hypothesis_index: Optional[int] = None
        self.sectors: Optional[tuple[str, str]] = None
        self._hints_bought: set[tuple[int, int]] = set()

    # Selections

    @property
    def scenario_index(self) -> int:
        self._sync()
        return self._scenario_index

    @property
    def hypotheses(self) -> tuple[Hypothesis, ...]:
        return self.engine.current_situation.hypotheses

    @property
    def hypothesis(self) -> Optional[Hypothesis]:
        """The selected hypothesis, if any."""
        self._sync()
        if self.hypothesis_index is None:
            return None
        return self.hypotheses[self.hypothesis_index]

    def select_hypothesis(self, index: int) -> Optional[PlayerAction]:
        """Choose the hypothesis to work on.

        Returns:
            The recorded action, or None if the index is unknown or a
            hypothesis was already recorded for this scenario
        """
        self._sync()
        if not 0 <= index < len(self.hypotheses):
            logger.warning(f"No hypothesis {index} in scenario {self._scenario_index}")
            return None
        self.hypothesis_index = index
        return self.context.tracker.add_action(
            PlayerActionType.HYPOTHESIS_SELECTION,
            ActionDetails(hypothesis=self.hypotheses[index].statement, is_correct=True),
        )

    def sectors_match_hypothesis(self, sector_a: str, sector_b: str) -> bool:
        """Whether both sectors are different and named in the hypothesis."""
        hypothesis = self.hypothesis
        if hypothesis is None or sector_a == sector_b:
            return False
        statement = hypothesis.statement.lower()
        return sector_a.lower() in statement and sector_b.lower() in statement

    def select_sectors(self, sector_a: str, sector_b: str) -> Optional[PlayerAction]:
        """Choose the two sectors to compare."""
        self._sync()
        self.sectors = (sector_a, sector_b)
        is_correct = self.sectors_match_hypothesis(sector_a, sector_b)
        return self.context.tracker.add_action(
            PlayerActionType.SECTOR_SELECTION,
            ActionDetails(
                sectors=(sector_a, sector_b),
                is_correct=is_correct,
                error_message=None if is_correct else "These sectors are not the ones the hypothesis compares.",
            ),
        )

    def check_metrics(self, metrics: Sequence[str]) -> MetricValidationResult:
        """Judge a metric choice against the selected hypothesis."""
        return validate_metrics_match_hypothesis(
            list(metrics),
            self.context.situations,
            self.scenario_index,
            self.hypothesis_index if self.hypothesis_index is not None else 0,
        )

    def select_metrics(self, metrics: Sequence[str]) -> Optional[PlayerAction]:
        """Choose the metric(s) to compare."""
        verdict = self.check_metrics(metrics)
        return self.context.tracker.add_action(
            PlayerActionType.METRIC_SELECTION,
            ActionDetails(
                metrics=tuple(metrics),
                data_type=validate_metrics(list(metrics)).metric_type,
                is_correct=verdict.is_valid,
                error_message=verdict.error_message,
            ),
        )

    # Tests

    def execute_test(
        self,
        test_kind: TestKind | str,
        metrics: Sequence[str],
        sectors: Optional[tuple[str, str]] = None,
    ) -> MetricValidationResult:
        """Judge and record a test run.

        When the metrics do not match the hypothesis a failed metric
        selection is recorded instead of the test.

        Args:
            test_kind: Test the player chose
            metrics: Metrics being compared
            sectors: Sectors being compared, recorded as a selection if given

        Returns:
            The verdict that was recorded
        """
        if sectors is not None:
            self.select_sectors(*sectors)

        match = self.check_metrics(metrics)
        data_type = validate_metrics(list(metrics)).metric_type
        if not match.is_valid:
            self.context.tracker.add_action(
                PlayerActionType.METRIC_SELECTION,
                ActionDetails(
                    metrics=tuple(metrics),
                    data_type=data_type,
                    is_correct=False,
                    error_message=match.error_message,
                ),
            )
            return match

        verdict = validate_test_for_metrics(test_kind, data_type)
        kind = TestKind.parse(test_kind)
        self.context.tracker.add_action(
            PlayerActionType.TEST_EXECUTION,
            ActionDetails(
                test_kind=kind.value if kind else str(test_kind),
                metrics=tuple(metrics),
                data_type=data_type,
                is_correct=verdict.is_valid,
                error_message=verdict.error_message,
            ),
        )
        return verdict

    def sample(self, metric: str, sector_name: str) -> list[float]:
        """Generate a sector's sample for a metric id or display name."""
        metric_id = metric_id_for_name(metric) or metric
        group = self.context.classifier.classify(sector_name, self.scenario_index)
        return self.context.data_generator.sample(
            metric_id, group, sample_size=self.sample_size, sector_name=sector_name
        )

    def run_sector_test(
        self,
        metric: str,
        sector_a: str,
        sector_b: str,
        test_kind: TestKind | str,
    ) -> TestResult:
        """Run a test on one metric for two sectors in the active scenario."""
        threshold = self.engine.current_situation.test_criteria.threshold
        return self.context.test_engine.run_test(
            test_kind,
            self.sample(metric, sector_a),
            self.sample(metric, sector_b),
            threshold=threshold,
        )

    def run_analysis(
        self,
        test_kind: TestKind | str,
        metrics: Sequence[str],
        sectors: Optional[tuple[str, str]] = None,
    ) -> AnalysisRun:
        """Record a test run and compute its result on generated samples.

        Sample A uses the first metric on the first sector, sample B the
        last metric on the second sector.
        """
        if sectors is None:
            sectors = self.sectors
        verdict = self.execute_test(test_kind, metrics, sectors)
        if sectors is None or not metrics:
            return AnalysisRun(verdict=verdict)

        threshold = self.engine.current_situation.test_criteria.threshold
        result = self.context.test_engine.run_test(
            test_kind,
            self.sample(metrics[0], sectors[0]),
            self.sample(metrics[-1], sectors[1]),
            threshold=threshold,
        )
        logger.info(
            f"{result.label} on {sectors[0]} vs {sectors[1]}: "
            f"p={result.p_value:.3f} significant={result.significant}"
        )
        return AnalysisRun(verdict=verdict, result=result)

    # Money

    def purchase_hint(self) -> Optional[str]:
        """Buy the expert hint for the selected hypothesis.

        A hint bought once in a scenario can be read again for free.

        Returns:
            The hint text, or None if the player cannot afford it
        """
        self._sync()
        index = self.hypothesis_index if self.hypothesis_index is not None else 0
        if not self.hypotheses:
            return None
        key = (self._scenario_index, index)
        if key not in self._hints_bought:
            cost = self.engine.current_hint_cost()
            if not self.engine.pay_for_hint(cost):
                logger.info(f"Hint costs {cost:.0f}, capital is {self.engine.state.capital:.2f}")
                return None
            self._hints_bought.add(key)
        return self.hypotheses[index].narrative_hint

    def record_purchase(self, sector_name: str, quantity: int) -> bool:
        """Buy a sector and log the purchase if it went through."""
        if not self.engine.purchase(sector_name, quantity):
            return False
        self.context.tracker.add_action(
            PlayerActionType.STOCK_PURCHASE,
            ActionDetails(purchased_sector=sector_name, quantity=quantity, is_correct=True),
        )
        return True

    def _sync(self) -> None:
        index = self.engine.state.current_situation_index
        if index != self._scenario_index:
            self._scenario_index = index
            self.hypothesis_index = None
            self.sectors = None
