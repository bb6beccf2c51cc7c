"""Result models returned by the statistics and validation layers.

Wrong choices are never errors here: they come back as results carrying a
flag and a human-readable explanation.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from marketlab.models.actions import PlayerAction
from marketlab.models.market import PerformanceGroup


class TestKind(str, Enum):
    """Statistical tests the player can run."""

    __test__ = False

    T_TEST = "T-Test"
    CHI_SQUARE = "Chi-Square"

    @classmethod
    def parse(cls, value: str | TestKind) -> Optional[TestKind]:
        """Resolve free-text test names ("t-test", "Chi-Square Test", ...).

        Returns:
            The matching TestKind, or None if the name is not recognized
        """
        if isinstance(value, TestKind):
            return value
        normalized = value.strip().lower().replace("_", "-").replace(" ", "-")
        if normalized in ("t-test", "ttest", "t"):
            return cls.T_TEST
        if normalized in ("chi-square", "chi-square-test", "chi-squared", "chisquare", "chi2"):
            return cls.CHI_SQUARE
        return None


class TestResult(BaseModel):
    """Outcome of one statistical test execution.

    Attributes:
        p_value: Approximate p-value in (0, 1]
        statistic: Test statistic (|t| or chi-square)
        significant: Whether p_value < threshold
        test_kind: Which test produced the result; None if the requested
            test name was not recognized
        is_inappropriate: True if the test did not fit the data shape and
            the result is a synthesized, inconclusive one
    """

    __test__ = False

    model_config = ConfigDict(frozen=True)

    p_value: float = Field(..., ge=0.0, le=1.0)
    statistic: float = Field(..., ge=0.0)
    significant: bool
    test_kind: Optional[TestKind] = Field(default=None)
    is_inappropriate: bool = Field(default=False)

    @property
    def label(self) -> str:
        return self.test_kind.value if self.test_kind is not None else "Unknown test"


class MetricType(str, Enum):
    """Data type of a metric selection."""

    NUMERICAL = "numerical"
    CATEGORICAL = "categorical"
    MIXED = "mixed"


class MetricValidationResult(BaseModel):
    """Verdict of a metric or test validation rule."""

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    error_message: Optional[str] = Field(default=None)
    metric_type: MetricType = Field(default=MetricType.MIXED)


class GroupChange(str, Enum):
    """How a sector's performance group moved between two scenarios."""

    IMPROVED = "improved"
    WORSENED = "worsened"
    STABLE = "stable"


class SectorPerformance(BaseModel):
    """A sector's performance group in this and the previous scenario."""

    model_config = ConfigDict(frozen=True)

    sector: str
    previous_group: PerformanceGroup
    current_group: PerformanceGroup
    change: GroupChange


class ScenarioPerformance(BaseModel):
    """End-of-scenario summary shown to the player.

    Attributes:
        scenario_index: 0-based scenario index
        scenario_description: Scenario narrative
        starting_value: Total value when the scenario started
        ending_value: Total value now
        profit: ending_value - starting_value
        profit_percentage: Profit relative to starting_value, in percent
        actions: Actions recorded in the scenario
        correct_decisions: Actions judged correct
        incorrect_decisions: Actions judged incorrect
        sector_performance: Per-sector group change against the previous scenario
    """

    model_config = ConfigDict(frozen=True)

    scenario_index: int = Field(..., ge=0)
    scenario_description: str
    starting_value: float
    ending_value: float
    profit: float
    profit_percentage: float
    actions: tuple[PlayerAction, ...] = Field(default=())
    correct_decisions: int = Field(default=0, ge=0)
    incorrect_decisions: int = Field(default=0, ge=0)
    sector_performance: tuple[SectorPerformance, ...] = Field(default=())
