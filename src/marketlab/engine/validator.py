"""Metric and test validation rules for Market Lab.

Pure functions that decide whether a player's metric choice is internally
consistent, whether the chosen test fits the metric type, and whether the
metric is the one the active hypothesis asks about. Every verdict is
returned as a MetricValidationResult; nothing here raises.

Rules for validate_metrics:
- No metrics: invalid
- One metric, or the same metric twice: valid, typed by the metric
- Two different metrics of the same type: invalid (compare like with like)
- Two metrics of different types: invalid, mixed
- More than two: invalid, mixed
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

from marketlab.models import MarketSituation, MetricType, MetricValidationResult, TestKind

NUMERICAL_METRIC_NAMES = ("Mean Return", "Median Return", "Mean Gain", "Mean Loss")
CATEGORICAL_METRIC_NAMES = (
    "Positive Return Days",
    "Negative Return Days",
    "High Volatility Days",
    "Distribution of Return Categories",
)

METRIC_NAMES = {
    "mean_return": "Mean Return",
    "median_return": "Median Return",
    "mean_gain": "Mean Gain",
    "mean_loss": "Mean Loss",
    "proportion_positive_days": "Positive Return Days",
    "proportion_negative_days": "Negative Return Days",
    "proportion_high_volatility_days": "High Volatility Days",
    "distribution_return_categories": "Distribution of Return Categories",
}
"""Metric id to display name."""

# Checked in order; the first metric with a matching keyword wins
HYPOTHESIS_KEYWORDS = (
    ("Mean Gain", ("mean gain", "average gain")),
    ("Mean Loss", ("mean loss", "average loss")),
    ("Median Return", ("median return", "median")),
    ("High Volatility Days", ("high volatility", "volatility")),
    ("Negative Return Days", ("negative return days", "negative returns", "negative days", "losses")),
    ("Positive Return Days", ("positive return days", "positive returns", "positive days")),
    ("Distribution of Return Categories", ("return categories", "distribution of returns")),
    ("Mean Return", ("mean return", "average return", "mean")),
)

NO_METRICS_MESSAGE = "No metrics selected."
SAME_METRICS_MESSAGE = "Use the same metrics for comparison."
MIXED_METRICS_MESSAGE = "Use the same metrics, and don't mix up categorical and numerical metrics."
TOO_MANY_METRICS_MESSAGE = "Too many metrics selected. Please select only one or two metrics."
USE_T_TEST_MESSAGE = "You chose numerical data, use T-Test."
USE_CHI_SQUARE_MESSAGE = "You chose categorical data, use Chi-Square test."


def _fold(label: str) -> str:
    return re.sub(r"\s+", " ", label.strip().lower().replace("_", " ").replace("-", " "))


_FOLDED_NAMES = {_fold(name): name for name in NUMERICAL_METRIC_NAMES + CATEGORICAL_METRIC_NAMES}
_FOLDED_NAMES.update({_fold(metric_id): name for metric_id, name in METRIC_NAMES.items()})


def normalize_metric_name(label: str) -> str:
    """Map a free-text metric label to its display name.

    Handles case, underscores and hyphens, and metric ids. Unrecognized
    labels are returned stripped but otherwise unchanged.

    Examples:
        >>> normalize_metric_name("mean_return")
        'Mean Return'
        >>> normalize_metric_name("High-Volatility Days")
        'High Volatility Days'
    """
    return _FOLDED_NAMES.get(_fold(label), label.strip())


def metric_name_for_id(metric_id: str) -> Optional[str]:
    return METRIC_NAMES.get(metric_id)


def metric_id_for_name(name: str) -> Optional[str]:
    """Reverse of metric_name_for_id, accepting any label normalize_metric_name does."""
    display = normalize_metric_name(name)
    for metric_id, metric_name in METRIC_NAMES.items():
        if metric_name == display:
            return metric_id
    return None


def get_metric_type(metric_name: str) -> MetricType:
    """Classify one metric; anything unrecognized is MIXED."""
    name = normalize_metric_name(metric_name)
    if name in NUMERICAL_METRIC_NAMES:
        return MetricType.NUMERICAL
    if name in CATEGORICAL_METRIC_NAMES:
        return MetricType.CATEGORICAL
    return MetricType.MIXED


def validate_metrics(selected: Sequence[str]) -> MetricValidationResult:
    """Check that a metric selection is internally consistent."""
    if not selected:
        return MetricValidationResult(
            is_valid=False, error_message=NO_METRICS_MESSAGE, metric_type=MetricType.MIXED
        )

    names = [normalize_metric_name(m) for m in selected]
    if len(names) == 1 or (len(names) == 2 and names[0] == names[1]):
        return MetricValidationResult(is_valid=True, metric_type=get_metric_type(names[0]))

    if len(names) == 2:
        type_a = get_metric_type(names[0])
        type_b = get_metric_type(names[1])
        if type_a == type_b and type_a != MetricType.MIXED:
            return MetricValidationResult(
                is_valid=False, error_message=SAME_METRICS_MESSAGE, metric_type=type_a
            )
        return MetricValidationResult(
            is_valid=False, error_message=MIXED_METRICS_MESSAGE, metric_type=MetricType.MIXED
        )

    return MetricValidationResult(
        is_valid=False, error_message=TOO_MANY_METRICS_MESSAGE, metric_type=MetricType.MIXED
    )


def validate_test_for_metrics(test_kind: TestKind | str, metric_type: MetricType | str) -> MetricValidationResult:
    """Check that the chosen test fits the metric type.

    Numerical metrics need the T-Test, categorical metrics need the
    Chi-Square test, and mixed metrics fail with any test.
    """
    metric_type = MetricType(metric_type)
    kind = TestKind.parse(test_kind)
    if metric_type == MetricType.NUMERICAL and kind != TestKind.T_TEST:
        return MetricValidationResult(is_valid=False, error_message=USE_T_TEST_MESSAGE, metric_type=metric_type)
    if metric_type == MetricType.CATEGORICAL and kind != TestKind.CHI_SQUARE:
        return MetricValidationResult(
            is_valid=False, error_message=USE_CHI_SQUARE_MESSAGE, metric_type=metric_type
        )
    if metric_type == MetricType.MIXED:
        return MetricValidationResult(
            is_valid=False, error_message=MIXED_METRICS_MESSAGE, metric_type=metric_type
        )
    return MetricValidationResult(is_valid=True, metric_type=metric_type)


def metric_for_hypothesis(statement: str) -> Optional[str]:
    """Infer the metric a hypothesis statement is about.

    Returns:
        The metric display name, or None if no keyword matches
    """
    text = statement.lower()
    for name, keywords in HYPOTHESIS_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return name
    return None


def validate_metrics_match_hypothesis(
    selected: Sequence[str],
    scenarios: Sequence[MarketSituation],
    scenario_index: int,
    hypothesis_index: int = 0,
) -> MetricValidationResult:
    """Check a metric selection against the metric a hypothesis asks about.

    Args:
        selected: Metric labels chosen by the player
        scenarios: All market situations
        scenario_index: Index of the active scenario
        hypothesis_index: Index of the chosen hypothesis in that scenario

    Returns:
        Invalid results for unknown scenario or hypothesis indices, for
        inconsistent selections, and for consistent selections of the wrong
        metric. Hypotheses whose metric cannot be determined accept any
        consistent selection.
    """
    if not 0 <= scenario_index < len(scenarios):
        return MetricValidationResult(
            is_valid=False,
            error_message=f"Unknown scenario {scenario_index}.",
            metric_type=MetricType.MIXED,
        )
    hypotheses = scenarios[scenario_index].hypotheses
    if not 0 <= hypothesis_index < len(hypotheses):
        return MetricValidationResult(
            is_valid=False,
            error_message=f"Unknown hypothesis {hypothesis_index} in scenario {scenario_index}.",
            metric_type=MetricType.MIXED,
        )

    consistency = validate_metrics(selected)
    if not consistency.is_valid:
        return consistency

    hypothesis = hypotheses[hypothesis_index]
    if hypothesis.metric:
        expected = normalize_metric_name(hypothesis.metric)
    else:
        expected = metric_for_hypothesis(hypothesis.statement)
    if expected is None:
        return consistency

    chosen = normalize_metric_name(selected[0])
    if chosen != expected:
        return MetricValidationResult(
            is_valid=False,
            error_message=(
                f"{chosen} does not match the hypothesis. "
                f"It is about {expected}, a {get_metric_type(expected).value} metric."
            ),
            metric_type=consistency.metric_type,
        )
    return consistency


def is_test_appropriate(test_kind: TestKind | str, data_type: MetricType | str) -> bool:
    """Whether a test suits the data type of the chosen metrics."""
    data_type = MetricType(data_type)
    kind = TestKind.parse(test_kind)
    if data_type == MetricType.MIXED:
        return False
    if kind == TestKind.T_TEST and data_type == MetricType.NUMERICAL:
        return True
    return kind == TestKind.CHI_SQUARE and data_type == MetricType.CATEGORICAL


def get_test_error_message(test_kind: TestKind | str, data_type: MetricType | str) -> str:
    """Explain why a test does not suit a data type."""
    data_type = MetricType(data_type)
    kind = TestKind.parse(test_kind)
    if data_type == MetricType.MIXED:
        return (
            "You are comparing a numerical and a categorical variable. "
            "This is like comparing apples and oranges."
        )
    if kind == TestKind.T_TEST and data_type == MetricType.CATEGORICAL:
        return "T-Test is inappropriate for categorical data. Use Chi-Square instead."
    if kind == TestKind.CHI_SQUARE and data_type == MetricType.NUMERICAL:
        return "Chi-Square is inappropriate for numerical data. Use T-Test instead."
    return "Test selection is inappropriate for this data type."
