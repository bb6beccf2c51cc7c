"""Tests for metric and test validation rules."""

import pytest

from marketlab.engine.validator import (
    MIXED_METRICS_MESSAGE,
    NO_METRICS_MESSAGE,
    SAME_METRICS_MESSAGE,
    TOO_MANY_METRICS_MESSAGE,
    USE_CHI_SQUARE_MESSAGE,
    USE_T_TEST_MESSAGE,
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
from marketlab.models import Hypothesis, MarketSituation, MetricType, TestKind


class TestMetricNames:
    """Tests for metric name normalization and lookup."""

    @pytest.mark.parametrize(
        "label,expected",
        [
            ("mean_return", "Mean Return"),
            ("MEAN RETURN", "Mean Return"),
            ("  Mean   Return ", "Mean Return"),
            ("High-Volatility Days", "High Volatility Days"),
            ("proportion_high_volatility_days", "High Volatility Days"),
            ("distribution of return categories", "Distribution of Return Categories"),
        ],
    )
    def test_normalize(self, label, expected):
        assert normalize_metric_name(label) == expected

    def test_unknown_label_is_stripped(self):
        assert normalize_metric_name("  Sharpe Ratio ") == "Sharpe Ratio"

    def test_id_round_trip(self):
        assert metric_name_for_id("mean_loss") == "Mean Loss"
        assert metric_id_for_name("Mean Loss") == "mean_loss"
        assert metric_id_for_name("positive return days") == "proportion_positive_days"

    def test_unknown_ids(self):
        assert metric_name_for_id("sharpe") is None
        assert metric_id_for_name("Sharpe Ratio") is None

    def test_metric_types(self):
        assert get_metric_type("Median Return") == MetricType.NUMERICAL
        assert get_metric_type("Negative Return Days") == MetricType.CATEGORICAL
        assert get_metric_type("Distribution of Return Categories") == MetricType.CATEGORICAL
        assert get_metric_type("Sharpe Ratio") == MetricType.MIXED


class TestValidateMetrics:
    """Tests for metric selection consistency."""

    def test_empty_selection(self):
        result = validate_metrics([])
        assert not result.is_valid
        assert result.error_message == NO_METRICS_MESSAGE
        assert result.metric_type == MetricType.MIXED

    def test_single_metric(self):
        result = validate_metrics(["Mean Return"])
        assert result.is_valid
        assert result.metric_type == MetricType.NUMERICAL

    def test_same_metric_twice(self):
        result = validate_metrics(["Positive Return Days", "positive_return_days"])
        assert result.is_valid
        assert result.metric_type == MetricType.CATEGORICAL

    def test_two_numerical_metrics(self):
        result = validate_metrics(["Mean Return", "Median Return"])
        assert not result.is_valid
        assert result.error_message == SAME_METRICS_MESSAGE
        assert result.metric_type == MetricType.NUMERICAL

    def test_two_categorical_metrics(self):
        result = validate_metrics(["Positive Return Days", "Negative Return Days"])
        assert not result.is_valid
        assert result.error_message == SAME_METRICS_MESSAGE
        assert result.metric_type == MetricType.CATEGORICAL

    def test_mixed_metrics(self):
        result = validate_metrics(["Mean Return", "Positive Return Days"])
        assert not result.is_valid
        assert result.error_message == MIXED_METRICS_MESSAGE
        assert result.metric_type == MetricType.MIXED

    def test_too_many_metrics(self):
        result = validate_metrics(["Mean Return"] * 3)
        assert not result.is_valid
        assert result.error_message == TOO_MANY_METRICS_MESSAGE


class TestValidateTestForMetrics:
    """Tests for matching tests to metric types."""

    def test_t_test_on_numerical(self):
        assert validate_test_for_metrics(TestKind.T_TEST, MetricType.NUMERICAL).is_valid

    def test_chi_square_on_categorical(self):
        assert validate_test_for_metrics("Chi-Square Test", "categorical").is_valid

    def test_chi_square_on_numerical(self):
        result = validate_test_for_metrics(TestKind.CHI_SQUARE, MetricType.NUMERICAL)
        assert not result.is_valid
        assert result.error_message == USE_T_TEST_MESSAGE

    def test_t_test_on_categorical(self):
        result = validate_test_for_metrics(TestKind.T_TEST, MetricType.CATEGORICAL)
        assert not result.is_valid
        assert result.error_message == USE_CHI_SQUARE_MESSAGE

    def test_mixed_fails_any_test(self):
        for kind in TestKind:
            result = validate_test_for_metrics(kind, MetricType.MIXED)
            assert not result.is_valid
            assert result.error_message == MIXED_METRICS_MESSAGE

    def test_is_test_appropriate(self):
        assert is_test_appropriate("t-test", "numerical")
        assert is_test_appropriate(TestKind.CHI_SQUARE, MetricType.CATEGORICAL)
        assert not is_test_appropriate(TestKind.T_TEST, MetricType.CATEGORICAL)
        assert not is_test_appropriate(TestKind.T_TEST, MetricType.MIXED)

    def test_error_messages(self):
        assert "apples and oranges" in get_test_error_message(TestKind.T_TEST, MetricType.MIXED)
        assert "Use Chi-Square" in get_test_error_message(TestKind.T_TEST, MetricType.CATEGORICAL)
        assert "Use T-Test" in get_test_error_message(TestKind.CHI_SQUARE, MetricType.NUMERICAL)


class TestHypothesisMetric:
    """Tests for matching metrics to hypotheses."""

    @pytest.mark.parametrize(
        "statement,expected",
        [
            ("The mean return of A is higher than B.", "Mean Return"),
            ("A has a higher median return than B.", "Median Return"),
            ("A shows more high volatility days than B.", "High Volatility Days"),
            ("The proportion of days with positive returns for A is higher.", "Positive Return Days"),
            ("A suffers more losses than B.", "Negative Return Days"),
            ("A and B are friends.", None),
        ],
    )
    def test_metric_for_hypothesis(self, statement, expected):
        assert metric_for_hypothesis(statement) == expected

    def test_matching_metric(self, repo):
        situations = repo.list_market_situations()
        result = validate_metrics_match_hypothesis(["Mean Return"], situations, 0, 0)
        assert result.is_valid
        assert result.metric_type == MetricType.NUMERICAL

    def test_wrong_metric(self, repo):
        situations = repo.list_market_situations()
        result = validate_metrics_match_hypothesis(["Positive Return Days"], situations, 0, 0)
        assert not result.is_valid
        assert result.error_message == (
            "Positive Return Days does not match the hypothesis. "
            "It is about Mean Return, a numerical metric."
        )

    def test_inconsistent_selection_reported_first(self, repo):
        situations = repo.list_market_situations()
        result = validate_metrics_match_hypothesis(["Mean Return", "Mean Gain"], situations, 0, 0)
        assert result.error_message == SAME_METRICS_MESSAGE

    def test_unknown_scenario(self, repo):
        situations = repo.list_market_situations()
        result = validate_metrics_match_hypothesis(["Mean Return"], situations, 99)
        assert not result.is_valid
        assert result.error_message == "Unknown scenario 99."

    def test_unknown_hypothesis(self, repo):
        situations = repo.list_market_situations()
        result = validate_metrics_match_hypothesis(["Mean Return"], situations, 0, 42)
        assert not result.is_valid
        assert result.error_message == "Unknown hypothesis 42 in scenario 0."

    def test_explicit_metric_overrides_wording(self, small_situations):
        result = validate_metrics_match_hypothesis(["Positive Return Days"], small_situations, 1, 0)
        assert result.is_valid

    def test_undetectable_metric_accepts_consistent_selection(self):
        situation = MarketSituation(
            description="Quiet market",
            hypotheses=(Hypothesis(statement="Alpha and Beta are friends."),),
        )
        result = validate_metrics_match_hypothesis(["Mean Gain"], [situation], 0, 0)
        assert result.is_valid
