"""Statistical test engine for Market Lab.

Two tests are supported:
- T-Test: Welch-style statistic |mean1 - mean2| / sqrt(sd1^2/n1 + sd2^2/n2)
  with population standard deviations
- Chi-Square: 2x3 contingency table of category counts (0=loss, 1=neutral,
  2=gain), summing (observed - expected)^2 / expected over nonzero cells

Both map their statistic to a p-value with a logistic stand-in for the true
distribution tail:

    p = 1 / (1 + exp(0.717 * statistic))

Running a test that does not fit the data shape is not an error. The engine
skips the computation and returns a plausible but inconclusive result flagged
as inappropriate, so the wrong test quietly misleads instead of failing.
"""

from __future__ import annotations

import logging
import math
import random
import statistics
import sys
from dataclasses import dataclass
from typing import Optional, Sequence

from marketlab.models import TestKind, TestResult
from marketlab.parameters import (
    CACHE_KEY_VALUE_WIDTH,
    CATEGORICAL_VALUES,
    DEFAULT_SIGNIFICANCE_THRESHOLD,
    INAPPROPRIATE_P_RANGE,
    INAPPROPRIATE_STATISTIC_RANGES,
    LOGISTIC_SLOPE,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Computed:
    """Threshold-independent part of a test result."""

    p_value: float
    statistic: float
    is_inappropriate: bool = False


NO_EVIDENCE = _Computed(p_value=1.0, statistic=0.0)


def logistic_p_value(statistic: float) -> float:
    """Approximate p-value for a non-negative test statistic.

    Monotonically decreasing in the statistic and bounded in (0, 1).

    Examples:
        >>> logistic_p_value(0.0)
        0.5
    """
    exponent = LOGISTIC_SLOPE * statistic
    if exponent > 700:
        return sys.float_info.min
    return max(1.0 / (1.0 + math.exp(exponent)), sys.float_info.min)


def is_categorical_sample(sample: Sequence[float]) -> bool:
    """True if every value is a category code (0, 1 or 2)."""
    return all(value in CATEGORICAL_VALUES for value in sample)


def is_appropriate(kind: TestKind, sample_a: Sequence[float], sample_b: Sequence[float]) -> bool:
    """Whether a test fits the shape of both samples.

    A T-Test needs two numerical samples; a Chi-Square test needs two
    categorical ones.
    """
    categorical_a = is_categorical_sample(sample_a)
    categorical_b = is_categorical_sample(sample_b)
    if kind == TestKind.T_TEST:
        return not categorical_a and not categorical_b
    return categorical_a and categorical_b


def t_test(sample_a: Sequence[float], sample_b: Sequence[float]) -> tuple[float, float]:
    """Welch-style t-test.

    Returns:
        (p_value, statistic); (1.0, 0.0) when either sample has fewer than two
        points or the standard error is zero
    """
    if len(sample_a) < 2 or len(sample_b) < 2:
        return 1.0, 0.0

    mean_a = statistics.fmean(sample_a)
    mean_b = statistics.fmean(sample_b)
    sd_a = statistics.pstdev(sample_a, mean_a)
    sd_b = statistics.pstdev(sample_b, mean_b)
    if sd_a == 0 and sd_b == 0:
        return 1.0, 0.0

    standard_error = math.sqrt(sd_a * sd_a / len(sample_a) + sd_b * sd_b / len(sample_b))
    if standard_error == 0:
        return 1.0, 0.0

    statistic = abs(mean_a - mean_b) / standard_error
    return logistic_p_value(statistic), statistic


def category_counts(sample: Sequence[float]) -> list[int]:
    """Count occurrences of each category code."""
    counts = [0] * len(CATEGORICAL_VALUES)
    for value in sample:
        if value in CATEGORICAL_VALUES:
            counts[CATEGORICAL_VALUES.index(value)] += 1
    return counts


def chi_square_test(sample_a: Sequence[float], sample_b: Sequence[float]) -> tuple[float, float]:
    """Chi-square test of independence on two categorical samples.

    Returns:
        (p_value, statistic); (1.0, 0.0) when the table is empty
    """
    observed = [category_counts(sample_a), category_counts(sample_b)]
    row_sums = [sum(row) for row in observed]
    col_sums = [observed[0][j] + observed[1][j] for j in range(len(CATEGORICAL_VALUES))]
    total = sum(row_sums)
    if total == 0:
        return 1.0, 0.0

    statistic = 0.0
    for i, row in enumerate(observed):
        for j, count in enumerate(row):
            expected = row_sums[i] * col_sums[j] / total
            if expected != 0:
                statistic += (count - expected) ** 2 / expected
    return logistic_p_value(statistic), statistic


class StatisticalTestEngine:
    """Runs statistical tests and caches their results by sample content."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._random = rng if rng is not None else random.Random()
        self._cache: dict[str, _Computed] = {}

    def run_test(
        self,
        kind: TestKind | str,
        sample_a: Sequence[float],
        sample_b: Sequence[float],
        threshold: float = DEFAULT_SIGNIFICANCE_THRESHOLD,
    ) -> TestResult:
        """Run a statistical test on two samples.

        Args:
            kind: TestKind or a free-text name such as "t-test"
            sample_a: First sample
            sample_b: Second sample
            threshold: Significance threshold for p_value

        Returns:
            TestResult. Inappropriate tests come back flagged and never
            significant; degenerate input comes back with p=1, statistic=0.
            An unrecognized test name comes back flagged with no test_kind.
        """
        test_kind = TestKind.parse(kind)
        if test_kind is None:
            logger.warning(f"Unknown test kind '{kind}'. Valid kinds: {[k.value for k in TestKind]}")
            return TestResult(
                p_value=NO_EVIDENCE.p_value,
                statistic=NO_EVIDENCE.statistic,
                significant=False,
                is_inappropriate=True,
            )

        key = self._cache_key(test_kind, sample_a, sample_b)
        computed = self._cache.get(key)
        if computed is None:
            computed = self._compute(test_kind, sample_a, sample_b)
            self._cache[key] = computed
        else:
            logger.debug(f"Test cache hit for {test_kind.value}")

        return TestResult(
            p_value=computed.p_value,
            statistic=computed.statistic,
            significant=not computed.is_inappropriate and computed.p_value < threshold,
            test_kind=test_kind,
            is_inappropriate=computed.is_inappropriate,
        )

    def clear_cache(self) -> None:
        self._cache.clear()

    def cache_size(self) -> int:
        return len(self._cache)

    def _compute(self, kind: TestKind, sample_a: Sequence[float], sample_b: Sequence[float]) -> _Computed:
        if not is_appropriate(kind, sample_a, sample_b):
            logger.info(f"{kind.value} does not fit the sample shape; returning an inconclusive result")
            return self._inconclusive(kind)
        if kind == TestKind.T_TEST:
            p_value, statistic = t_test(sample_a, sample_b)
        else:
            p_value, statistic = chi_square_test(sample_a, sample_b)
        return _Computed(p_value=p_value, statistic=statistic)

    def _inconclusive(self, kind: TestKind) -> _Computed:
        low_p, high_p = INAPPROPRIATE_P_RANGE
        low_s, high_s = INAPPROPRIATE_STATISTIC_RANGES[kind.value]
        return _Computed(
            p_value=self._random.uniform(low_p, high_p),
            statistic=self._random.uniform(low_s, high_s),
            is_inappropriate=True,
        )

    @staticmethod
    def _cache_key(kind: TestKind, sample_a: Sequence[float], sample_b: Sequence[float]) -> str:
        width = CACHE_KEY_VALUE_WIDTH
        part_a = ",".join(str(v)[:width] for v in sample_a)
        part_b = ",".join(str(v)[:width] for v in sample_b)
        return f"{kind.value}|{part_a}|{part_b}"
