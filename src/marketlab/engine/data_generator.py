"""Synthetic sample generation for Market Lab.

Turns (metric, performance group, sector) into pseudo-random sample arrays
that players run statistical tests on.

Metric families:
- Normal metrics (mean/median return, mean gain/loss): Box-Muller draws scaled
  to the metric's mean and standard deviation, rounded to 2 decimals
- Binary metrics (positive/negative/high-volatility days): 1 if a uniform
  variate falls below the metric's success probability, else 0
- Categorical metric (return categories): 0=loss, 1=neutral, 2=gain, drawn by
  cumulative-probability inversion

When a sector name is given, two fractions derived from the name bias the
distribution parameters (see SEED_BLEND): normal metrics get a mean offset and
a spread factor, binary metrics a shifted log-odds, the categorical metric a
tilt towards loss or gain. The same sector therefore has a recognizable
distribution centre across calls, while draws still use the full range of a
plain uniform variate and vary from call to call.
"""

from __future__ import annotations

import logging
import math
import random
from typing import Optional

from marketlab.models import PerformanceGroup
from marketlab.parameters import (
    BASE_METRIC_PARAMETERS,
    BINARY_METRICS,
    CATEGORICAL_METRICS,
    DEFAULT_SAMPLE_SIZE,
    FALLBACK_METRIC_PARAMETERS,
    NEGATIVE_ADJUSTMENTS,
    POSITIVE_ADJUSTMENTS,
    SEED_BLEND,
)

logger = logging.getLogger(__name__)

# Smallest uniform value fed to the Box-Muller log
_MIN_UNIFORM = 1e-12

# Probabilities are kept this far from 0 and 1 before taking log-odds
_MIN_PROBABILITY = 1e-6

CacheKey = tuple


def sector_seed(sector_name: str) -> int:
    """Derive a 32-bit seed from a sector name.

    Each character is weighted by its position and mixed non-linearly, so
    anagrams and names sharing a prefix get unrelated seeds.

    Examples:
        >>> sector_seed("Precious Metals") == sector_seed("Precious Metals")
        True
    """
    h = 0
    for i, ch in enumerate(sector_name):
        h = (h * 31 + ord(ch) * (i + 1)) % 2**32
        h ^= h >> 13
    return h


def seed_fractions(sector_name: str) -> tuple[float, float]:
    """Map a sector name to two fractions in (0, 1)."""
    seed = sector_seed(sector_name)
    low = (seed & 0xFFFF) + 1
    high = (seed >> 16) + 1
    return low / 65537.0, high / 65537.0


def _resolve_parameters(metric_id: str, group: PerformanceGroup) -> dict:
    base = dict(BASE_METRIC_PARAMETERS.get(metric_id, FALLBACK_METRIC_PARAMETERS))
    if group == PerformanceGroup.POSITIVE:
        adjustments = POSITIVE_ADJUSTMENTS.get(metric_id, {})
    elif group == PerformanceGroup.NEGATIVE:
        adjustments = NEGATIVE_ADJUSTMENTS.get(metric_id, {})
    else:
        adjustments = {}

    if "mean" in adjustments:
        base["mean"] = base["mean"] + adjustments["mean"]
    if "probability" in adjustments:
        delta, bound = adjustments["probability"]
        shifted = base["probability"] + delta
        base["probability"] = min(bound, shifted) if delta > 0 else max(bound, shifted)
    if "categorical_distribution" in adjustments:
        base["categorical_distribution"] = tuple(adjustments["categorical_distribution"])
    return base


def _logit(p: float) -> float:
    return math.log(p / (1.0 - p))


def _bias_parameters(params: dict, fractions: tuple[float, float], weight: float) -> dict:
    """Shift resolved parameters towards a sector.

    Each fraction is mapped to a signed offset in [-weight, weight].
    """
    d1, d2 = fractions
    shift = weight * (2.0 * d1 - 1.0)
    biased = dict(params)
    if "categorical_distribution" in biased:
        n = len(biased["categorical_distribution"])
        tilted = [
            p * math.exp(shift * (index - (n - 1) / 2.0))
            for index, p in enumerate(biased["categorical_distribution"])
        ]
        total = sum(tilted)
        biased["categorical_distribution"] = tuple(p / total for p in tilted)
    elif "probability" in biased:
        p = min(max(biased["probability"], _MIN_PROBABILITY), 1.0 - _MIN_PROBABILITY)
        biased["probability"] = 1.0 / (1.0 + math.exp(-(_logit(p) + shift)))
    else:
        biased["mean"] = biased["mean"] + shift * biased["std_dev"]
        biased["std_dev"] = biased["std_dev"] * (1.0 + weight * (d2 - 0.5))
    return biased


class SeededDataGenerator:
    """Generates and caches synthetic metric samples.

    The cache is owned by the instance; a SimulationContext holds the one
    generator used by a session.
    """

    def __init__(self, rng: Optional[random.Random] = None, seed_blend: float = SEED_BLEND):
        """Initialize the generator.

        Args:
            rng: Random source (default: a fresh unseeded Random)
            seed_blend: Strength of the sector bias on the parameters
        """
        self._random = rng if rng is not None else random.Random()
        self.seed_blend = seed_blend
        self._cache: dict[CacheKey, list[float]] = {}

    def parameters_for(
        self,
        metric_id: str,
        group: PerformanceGroup | str,
        sector_name: Optional[str] = None,
    ) -> dict:
        """Return the distribution parameters used for a metric and group.

        With a sector name, the parameters are the sector-biased ones the
        sample is actually drawn from.
        """
        params = _resolve_parameters(metric_id, PerformanceGroup(group))
        if sector_name and self.seed_blend:
            params = _bias_parameters(params, seed_fractions(sector_name), self.seed_blend)
        return params

    def sample(
        self,
        metric_id: str,
        performance_group: PerformanceGroup | str,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
        sector_name: Optional[str] = None,
        use_cache: bool = True,
    ) -> list[float]:
        """Generate a sample for a metric.

        Args:
            metric_id: Metric id such as "mean_return"; unknown ids are drawn
                from a default normal distribution
            performance_group: Group the sector belongs to in this scenario
            sample_size: Number of observations
            sector_name: Sector to bias the draws towards, if any
            use_cache: Return the cached sample for identical inputs

        Returns:
            A new list of observations; never the cached list itself
        """
        group = PerformanceGroup(performance_group)
        params = self.parameters_for(metric_id, group, sector_name)
        key = self._cache_key(metric_id, sector_name, params, sample_size)

        if use_cache and key in self._cache:
            logger.debug(f"Sample cache hit for {metric_id}/{sector_name}/{group.value}")
            return list(self._cache[key])

        if metric_id in CATEGORICAL_METRICS:
            values = self._categorical(params["categorical_distribution"], sample_size)
        elif metric_id in BINARY_METRICS:
            values = self._binary(params["probability"], sample_size)
        else:
            values = self._normal(params["mean"], params["std_dev"], sample_size)

        if use_cache:
            self._cache[key] = values
        return list(values)

    def clear_cache(self) -> None:
        self._cache.clear()

    def cache_size(self) -> int:
        return len(self._cache)

    @staticmethod
    def _cache_key(metric_id: str, sector_name: Optional[str], params: dict, size: int) -> CacheKey:
        resolved = tuple(sorted((name, value) for name, value in params.items()))
        return (metric_id, sector_name, resolved, size)

    def _normal(self, mean: float, std_dev: float, size: int) -> list[float]:
        values = []
        for _ in range(size):
            u1 = max(self._random.random(), _MIN_UNIFORM)
            u2 = self._random.random()
            z = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
            values.append(round(mean + z * std_dev, 2))
        return values

    def _binary(self, probability: float, size: int) -> list[float]:
        return [1 if self._random.random() < probability else 0 for _ in range(size)]

    def _categorical(self, distribution: tuple[float, ...], size: int) -> list[float]:
        values = []
        for _ in range(size):
            u = self._random.random()
            cumulative = 0.0
            category = len(distribution) - 1
            for index, p in enumerate(distribution):
                cumulative += p
                if u < cumulative:
                    category = index
                    break
            values.append(category)
        return values
