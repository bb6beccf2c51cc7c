"""Simulation parameters for Market Lab.

This module is the SINGLE SOURCE OF TRUTH for all tunable simulation constants.

Parameter Categories:
- Economy: starting capital, hint pricing
- Time: tick and update intervals, scenario length
- Price Drift: per-group percentage moves applied on each time advance
- Data Generation: base distribution table and group adjustments
- Statistics: p-value approximation and inconclusive-result ranges

Usage:
    from marketlab.parameters import INITIAL_CAPITAL, HISTORY_LIMIT
"""

# =============================================================================
# ECONOMY PARAMETERS
# =============================================================================

INITIAL_CAPITAL = 10000.0
"""Cash the player starts with, and the first scenario's profit/loss baseline."""

HINT_COST_PER_LEVEL = 1000.0
"""Price of an expert hint per scenario level.

Level is the 1-based scenario number, so the hint in the third scenario costs
3000 coins. Hints get more expensive as the player should need them less.
"""

DEFAULT_TOOLS = ("T-Test", "Chi-Square")
"""Statistical tools available from the start of a fresh game."""

MEETING_UNLOCKS = ((3, "T-Test"), (9, "Chi-Square Test"))
"""(mistake threshold, tool) pairs unlocked when a consultation meeting completes."""


# =============================================================================
# TIME PARAMETERS
# =============================================================================

TICK_INTERVAL_MS = 100
"""How often the auto-progress timer fires."""

UPDATE_INTERVAL_MS = 1000
"""Minimum wall-clock gap between two timer-driven time advances.

The timer fires every TICK_INTERVAL_MS but only advances state once this much
time has elapsed since the last recorded update.
"""

STEPS_PER_SCENARIO = 10
"""Number of time steps in one scenario (steps are counted 0..9)."""

COMPLETION_STEP = STEPS_PER_SCENARIO - 1
"""Step count at which the driver declares the scenario complete."""

HISTORY_LIMIT = 10
"""Maximum number of prices kept in each sector's rolling price history."""


# =============================================================================
# PRICE DRIFT PARAMETERS
# =============================================================================

PRICE_MOVE_RANGES = {
    "positive": (0.02, 0.08),
    "neutral": (-0.03, 0.03),
    "negative": (-0.08, -0.02),
}
"""Uniform percentage move range per performance group for one time advance.

Positive sectors gain 2-8%, negative sectors lose 2-8%, neutral sectors drift
within +/-3%. Ten steps of a positive sector compound to roughly +65%.
"""


# =============================================================================
# DATA GENERATION PARAMETERS
# =============================================================================

DEFAULT_SAMPLE_SIZE = 200
"""Number of observations generated per sector and metric."""

NORMAL_METRICS = ("mean_return", "median_return", "mean_gain", "mean_loss")
BINARY_METRICS = (
    "proportion_positive_days",
    "proportion_negative_days",
    "proportion_high_volatility_days",
)
CATEGORICAL_METRICS = ("distribution_return_categories",)

BASE_METRIC_PARAMETERS = {
    "mean_return": {"mean": 0.05, "std_dev": 0.04},
    "median_return": {"mean": 0.05, "std_dev": 0.035},
    "mean_gain": {"mean": 0.07, "std_dev": 0.03},
    "mean_loss": {"mean": -0.05, "std_dev": 0.025},
    "proportion_positive_days": {"probability": 0.6},
    "proportion_negative_days": {"probability": 0.3},
    "proportion_high_volatility_days": {"probability": 0.25},
    "distribution_return_categories": {"categorical_distribution": (0.3, 0.4, 0.3)},
}
"""Unadjusted (neutral) distribution parameters per metric id.

Categorical buckets are ordered loss, neutral, gain.
"""

FALLBACK_METRIC_PARAMETERS = {"mean": 0.05, "std_dev": 0.04}
"""Normal parameters used for metric ids missing from the base table."""

POSITIVE_ADJUSTMENTS = {
    "mean_return": {"mean": 0.05},
    "median_return": {"mean": 0.05},
    "mean_gain": {"mean": 0.03},
    "mean_loss": {"mean": 0.02},
    "proportion_positive_days": {"probability": (0.25, 0.85)},
    "proportion_negative_days": {"probability": (-0.15, 0.05)},
    "distribution_return_categories": {"categorical_distribution": (0.15, 0.3, 0.55)},
}
"""Favorable shifts for positive sectors.

Mean shifts are additive. Probability shifts are (delta, bound): a positive
delta is capped at the bound, a negative delta is floored at it. Categorical
entries replace the whole vector.
"""

NEGATIVE_ADJUSTMENTS = {
    "mean_return": {"mean": -0.07},
    "median_return": {"mean": -0.07},
    "mean_gain": {"mean": -0.03},
    "mean_loss": {"mean": -0.04},
    "proportion_positive_days": {"probability": (-0.25, 0.25)},
    "proportion_negative_days": {"probability": (0.25, 0.85)},
    "distribution_return_categories": {"categorical_distribution": (0.55, 0.3, 0.15)},
}
"""Unfavorable shifts for negative sectors. Same encoding as POSITIVE_ADJUSTMENTS."""

SEED_BLEND = 0.3
"""Strength of the sector-derived bias on distribution parameters.

0.0 leaves the parameters untouched. At 0.3 a sector moves a normal mean by up
to 0.3 standard deviations and a binary log-odds by up to 0.3, so the same
sector has a consistent centre while draws still cover the whole distribution.
"""


# =============================================================================
# STATISTICS PARAMETERS
# =============================================================================

DEFAULT_SIGNIFICANCE_THRESHOLD = 0.05

LOGISTIC_SLOPE = 0.717
"""Slope of the logistic p-value stand-in: p = 1 / (1 + exp(slope * statistic))."""

INAPPROPRIATE_P_RANGE = (0.07, 0.15)
"""p-value range for the inconclusive result reported for a mismatched test."""

INAPPROPRIATE_STATISTIC_RANGES = {
    "T-Test": (1.5, 2.0),
    "Chi-Square": (2.0, 3.0),
}

CATEGORICAL_VALUES = (0, 1, 2)
"""Sample values that make a sample categorical-shaped."""

CACHE_KEY_VALUE_WIDTH = 8
"""Characters of each value's string form kept in the test-result cache key."""
