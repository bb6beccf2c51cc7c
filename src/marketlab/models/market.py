"""Static market models for Market Lab.

Sectors and market situations (scenarios) are defined once from static data
and never mutated. Prices change during play, but those live in GameState;
a Sector's current_price is only the starting price.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from marketlab.parameters import DEFAULT_SIGNIFICANCE_THRESHOLD


class PerformanceGroup(str, Enum):
    """Scenario-scoped classification of a sector.

    Drives both synthetic sample generation and real price drift.
    Inherits from str for proper JSON serialization.
    """

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class Sector(BaseModel):
    """A tradeable sector.

    Attributes:
        name: Unique key
        description: Short description shown to players
        icon: Display glyph
        current_price: Starting price; live prices are owned by GameState
        historical_prices: Static seed history
        volatility: Cosmetic volatility label
        market: Cosmetic market label
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    description: str = Field(default="")
    icon: str = Field(default="")
    current_price: float = Field(default=100.0, gt=0.0)
    historical_prices: tuple[float, ...] = Field(default=())
    volatility: str = Field(default="medium")
    market: str = Field(default="")


class PerformanceGroups(BaseModel):
    """Partition of sector names into performance groups."""

    model_config = ConfigDict(frozen=True)

    positive: tuple[str, ...] = Field(default=())
    neutral: tuple[str, ...] = Field(default=())
    negative: tuple[str, ...] = Field(default=())

    @model_validator(mode="after")
    def check_disjoint(self) -> PerformanceGroups:
        """A sector may belong to at most one group."""
        seen: set[str] = set()
        for name in self.positive + self.neutral + self.negative:
            if name in seen:
                raise ValueError(f"Sector '{name}' appears in more than one performance group")
            seen.add(name)
        return self

    def members(self, group: PerformanceGroup) -> tuple[str, ...]:
        """Sector names in the given group."""
        return getattr(self, group.value)

    def all_sectors(self) -> set[str]:
        return set(self.positive) | set(self.neutral) | set(self.negative)


class TestCriteria(BaseModel):
    """How a scenario's hypotheses should be judged."""

    __test__ = False

    model_config = ConfigDict(frozen=True)

    test_kind: Optional[str] = Field(default=None)
    threshold: float = Field(default=DEFAULT_SIGNIFICANCE_THRESHOLD, gt=0.0, lt=1.0)


class Hypothesis(BaseModel):
    """A statement the player can choose to test.

    Attributes:
        statement: The hypothesis text
        expected: Short description of the expected outcome
        narrative_hint: Explanation sold as an expert hint
        metric: Display name of the metric the hypothesis is about. When
            omitted it is inferred from the statement's wording.
    """

    model_config = ConfigDict(frozen=True)

    statement: str = Field(..., min_length=1)
    expected: str = Field(default="")
    narrative_hint: str = Field(default="")
    metric: Optional[str] = Field(default=None)


class MarketSituation(BaseModel):
    """One scenario: narrative, sector partition, hypotheses and test criteria."""

    model_config = ConfigDict(frozen=True)

    description: str = Field(..., min_length=1)
    recommended_tool: Optional[str] = Field(default=None)
    tool_description: Optional[str] = Field(default=None)
    performance_groups: PerformanceGroups = Field(default_factory=PerformanceGroups)
    expected_outcomes: tuple[str, ...] = Field(default=())
    test_criteria: TestCriteria = Field(default_factory=TestCriteria)
    hypotheses: tuple[Hypothesis, ...] = Field(default=())

    def validate_partition(self, sector_names: list[str]) -> None:
        """Check the partition is a total function over the given sectors.

        Raises:
            ValueError: If a sector is missing from every group or a group
                names an unknown sector
        """
        grouped = self.performance_groups.all_sectors()
        known = set(sector_names)
        missing = sorted(known - grouped)
        unknown = sorted(grouped - known)
        if missing:
            raise ValueError(f"Sectors missing from performance groups: {missing}")
        if unknown:
            raise ValueError(f"Performance groups name unknown sectors: {unknown}")


class MarketSituationView(BaseModel):
    """The publicly visible part of the active scenario."""

    model_config = ConfigDict(frozen=True)

    description: str = Field(default="")
    recommended_tool: Optional[str] = Field(default=None)
    tool_description: Optional[str] = Field(default=None)
    expected_outcome: Optional[str] = Field(default=None)

    @classmethod
    def from_situation(cls, situation: MarketSituation) -> MarketSituationView:
        return cls(
            description=situation.description,
            recommended_tool=situation.recommended_tool,
            tool_description=situation.tool_description,
            expected_outcome=situation.expected_outcomes[0] if situation.expected_outcomes else None,
        )


class PortfolioItem(BaseModel):
    """A holding in one sector.

    Attributes:
        sector: The held sector
        quantity: Units held
        purchase_price: Volume-weighted average purchase price
    """

    model_config = ConfigDict(frozen=True)

    sector: Sector
    quantity: int = Field(..., ge=0)
    purchase_price: float = Field(..., ge=0.0)
