"""Player action records for Market Lab.

A PlayerAction is created by the ActionTracker and never changes afterwards.
Correctness is judged before the action is recorded.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PlayerActionType(str, Enum):
    """Kinds of player decisions the tracker records."""

    HYPOTHESIS_SELECTION = "hypothesis_selection"
    SECTOR_SELECTION = "sector_selection"
    METRIC_SELECTION = "metric_selection"
    TEST_EXECUTION = "test_execution"
    STOCK_PURCHASE = "stock_purchase"


class ActionDetails(BaseModel):
    """Type-dependent payload of a player action.

    Attributes:
        hypothesis: Selected hypothesis statement
        sectors: Sectors chosen for comparison
        metrics: Metrics chosen for comparison
        test_kind: Statistical test that was run
        data_type: Metric type tag ("numerical", "categorical" or "mixed")
        purchased_sector: Sector bought
        quantity: Units bought
        is_correct: Whether the decision was judged correct
        error_message: Explanation when the decision was wrong
    """

    model_config = ConfigDict(frozen=True)

    hypothesis: Optional[str] = Field(default=None)
    sectors: Optional[tuple[str, ...]] = Field(default=None)
    metrics: Optional[tuple[str, ...]] = Field(default=None)
    test_kind: Optional[str] = Field(default=None)
    data_type: Optional[str] = Field(default=None)
    purchased_sector: Optional[str] = Field(default=None)
    quantity: Optional[int] = Field(default=None)
    is_correct: bool = Field(default=False)
    error_message: Optional[str] = Field(default=None)

    @field_validator("data_type", "test_kind", mode="before")
    @classmethod
    def enum_to_value(cls, v):
        """Store enum members by their string value."""
        if isinstance(v, Enum):
            return v.value
        return v


class PlayerAction(BaseModel):
    """A recorded player decision.

    Attributes:
        timestamp: Millisecond timestamp of recording
        scenario_id: Scenario active when the action was recorded
        type: Kind of decision
        details: Type-dependent payload
    """

    model_config = ConfigDict(frozen=True)

    timestamp: float
    scenario_id: int = Field(..., ge=0)
    type: PlayerActionType
    details: ActionDetails = Field(default_factory=ActionDetails)


class ActionSummary(BaseModel):
    """Correct and incorrect decision counts for one scenario."""

    model_config = ConfigDict(frozen=True)

    correct: int = Field(default=0, ge=0)
    incorrect: int = Field(default=0, ge=0)
