"""Game state model for Market Lab.

Exactly one GameState is live at a time. Transitions never mutate it; the
reducer in marketlab.engine.game_engine builds a replacement on every change.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from marketlab.models.market import MarketSituationView, PortfolioItem
from marketlab.parameters import DEFAULT_TOOLS, HISTORY_LIMIT, INITIAL_CAPITAL


def round_money(value: float) -> float:
    """Round a monetary amount to 2 decimals."""
    return round(value, 2)


class GameState(BaseModel):
    """Complete game state.

    Money:
        capital: Cash on hand
        portfolio: Holdings, at most one entry per sector
        previous_capital: Total value at the end of the previous scenario,
            the baseline for profit/loss

    Market:
        current_prices: Live price per sector name
        price_history: Rolling price buffer per sector (bounded by history_limit)

    Progression:
        current_situation_index: Index of the active scenario
        steps_in_current_situation: Steps elapsed in the scenario (0..9)
        time_advance_count: Steps elapsed in the whole game
        is_auto_progress_paused: Whether the timer is paused
        last_auto_update: Millisecond timestamp of the last price update
        show_scenario_completion_popup: Whether the scenario summary is shown

    Learning:
        mistakes: Mistakes since the last consultation meeting
        available_tools: Statistical tools the player may use
        shown_tools: Tools whose introduction has been shown
    """

    capital: float = Field(default=INITIAL_CAPITAL)
    portfolio: list[PortfolioItem] = Field(default_factory=list)
    current_prices: dict[str, float] = Field(default_factory=dict)
    price_history: dict[str, list[float]] = Field(default_factory=dict)
    history_limit: int = Field(default=HISTORY_LIMIT, ge=1)

    investment_count: int = Field(default=0, ge=0)
    time_advance_count: int = Field(default=0, ge=0)
    steps_in_current_situation: int = Field(default=0, ge=0)
    current_situation_index: int = Field(default=0, ge=0)
    market_situation: MarketSituationView = Field(default_factory=MarketSituationView)

    mistakes: int = Field(default=0, ge=0)
    available_tools: list[str] = Field(default_factory=lambda: list(DEFAULT_TOOLS))
    shown_tools: list[str] = Field(default_factory=list)

    is_auto_progress_paused: bool = Field(default=True)
    last_auto_update: float = Field(default=0.0)
    show_scenario_completion_popup: bool = Field(default=False)
    previous_capital: float = Field(default=INITIAL_CAPITAL)

    def get_holding(self, sector_name: str) -> Optional[PortfolioItem]:
        """Return the portfolio entry for a sector, if any."""
        for item in self.portfolio:
            if item.sector.name == sector_name:
                return item
        return None

    def price_of(self, sector_name: str, default: float = 0.0) -> float:
        """Live price of a sector, falling back to the given default."""
        return self.current_prices.get(sector_name, default)

    def holdings_value(self) -> float:
        """Value of all holdings at current prices."""
        return sum(
            self.price_of(item.sector.name, item.sector.current_price) * item.quantity
            for item in self.portfolio
        )

    def total_value(self) -> float:
        """Holdings at current prices plus cash, rounded to 2 decimals."""
        return round_money(self.holdings_value() + self.capital)

    @property
    def profit(self) -> float:
        """Profit or loss against the previous scenario's ending value."""
        return round_money(self.total_value() - self.previous_capital)

    # Serialization methods
    def to_json(self) -> str:
        """Serialize state to JSON string."""
        return self.model_dump_json(indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> GameState:
        """Deserialize state from JSON string."""
        return cls.model_validate_json(json_str)
