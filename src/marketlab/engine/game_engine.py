"""Game state machine for Market Lab.

The state machine has two layers:

1. game_reducer(state, action, context) is pure: it takes the current
   GameState and an action and returns the next GameState. A rejected
   action (insufficient capital, unknown holding, advancing past the last
   scenario, ...) returns the very same state object.

2. GameEngine owns the single live GameState. It applies actions one at a
   time from a FIFO queue, notifies listeners after each transition, and
   keeps the action tracker and classifier in step with scenario changes.

Actions:
    PurchaseSector, SellSector        trading at live prices
    AdvanceTime                       one time step, with price drift
    ToggleAutoProgress                pause/resume the timer
    ShowScenarioCompletionPopup       end of scenario, force-pauses
    CloseScenarioCompletionPopup      stores the new profit/loss baseline
    AdvanceToNextScenario             next market situation
    PayForHint                        debit a hint's cost
    ResetGame                         fresh game, unlocked tools kept
    UpdatePrices                      re-round live prices
    AddMistake, CompleteMeeting       consultation bookkeeping
    MarkToolShown                     tool introduction shown

The reducer only counts steps. Declaring a scenario complete when
steps_in_current_situation reaches COMPLETION_STEP is the driver's job
(see marketlab.engine.driver).
"""

from __future__ import annotations

import logging
import random
import threading
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional, Union

from marketlab.models import (
    GameState,
    MarketSituation,
    MarketSituationView,
    PerformanceGroup,
    PortfolioItem,
    round_money,
)
from marketlab.parameters import (
    HINT_COST_PER_LEVEL,
    MEETING_UNLOCKS,
    PRICE_MOVE_RANGES,
    UPDATE_INTERVAL_MS,
)

if TYPE_CHECKING:
    from marketlab.engine.context import SimulationContext

logger = logging.getLogger(__name__)


# =============================================================================
# Actions
# =============================================================================


@dataclass(frozen=True)
class PurchaseSector:
    sector_name: str
    quantity: int


@dataclass(frozen=True)
class SellSector:
    sector_name: str
    quantity: int


@dataclass(frozen=True)
class AdvanceTime:
    """One time step.

    Attributes:
        now: Millisecond timestamp (default: the context clock)
    """

    now: Optional[float] = None


@dataclass(frozen=True)
class ToggleAutoProgress:
    now: Optional[float] = None


@dataclass(frozen=True)
class ShowScenarioCompletionPopup:
    pass


@dataclass(frozen=True)
class CloseScenarioCompletionPopup:
    pass


@dataclass(frozen=True)
class AdvanceToNextScenario:
    pass


@dataclass(frozen=True)
class PayForHint:
    cost: float


@dataclass(frozen=True)
class ResetGame:
    pass


@dataclass(frozen=True)
class UpdatePrices:
    pass


@dataclass(frozen=True)
class AddMistake:
    pass


@dataclass(frozen=True)
class CompleteMeeting:
    pass


@dataclass(frozen=True)
class MarkToolShown:
    tool: str


GameAction = Union[
    PurchaseSector,
    SellSector,
    AdvanceTime,
    ToggleAutoProgress,
    ShowScenarioCompletionPopup,
    CloseScenarioCompletionPopup,
    AdvanceToNextScenario,
    PayForHint,
    ResetGame,
    UpdatePrices,
    AddMistake,
    CompleteMeeting,
    MarkToolShown,
]


# =============================================================================
# Helpers
# =============================================================================


def hint_cost(level: int) -> float:
    """Cost of an expert hint at a 1-based scenario level.

    Examples:
        >>> hint_cost(3)
        3000.0
    """
    return HINT_COST_PER_LEVEL * level


def next_price(price: float, group: PerformanceGroup, rng: random.Random) -> float:
    """Apply one performance-biased percentage move to a price.

    Positive sectors move +2..8%, negative sectors -8..-2%, neutral sectors
    -3..+3%. The result is rounded to 2 decimals.
    """
    low, high = PRICE_MOVE_RANGES[group.value]
    change = rng.uniform(low, high)
    return round_money(price * (1.0 + change))


def create_initial_state(context: SimulationContext) -> GameState:
    """A fresh game at the first market situation with starting prices."""
    return GameState(
        current_prices={sector.name: sector.current_price for sector in context.sectors},
        market_situation=MarketSituationView.from_situation(context.situations[0]),
    )


# =============================================================================
# Reducer
# =============================================================================


def _purchase(state: GameState, action: PurchaseSector, context: SimulationContext) -> GameState:
    sector = context.get_sector(action.sector_name)
    if sector is None or action.quantity <= 0:
        return state
    price = state.price_of(sector.name, sector.current_price)
    total_cost = price * action.quantity
    if total_cost > state.capital:
        return state

    existing = state.get_holding(sector.name)
    if existing is None:
        portfolio = state.portfolio + [PortfolioItem(sector=sector, quantity=action.quantity, purchase_price=price)]
    else:
        quantity = existing.quantity + action.quantity
        average = (existing.purchase_price * existing.quantity + total_cost) / quantity
        updated = PortfolioItem(sector=sector, quantity=quantity, purchase_price=average)
        portfolio = [updated if item is existing else item for item in state.portfolio]

    return state.model_copy(
        update={
            "capital": state.capital - total_cost,
            "portfolio": portfolio,
            "investment_count": state.investment_count + 1,
        }
    )


def _sell(state: GameState, action: SellSector, context: SimulationContext) -> GameState:
    holding = state.get_holding(action.sector_name)
    if holding is None or action.quantity <= 0 or action.quantity > holding.quantity:
        return state

    sale_value = state.price_of(action.sector_name, holding.sector.current_price) * action.quantity
    if action.quantity == holding.quantity:
        portfolio = [item for item in state.portfolio if item is not holding]
    else:
        reduced = holding.model_copy(update={"quantity": holding.quantity - action.quantity})
        portfolio = [reduced if item is holding else item for item in state.portfolio]

    return state.model_copy(update={"capital": state.capital + sale_value, "portfolio": portfolio})


def _advance_time(state: GameState, action: AdvanceTime, context: SimulationContext) -> GameState:
    now = action.now if action.now is not None else context.now()
    counters = {
        "time_advance_count": state.time_advance_count + 1,
        "steps_in_current_situation": state.steps_in_current_situation + 1,
    }
    should_update_prices = (
        not state.is_auto_progress_paused or now - state.last_auto_update >= UPDATE_INTERVAL_MS
    )
    if not should_update_prices:
        return state.model_copy(update=counters)

    prices = dict(state.current_prices)
    history = {name: list(values) for name, values in state.price_history.items()}
    for sector in context.sectors:
        group = context.classifier.classify(sector.name, state.current_situation_index)
        price = next_price(prices.get(sector.name, sector.current_price), group, context.random)
        prices[sector.name] = price
        buffer = history.setdefault(sector.name, [])
        buffer.append(price)
        del buffer[: max(0, len(buffer) - state.history_limit)]

    return state.model_copy(
        update={
            **counters,
            "current_prices": prices,
            "price_history": history,
            "last_auto_update": now,
        }
    )


def _toggle_auto_progress(state: GameState, action: ToggleAutoProgress, context: SimulationContext) -> GameState:
    now = action.now if action.now is not None else context.now()
    return state.model_copy(
        update={"is_auto_progress_paused": not state.is_auto_progress_paused, "last_auto_update": now}
    )


def _show_completion(state: GameState, action: ShowScenarioCompletionPopup, context: SimulationContext) -> GameState:
    return state.model_copy(update={"show_scenario_completion_popup": True, "is_auto_progress_paused": True})


def _close_completion(state: GameState, action: CloseScenarioCompletionPopup, context: SimulationContext) -> GameState:
    return state.model_copy(
        update={"show_scenario_completion_popup": False, "previous_capital": state.total_value()}
    )


def _advance_scenario(state: GameState, action: AdvanceToNextScenario, context: SimulationContext) -> GameState:
    index = state.current_situation_index + 1
    situation: Optional[MarketSituation] = context.get_situation(index)
    if situation is None:
        return state
    return state.model_copy(
        update={
            "current_situation_index": index,
            "steps_in_current_situation": 0,
            "market_situation": MarketSituationView.from_situation(situation),
            "show_scenario_completion_popup": False,
        }
    )


def _pay_for_hint(state: GameState, action: PayForHint, context: SimulationContext) -> GameState:
    if action.cost < 0 or action.cost > state.capital:
        return state
    return state.model_copy(update={"capital": state.capital - action.cost})


def _reset(state: GameState, action: ResetGame, context: SimulationContext) -> GameState:
    fresh = create_initial_state(context)
    return fresh.model_copy(
        update={"available_tools": list(state.available_tools), "shown_tools": list(state.shown_tools)}
    )


def _update_prices(state: GameState, action: UpdatePrices, context: SimulationContext) -> GameState:
    prices = {name: round_money(price) for name, price in state.current_prices.items()}
    return state.model_copy(update={"current_prices": prices})


def _add_mistake(state: GameState, action: AddMistake, context: SimulationContext) -> GameState:
    return state.model_copy(update={"mistakes": state.mistakes + 1})


def _complete_meeting(state: GameState, action: CompleteMeeting, context: SimulationContext) -> GameState:
    unlocked = [
        tool
        for threshold, tool in MEETING_UNLOCKS
        if state.mistakes >= threshold and tool not in state.available_tools
    ]
    return state.model_copy(
        update={
            "mistakes": 0,
            "available_tools": state.available_tools + unlocked,
            # Newly unlocked tools still need their introduction
            "shown_tools": [tool for tool in state.shown_tools if tool not in unlocked],
        }
    )


def _mark_tool_shown(state: GameState, action: MarkToolShown, context: SimulationContext) -> GameState:
    if action.tool in state.shown_tools:
        return state
    return state.model_copy(update={"shown_tools": state.shown_tools + [action.tool]})


_HANDLERS: dict[type, Callable[[GameState, object, SimulationContext], GameState]] = {
    PurchaseSector: _purchase,
    SellSector: _sell,
    AdvanceTime: _advance_time,
    ToggleAutoProgress: _toggle_auto_progress,
    ShowScenarioCompletionPopup: _show_completion,
    CloseScenarioCompletionPopup: _close_completion,
    AdvanceToNextScenario: _advance_scenario,
    PayForHint: _pay_for_hint,
    ResetGame: _reset,
    UpdatePrices: _update_prices,
    AddMistake: _add_mistake,
    CompleteMeeting: _complete_meeting,
    MarkToolShown: _mark_tool_shown,
}


def game_reducer(state: GameState, action: GameAction, context: SimulationContext) -> GameState:
    """Compute the state that follows an action.

    Args:
        state: Current state (never modified)
        action: Action to apply
        context: Static data, classifier, random source and clock

    Returns:
        The next state, or the same state object if the action was rejected
        or is not recognized
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        logger.warning(f"Ignoring unknown action {action!r}")
        return state
    return handler(state, action, context)


# =============================================================================
# Engine
# =============================================================================

StateListener = Callable[[GameState, GameAction], None]


class GameEngine:
    """Owner of the live GameState.

    Actions are applied strictly one at a time. A dispatch made while
    another is being processed (for example from a listener) is queued and
    applied after it, in order. A lock serializes dispatches from different
    threads.

    Attributes:
        context: Session data and stores
        state: The live GameState (read-only snapshot)
    """

    def __init__(self, context: SimulationContext, state: Optional[GameState] = None) -> None:
        self.context = context
        self._state = state if state is not None else create_initial_state(context)
        self._queue: deque[GameAction] = deque()
        self._lock = threading.RLock()
        self._dispatching = False
        self._listeners: list[StateListener] = []
        context.tracker.set_current_scenario(self._state.current_situation_index)

    @property
    def state(self) -> GameState:
        return self._state

    def subscribe(self, listener: StateListener) -> None:
        """Call listener(state, action) after every accepted transition."""
        self._listeners.append(listener)

    def dispatch(self, action: GameAction) -> GameState:
        """Queue an action and process the queue unless already processing.

        Returns:
            The live state after the queue has drained (or, for a nested
            dispatch, the state at the time of queueing)
        """
        with self._lock:
            self._queue.append(action)
            if self._dispatching:
                return self._state
            self._dispatching = True
            try:
                while self._queue:
                    self._apply(self._queue.popleft())
            finally:
                self._dispatching = False
            return self._state

    def _apply(self, action: GameAction) -> None:
        before = self._state
        after = game_reducer(before, action, self.context)
        if after is before:
            logger.debug(f"{type(action).__name__} rejected")
            return

        self._state = after
        if after.current_situation_index != before.current_situation_index:
            index = after.current_situation_index
            self.context.classifier.invalidate(index)
            self.context.tracker.set_current_scenario(index)
            logger.info(f"Market situation {index + 1} of {self.context.scenario_count} started")

        for listener in list(self._listeners):
            listener(after, action)

    # Convenience wrappers returning whether the action was accepted

    def purchase(self, sector_name: str, quantity: int) -> bool:
        before = self._state
        return self.dispatch(PurchaseSector(sector_name, quantity)) is not before

    def sell(self, sector_name: str, quantity: int) -> bool:
        before = self._state
        return self.dispatch(SellSector(sector_name, quantity)) is not before

    def pay_for_hint(self, cost: float) -> bool:
        before = self._state
        return self.dispatch(PayForHint(cost)) is not before

    def advance_to_next_scenario(self) -> bool:
        before = self._state
        return self.dispatch(AdvanceToNextScenario()) is not before

    def advance_time(self, now: Optional[float] = None) -> GameState:
        return self.dispatch(AdvanceTime(now))

    def toggle_auto_progress(self, now: Optional[float] = None) -> GameState:
        return self.dispatch(ToggleAutoProgress(now))

    def reset(self) -> GameState:
        return self.dispatch(ResetGame())

    # Queries

    @property
    def current_situation(self) -> MarketSituation:
        return self.context.situations[self._state.current_situation_index]

    @property
    def level(self) -> int:
        """1-based number of the active scenario."""
        return self._state.current_situation_index + 1

    def current_hint_cost(self) -> float:
        return hint_cost(self.level)

    def is_last_scenario(self) -> bool:
        return self._state.current_situation_index >= self.context.scenario_count - 1
