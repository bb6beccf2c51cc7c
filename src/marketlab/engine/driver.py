"""Auto-progress driver for Market Lab.

The host calls tick() on a fixed interval (TICK_INTERVAL_MS). A tick only
advances time once UPDATE_INTERVAL_MS has passed since the last recorded
update, so the interval is a debounce rather than a step rate. The driver is
also what declares a scenario complete: the reducer counts steps, the driver
shows the completion popup once COMPLETION_STEP is reached.
"""

from __future__ import annotations

import logging
from typing import Optional

from marketlab.engine.game_engine import (
    AdvanceTime,
    AdvanceToNextScenario,
    CloseScenarioCompletionPopup,
    GameEngine,
    ShowScenarioCompletionPopup,
)
from marketlab.parameters import COMPLETION_STEP, UPDATE_INTERVAL_MS

logger = logging.getLogger(__name__)


class AutoProgressDriver:
    """Turns timer ticks into time advances and scenario completion."""

    def __init__(self, engine: GameEngine, update_interval_ms: float = UPDATE_INTERVAL_MS):
        self.engine = engine
        self.update_interval_ms = update_interval_ms
        # Popup shown once per completion; cleared when steps drop below the threshold
        self._completion_shown = False

    def tick(self, now_ms: Optional[float] = None) -> bool:
        """Handle one timer tick.

        Args:
            now_ms: Millisecond timestamp (default: the context clock)

        Returns:
            True if time advanced
        """
        if now_ms is None:
            now_ms = self.engine.context.now()
        state = self.engine.state
        advanced = False
        if (
            not state.is_auto_progress_paused
            and not state.show_scenario_completion_popup
            and now_ms - state.last_auto_update >= self.update_interval_ms
        ):
            self.engine.dispatch(AdvanceTime(now_ms))
            advanced = True
        self.check_completion()
        return advanced

    def check_completion(self) -> bool:
        """Show the completion popup if the scenario just finished.

        Returns:
            True if the popup was shown by this call
        """
        state = self.engine.state
        if not self.is_scenario_complete():
            self._completion_shown = False
            return False
        if state.show_scenario_completion_popup or self._completion_shown:
            return False
        logger.info(f"Market situation {state.current_situation_index + 1} complete")
        self.engine.dispatch(ShowScenarioCompletionPopup())
        self._completion_shown = True
        return True

    def is_scenario_complete(self) -> bool:
        return self.engine.state.steps_in_current_situation >= COMPLETION_STEP

    def steps_left(self) -> int:
        return max(0, COMPLETION_STEP - self.engine.state.steps_in_current_situation)

    def finish_scenario(self) -> bool:
        """Close the completion popup and move to the next scenario.

        Closing stores the profit/loss baseline even on the last scenario.

        Returns:
            True if a new scenario started
        """
        if self.engine.state.show_scenario_completion_popup:
            self.engine.dispatch(CloseScenarioCompletionPopup())
        before = self.engine.state
        return self.engine.dispatch(AdvanceToNextScenario()) is not before
