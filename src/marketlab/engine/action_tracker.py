"""Player action log for Market Lab.

The tracker keeps an append-only log of player decisions. Each action is
stamped with the scenario that was current when it was recorded, so the log
is partitioned by scenario without callers passing an id.

Deduplication only looks at the current scenario's entries:
- hypothesis_selection: at most one per scenario
- sector_selection: dropped if the same set of sectors was already chosen
- metric_selection: dropped if the same data type and metric set was already chosen
- test_execution: dropped if the same test was already run
- stock_purchase: never dropped
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from marketlab.models import ActionDetails, ActionSummary, PlayerAction, PlayerActionType

logger = logging.getLogger(__name__)


def wall_clock_ms() -> float:
    return time.time() * 1000.0


class ActionTracker:
    """Append-only, scenario-partitioned log of player actions.

    Attributes:
        current_scenario: Scenario id stamped on new actions
    """

    def __init__(self, clock: Callable[[], float] = wall_clock_ms):
        self._clock = clock
        self._actions: list[PlayerAction] = []
        self.current_scenario = 0

    def set_current_scenario(self, scenario_id: int) -> None:
        self.current_scenario = scenario_id
        logger.info(f"Tracking actions for scenario {scenario_id}")

    def get_current_scenario(self) -> int:
        return self.current_scenario

    def add_action(
        self,
        action_type: PlayerActionType | str,
        details: Optional[ActionDetails | dict] = None,
    ) -> Optional[PlayerAction]:
        """Record a player action unless it duplicates one in this scenario.

        Args:
            action_type: Kind of decision
            details: Payload, already judged for correctness

        Returns:
            The stored action, or None if it was dropped as a duplicate
        """
        action_type = PlayerActionType(action_type)
        if details is None:
            details = ActionDetails()
        elif isinstance(details, dict):
            details = ActionDetails.model_validate(details)

        if self._is_duplicate(action_type, details):
            logger.debug(f"Duplicate {action_type.value} skipped in scenario {self.current_scenario}")
            return None

        action = PlayerAction(
            timestamp=self._clock(),
            scenario_id=self.current_scenario,
            type=action_type,
            details=details,
        )
        self._actions.append(action)
        logger.info(
            f"Tracked {action_type.value} in scenario {self.current_scenario} "
            f"(correct={details.is_correct})"
        )
        return action

    def get_actions(self) -> list[PlayerAction]:
        """All recorded actions, oldest first."""
        return list(self._actions)

    def get_current_scenario_actions(self) -> list[PlayerAction]:
        return self._scenario_actions(self.current_scenario)

    def get_scenario_actions(self, scenario_id: int) -> list[PlayerAction]:
        return self._scenario_actions(scenario_id)

    def clear_scenario_actions(self, scenario_id: int) -> None:
        """Remove every action recorded for one scenario."""
        self._actions = [a for a in self._actions if a.scenario_id != scenario_id]
        logger.info(f"Cleared actions for scenario {scenario_id}")

    def clear_actions(self) -> None:
        self._actions = []

    def get_action_summary(self, scenario_id: Optional[int] = None) -> ActionSummary:
        """Count correct and incorrect decisions in a scenario.

        Args:
            scenario_id: Scenario to summarize (default: the current one)
        """
        if scenario_id is None:
            scenario_id = self.current_scenario
        actions = self._scenario_actions(scenario_id)
        correct = sum(1 for a in actions if a.details.is_correct)
        return ActionSummary(correct=correct, incorrect=len(actions) - correct)

    def _scenario_actions(self, scenario_id: int) -> list[PlayerAction]:
        return [a for a in self._actions if a.scenario_id == scenario_id]

    def _is_duplicate(self, action_type: PlayerActionType, details: ActionDetails) -> bool:
        existing = [a for a in self.get_current_scenario_actions() if a.type == action_type]

        if action_type == PlayerActionType.HYPOTHESIS_SELECTION:
            return bool(existing)

        if action_type == PlayerActionType.SECTOR_SELECTION and details.sectors:
            chosen = sorted(details.sectors)
            return any(a.details.sectors and sorted(a.details.sectors) == chosen for a in existing)

        if action_type == PlayerActionType.METRIC_SELECTION and details.metrics and details.data_type:
            chosen = sorted(details.metrics)
            return any(
                a.details.metrics
                and a.details.data_type == details.data_type
                and sorted(a.details.metrics) == chosen
                for a in existing
            )

        if action_type == PlayerActionType.TEST_EXECUTION and details.test_kind:
            return any(a.details.test_kind == details.test_kind for a in existing)

        return False
