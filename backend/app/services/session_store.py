"""In-process registry of interactive simulation sessions.

Each session owns one :class:`SimulationRunner`, the operator's last unit
action (for undo) and an optional :class:`TickPacer`.  Request handlers and
tickers share the application's event loop, so engine calls never overlap.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional

from app.config import settings
from app.services.pacer import TickPacer
from engine.generator.thermal_unit import UnitCommand
from engine.simulation.presets import get_preset
from engine.simulation.runner import ActionResult, RunStatus, SimulationRunner
from engine.simulation.scenario import Scenario

logger = logging.getLogger(__name__)

TOGGLE_BEFORE_START = "Start the simulation before toggling units."
UNDO_EXPIRED = "Undo unavailable: more than an hour has passed."
NOTHING_TO_UNDO = "No unit action to undo."
UNDO_DONE = "Last unit action undone."
OVERRIDES_WHILE_RUNNING = "Pause the simulation to apply dev overrides."


def default_scenario_data() -> dict[str, Any]:
    """Scenario mapping from ``settings.scenario_path``, else the built-in preset."""
    if settings.scenario_path:
        path = Path(settings.scenario_path)
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    return get_preset("default")


def build_runner(
    scenario: Scenario | Mapping[str, Any] | None = None,
    headless: bool = False,
) -> SimulationRunner:
    """Parse *scenario* and build its runner once the horizon is within limits.

    Raises
    ------
    ScenarioValidationError
        If required scenario fields are missing.
    ValueError
        If the scenario is inconsistent or its horizon exceeds
        ``settings.max_horizon_ticks``.
    """
    if scenario is None:
        scenario = default_scenario_data()
    if not isinstance(scenario, Scenario):
        scenario = Scenario.from_dict(scenario)
    total_ticks = scenario.clock.total_ticks
    if total_ticks > settings.max_horizon_ticks:
        raise ValueError(
            f"Scenario horizon of {total_ticks} ticks exceeds the limit of "
            f"{settings.max_horizon_ticks} ticks"
        )
    return SimulationRunner(scenario, headless=headless)


@dataclass
class UnitAction:
    unit_id: str
    previous: UnitCommand


@dataclass
class SimulationSession:
    """One operator's interactive run."""

    id: str
    runner: SimulationRunner
    pacer: TickPacer
    last_action: Optional[UnitAction] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def status(self) -> RunStatus:
        return self.runner.status

    def toggle_unit(self, unit_id: str) -> ActionResult:
        if self.status not in (RunStatus.RUNNING, RunStatus.PRE_RUN):
            return ActionResult(False, TOGGLE_BEFORE_START)
        result = self.runner.toggle_unit(unit_id)
        if result.ok and result.previous is not None:
            self.last_action = UnitAction(unit_id, result.previous)
        return result

    def undo(self) -> ActionResult:
        """Revert the last unit toggle if it happened in the current hour."""
        action = self.last_action
        if action is None:
            return ActionResult(False, NOTHING_TO_UNDO)
        if not self.runner.can_undo(action.previous):
            return ActionResult(False, UNDO_EXPIRED)
        result = self.runner.restore_unit_state(action.unit_id, action.previous)
        if result.ok:
            self.last_action = None
            return ActionResult(True, UNDO_DONE)
        return result

    def pause(self) -> None:
        self.pacer.stop()
        self.runner.pause()

    def reset(self) -> None:
        self.pacer.stop()
        self.runner.reset()
        self.last_action = None

    def close(self) -> None:
        self.pacer.stop()


class SessionStore:
    """Bounded map of session id to :class:`SimulationSession`.

    When ``max_sessions`` is reached the oldest session is evicted.
    """

    def __init__(self, max_sessions: int = 64, tick_interval: float = 0.5) -> None:
        self.max_sessions = max_sessions
        self.tick_interval = tick_interval
        self._sessions: OrderedDict[str, SimulationSession] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def create(self, scenario: Scenario | Mapping[str, Any] | None = None) -> SimulationSession:
        """Build a runner for *scenario* (default scenario when ``None``).

        Raises
        ------
        ScenarioValidationError
            If required scenario fields are missing.
        ValueError
            If the scenario is structurally inconsistent or too long.
        """
        runner = build_runner(scenario)
        session_id = str(uuid.uuid4())
        session = SimulationSession(
            id=session_id,
            runner=runner,
            pacer=TickPacer(runner, base_interval=self.tick_interval),
        )

        while len(self._sessions) >= self.max_sessions:
            evicted_id, evicted = self._sessions.popitem(last=False)
            evicted.close()
            logger.info("Evicted session %s", evicted_id, extra={"session_id": evicted_id})

        self._sessions[session_id] = session
        logger.info(
            "Created session %s for '%s'",
            session_id, runner.scenario.meta.region,
            extra={"session_id": session_id},
        )
        return session

    def get(self, session_id: str) -> Optional[SimulationSession]:
        return self._sessions.get(session_id)

    def delete(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.close()
        logger.info("Deleted session %s", session_id, extra={"session_id": session_id})
        return True

    def clear(self) -> None:
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()


store = SessionStore(
    max_sessions=settings.max_sessions,
    tick_interval=settings.tick_interval_s,
)
