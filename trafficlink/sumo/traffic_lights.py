"""
Traffic light façade for SUMO.

Provides sentinel-returning accessors for traffic light state and
phases, and logs every accepted control action (phase changes, program
changes, duration modifications) for CSV export.
"""

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pandas as pd

from .normalize import to_float, to_id_list, to_int, to_str
from .session import TraCISession
from .wrapper import SessionWrapper

logger = logging.getLogger(__name__)

STATE_UNAVAILABLE = "N/A"
STATE_ERROR = "Error"

ACTION_LOG_COLUMNS = [
    "step",
    "time",
    "tls_id",
    "action_type",
    "old_value",
    "new_value",
]


def flatten_controlled_links(links: Any) -> list[tuple[str, str, str]]:
    """
    Flatten getControlledLinks output into (incoming, outgoing, via) tuples.

    TraCI returns one list of links per signal index; nesting depth is
    not relied upon.
    """
    out: list[tuple[str, str, str]] = []
    if links is None:
        return out
    if (
        isinstance(links, tuple)
        and len(links) == 3
        and all(isinstance(part, str) for part in links)
    ):
        out.append(links)
        return out
    if isinstance(links, Iterable) and not isinstance(links, str):
        for item in links:
            out.extend(flatten_controlled_links(item))
    return out


class TrafficLightWrapper(SessionWrapper):
    """
    Traffic light accessors with action logging.

    Tracks all accepted control actions and exports the log to CSV.
    """

    _logger = logger

    def __init__(self, session: TraCISession, output_dir: str | None = None):
        """
        Args:
            session: Session to operate on
            output_dir: Directory to save the action log CSV (None = no file output)
        """
        super().__init__(session)
        self.output_dir = Path(output_dir) if output_dir else None
        if self.output_dir:
            self.output_dir.mkdir(parents=True, exist_ok=True)

        self.action_log: list[dict[str, Any]] = []
        self._paused = True

    # Pause state of the driving loop
    def is_paused(self) -> bool:
        return self._paused

    def toggle_pause(self) -> bool:
        self._paused = not self._paused
        return self._paused

    def get_traffic_light_ids(self) -> list[str]:
        return to_id_list(self._read([], "trafficlight", "getIDList"))

    def get_traffic_light_count(self) -> int:
        """Number of traffic lights; 0 if not connected, -1 on error."""
        if not self.is_ready():
            return 0
        return to_int(self._read(-1, "trafficlight", "getIDCount"), -1)

    def get_traffic_light_state(self, tls_id: str) -> str:
        """
        Current red/yellow/green state string.

        Returns "N/A" if the session is unavailable and "Error" if the
        query itself failed.
        """
        if not self.is_ready():
            return STATE_UNAVAILABLE
        state = self._read(
            STATE_ERROR,
            "trafficlight",
            "getRedYellowGreenState",
            tls_id,
            connection_default=STATE_UNAVAILABLE,
        )
        return to_str(state, STATE_ERROR)

    def set_traffic_light_state(self, tls_id: str, new_state: str) -> None:
        """Set the phase definition, e.g. 'rRgGyY'."""
        if not tls_id or not new_state:
            return
        old_state = self._read(None, "trafficlight", "getRedYellowGreenState", tls_id)
        if self._write("trafficlight", "setRedYellowGreenState", tls_id, new_state):
            self._log_action(tls_id, "state_change", old_state, new_state)

    def _first_program(self, tls_id: str) -> Any:
        logics = self._read(None, "trafficlight", "getAllProgramLogics", tls_id)
        if not logics:
            return None
        return logics[0]

    def get_all_traffic_light_states(self, tls_id: str) -> list[str] | None:
        """State strings of every phase of the first program; None on error."""
        program = self._first_program(tls_id)
        if program is None:
            return None
        return [phase.state for phase in program.phases]

    def get_traffic_light_phase_count(self, tls_id: str) -> int:
        if not self.is_ready():
            return -1
        program = self._first_program(tls_id)
        if program is None:
            return -1
        return len(program.phases)

    def get_phase_index(self, tls_id: str) -> int:
        return to_int(self._read(-1, "trafficlight", "getPhase", tls_id), -1)

    def set_phase_index(self, tls_id: str, new_index: int) -> bool:
        """
        Switch to the phase at new_index of the current program.

        Returns:
            True if successful, False otherwise (including out-of-range
            indices, which are rejected without a remote call)
        """
        if not tls_id or new_index < 0:
            return False
        count = self.get_traffic_light_phase_count(tls_id)
        if count > 0 and new_index >= count:
            logger.debug("Phase %d out of range for %s (%d phases)", new_index, tls_id, count)
            return False
        old_phase = self.get_phase_index(tls_id)
        if not self._write("trafficlight", "setPhase", tls_id, new_index):
            return False
        self._log_action(tls_id, "phase_change", old_phase, new_index)
        return True

    def change_phase(self, tls_id: str, delta: int) -> int:
        """
        Step the phase index by delta, wrapping around the cycle.

        Without a known phase count the index is clamped at 0.

        Returns:
            The requested phase index, or -1 if the current phase is unknown
        """
        current = self.get_phase_index(tls_id)
        if current < 0:
            return -1
        count = self.get_traffic_light_phase_count(tls_id)
        if count > 0:
            new_phase = (current + delta) % count
        else:
            new_phase = max(0, current + delta)
        self.set_phase_index(tls_id, new_phase)
        return new_phase

    def get_phase_duration(self, tls_id: str) -> float:
        """Default total duration of the active phase in seconds."""
        return to_float(self._read(0.0, "trafficlight", "getPhaseDuration", tls_id))

    def set_remaining_phase_duration(self, tls_id: str, remaining: float) -> None:
        """
        Set the remaining duration of the current phase in seconds.

        Has no effect on later repetitions of the phase.
        """
        if not tls_id or remaining is None or remaining < 0:
            return
        old = self._read(None, "trafficlight", "getPhaseDuration", tls_id)
        if self._write("trafficlight", "setPhaseDuration", tls_id, float(remaining)):
            self._log_action(tls_id, "duration_change", old, remaining)

    def get_phase_elapsed_duration(self, tls_id: str) -> float:
        """Time in seconds the current phase has been active."""
        return to_float(self._read(0.0, "trafficlight", "getSpentDuration", tls_id))

    def get_phase_name(self, tls_id: str) -> str | None:
        name = self._read(None, "trafficlight", "getPhaseName", tls_id)
        return None if name is None else to_str(name)

    def set_phase_name(self, tls_id: str, new_name: str) -> None:
        if not tls_id:
            return
        self._write("trafficlight", "setPhaseName", tls_id, new_name)

    def set_program(self, tls_id: str, program: str) -> bool:
        """
        Switch the traffic light to another program.

        Returns:
            True if successful, False otherwise
        """
        if not tls_id or not program:
            return False
        old_program = self._read(None, "trafficlight", "getProgram", tls_id)
        if not self._write("trafficlight", "setProgram", tls_id, program):
            return False
        self._log_action(tls_id, "program_change", old_program, program)
        return True

    def get_blocking_vehicles(self, tls_id: str, link_index: int) -> list[str]:
        """Vehicles blocking the junction block behind the given link."""
        return to_id_list(
            self._read([], "trafficlight", "getBlockingVehicles", tls_id, link_index)
        )

    def get_rival_vehicles(self, tls_id: str, link_index: int) -> list[str]:
        """Vehicles also waiting to enter that block, regardless of priority."""
        return to_id_list(
            self._read([], "trafficlight", "getRivalVehicles", tls_id, link_index)
        )

    def get_priority_vehicles(self, tls_id: str, link_index: int) -> list[str]:
        """Vehicles with higher priority waiting to enter that block."""
        return to_id_list(
            self._read([], "trafficlight", "getPriorityVehicles", tls_id, link_index)
        )

    def get_controlled_links(self, tls_id: str) -> list[tuple[str, str, str]]:
        return flatten_controlled_links(
            self._read([], "trafficlight", "getControlledLinks", tls_id)
        )

    def _log_action(self, tls_id: str, action_type: str, old_value, new_value):
        """Log a traffic light control action."""
        self.action_log.append(
            {
                "step": self.session.current_step,
                "time": self.session.simulation_time,
                "tls_id": tls_id,
                "action_type": action_type,
                "old_value": "N/A" if old_value is None else str(old_value),
                "new_value": str(new_value),
            }
        )

    def get_action_log(self) -> pd.DataFrame:
        """
        Get action log as pandas DataFrame.

        Returns:
            DataFrame with action log entries
        """
        if not self.action_log:
            return pd.DataFrame({column: [] for column in ACTION_LOG_COLUMNS})
        return pd.DataFrame(self.action_log, columns=ACTION_LOG_COLUMNS)

    def export_action_log(self) -> Path | None:
        """Export action log to CSV file."""
        if not self.output_dir:
            return None

        df = self.get_action_log()
        if df.empty:
            logger.info("No traffic light actions to export")
            return None

        filepath = self.output_dir / "traffic_light_actions.csv"
        df.to_csv(filepath, index=False)
        logger.info("Exported traffic_light_actions.csv to %s", filepath)
        return filepath

    def reset(self):
        """Reset action log."""
        self.action_log = []
