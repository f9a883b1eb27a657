"""
Session handle around a labelled TraCI connection.

Owns the connection lifecycle (start, step, close) and funnels every
remote command through execute_read/execute_write so that failures
reach callers already classified as ConnectionFault or OperationFault.
"""

import logging
import uuid
from collections.abc import Callable
from typing import Any

import traci

from .faults import ConnectionFault, as_fault

logger = logging.getLogger(__name__)

# Error message constant
SESSION_NOT_READY = "TraCI session not connected"

FaultListener = Callable[[BaseException], None]


class TraCISession:
    """
    Synchronous request/response access to one running SUMO instance.

    The session is not thread-safe; callers must serialize access.
    """

    def __init__(
        self,
        sumo_binary: str = "sumo",
        config_file: str | None = None,
        step_length: float = 1.0,
        delay: int = 50,
        label: str | None = None,
        connection: Any = None,
    ):
        """
        Initialize the session.

        Args:
            sumo_binary: SUMO executable ('sumo' or 'sumo-gui')
            config_file: Path to the .sumocfg file to load
            step_length: Simulation step length in seconds
            delay: GUI delay between steps in milliseconds
            label: TraCI connection label (random if None, allows several
                   sessions per process)
            connection: Already-open TraCI connection to adopt instead of
                        launching SUMO
        """
        self.sumo_binary = sumo_binary
        self.config_file = config_file
        self.step_length = step_length
        self.delay = delay
        self.label = label or f"trafficlink_{uuid.uuid4().hex[:8]}"

        self._conn: Any = connection
        self._connected = connection is not None
        self._current_step = 0
        self._fault_listeners: list[FaultListener] = []

    @classmethod
    def from_settings(cls, settings) -> "TraCISession":
        """Build a session from a FacadeSettings instance."""
        return cls(
            sumo_binary=settings.sumo_binary,
            config_file=settings.config_file,
            step_length=settings.step_length,
            delay=settings.delay,
            label=settings.label,
        )

    def _build_command(self) -> list[str]:
        return [
            self.sumo_binary,
            "-c",
            str(self.config_file),
            "--step-length",
            str(self.step_length),
            "--delay",
            str(self.delay),
            "--no-step-log",
            "true",
        ]

    def connect(self) -> bool:
        """
        Launch SUMO and open the TraCI connection.

        Returns:
            True if connected, False otherwise
        """
        if self.is_ready():
            return True
        if not self.config_file:
            logger.warning("Cannot connect: no SUMO configuration file given")
            return False
        try:
            traci.start(self._build_command(), label=self.label)
            self._conn = traci.getConnection(self.label)
        except (traci.TraCIException, traci.FatalTraCIError, OSError) as e:
            logger.warning("Failed to start SUMO with %s: %s", self.config_file, e)
            self._conn = None
            self._connected = False
            return False

        self._connected = True
        self._current_step = 0
        logger.info("Connected to SUMO (%s)", self.label)
        return True

    def disconnect(self) -> None:
        """Close the connection (no-op if already closed)."""
        if self._conn is None or not self._connected:
            return
        try:
            self._conn.close()
            logger.info("Connection %s closed", self.label)
        except (traci.TraCIException, traci.FatalTraCIError, OSError) as e:
            logger.debug("Error while closing %s: %s", self.label, e)
        finally:
            self._connected = False
            self._conn = None

    def step(self) -> bool:
        """
        Advance the simulation by one step.

        Returns:
            True if the step was executed, False otherwise
        """
        if not self.is_ready():
            return False
        try:
            self._conn.simulationStep()
        except Exception as e:
            fault = as_fault(e)
            if isinstance(fault, ConnectionFault):
                self.report_connection_fault(fault)
            else:
                logger.warning("Simulation step failed: %s", fault)
            return False
        self._current_step += 1
        return True

    @property
    def current_step(self) -> int:
        return self._current_step if self.is_ready() else 0

    @property
    def simulation_time(self) -> float:
        """Elapsed simulation time in seconds (steps x step length)."""
        if not self.is_ready():
            return 0.0
        return self._current_step * self.step_length

    def is_connected(self) -> bool:
        return self._connected

    def is_ready(self) -> bool:
        """True when a connection object exists and is connected."""
        return self._conn is not None and self._connected

    def _invoke(self, domain: str, method: str, *args, **kwargs) -> Any:
        if not self.is_ready():
            raise ConnectionFault(SESSION_NOT_READY)
        try:
            target = getattr(getattr(self._conn, domain), method)
            return target(*args, **kwargs)
        except Exception as e:
            raise as_fault(e) from e

    def execute_read(self, domain: str, method: str, *args, **kwargs) -> Any:
        """
        Run a TraCI getter, e.g. execute_read("vehicle", "getSpeed", "v1").

        Raises:
            ConnectionFault: If the session is unusable
            OperationFault: If the command itself failed
        """
        return self._invoke(domain, method, *args, **kwargs)

    def execute_write(self, domain: str, method: str, *args, **kwargs) -> None:
        """
        Run a TraCI setter, e.g. execute_write("vehicle", "setColor", ...).

        Raises:
            ConnectionFault: If the session is unusable
            OperationFault: If the command itself failed
        """
        self._invoke(domain, method, *args, **kwargs)

    def add_fault_listener(self, listener: FaultListener) -> None:
        """Register a callback invoked whenever a connection fault is reported."""
        self._fault_listeners.append(listener)

    def report_connection_fault(self, error: BaseException) -> None:
        """
        Mark the connection as broken and notify listeners.

        The owning application decides whether to reconnect.
        """
        logger.warning("TraCI connection fault on %s: %s", self.label, error)
        conn = self._conn
        self._connected = False
        self._conn = None
        if conn is not None:
            try:
                conn.close()
            except (traci.TraCIException, traci.FatalTraCIError, OSError) as e:
                logger.debug("Ignoring close failure after fault: %s", e)
        for listener in list(self._fault_listeners):
            listener(error)
