"""
Vehicle façade over a TraCI session.

Reads degrade to documented sentinels, mutations never raise, and
mutations against vehicles that are not inserted yet are retried on
every state refresh through the deferred operation queue.
"""

import logging
import random

from .deferred import DeferredOperationQueue
from .faults import (
    ConnectionFault,
    InvalidInput,
    OperationFault,
    require_color,
    require_id,
    require_number,
    require_speed,
)
from .injector import DEFAULT_VEHICLE_TYPE, VehicleInjector
from .models import RED, UNSET_COLOR, Color, DeferredOperation, VehicleRow, VehicleState
from .normalize import decode_color, decode_position, to_float, to_id_list, to_int, to_str
from .routing import RANDOM_ROUTE_TRIES, RouteDiscoverer
from .session import TraCISession
from .wrapper import SessionWrapper

logger = logging.getLogger(__name__)

LANE_INDEX_ERROR = -2**30
ORIGIN = (0.0, 0.0)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


class VehicleWrapper(SessionWrapper):
    """
    Vehicle queries and commands with deferred retries.

    Owns the pending-operation queue and the per-vehicle preferred
    colors; nothing else writes to them.
    """

    _logger = logger

    def __init__(
        self,
        session: TraCISession,
        default_vehicle_type: str = DEFAULT_VEHICLE_TYPE,
        route_tries: int = RANDOM_ROUTE_TRIES,
        rng: random.Random | None = None,
    ):
        """
        Args:
            session: Session to operate on
            default_vehicle_type: vType used when injecting vehicles
            route_tries: Destinations sampled when routing from a bare edge
            rng: Random source for route discovery
        """
        super().__init__(session)
        self.queue = DeferredOperationQueue()
        self.preferred_colors: dict[str, Color] = {}
        self.discoverer = RouteDiscoverer(session, max_tries=route_tries, rng=rng)
        self.injector = VehicleInjector(
            session,
            self.queue,
            self.discoverer,
            self.preferred_colors,
            default_vehicle_type=default_vehicle_type,
        )
        session.add_fault_listener(self._on_connection_fault)

    def _on_connection_fault(self, error: BaseException) -> None:
        # Vehicle ids may be reused by the next connection.
        self.queue.clear()

    # ------------------------------------------------------------------
    # Deferred operations
    # ------------------------------------------------------------------

    def apply_pending_updates(self) -> None:
        """Replay queued mutations; stops at the first connection fault."""
        if not self.is_ready() or not self.queue:
            return
        try:
            self.queue.drain(self.session)
        except ConnectionFault as e:
            self.session.report_connection_fault(e)

    def pending_operations(self) -> list[DeferredOperation]:
        return self.queue.pending()

    # ------------------------------------------------------------------
    # Roster queries
    # ------------------------------------------------------------------

    def get_vehicle_count(self) -> int:
        """Number of vehicles currently in the network (0 if unavailable)."""
        return to_int(self._read(0, "vehicle", "getIDCount"))

    def get_vehicle_ids(self) -> list[str]:
        return to_id_list(self._read([], "vehicle", "getIDList"))

    def _refreshed_ids(self) -> list[str] | None:
        """Drain pending updates, then fetch ids; None if the session dropped."""
        self.apply_pending_updates()
        if not self.is_ready():
            return None
        try:
            return to_id_list(self.session.execute_read("vehicle", "getIDList"))
        except ConnectionFault as e:
            self.session.report_connection_fault(e)
        except OperationFault as e:
            logger.debug("Failed to fetch vehicle IDs: %s", e)
        return None

    def _row_for(self, vehicle_id: str) -> VehicleRow:
        read = self.session.execute_read
        speed = to_float(read("vehicle", "getSpeed", vehicle_id))
        edge = to_str(read("vehicle", "getRoadID", vehicle_id))
        color = self.preferred_colors.get(vehicle_id, RED)
        reported = decode_color(read("vehicle", "getColor", vehicle_id))
        if reported is not None:
            color = reported
        return VehicleRow(vehicle_id, max(speed, 0.0), edge, color)

    def get_vehicle_rows(self) -> list[VehicleRow]:
        """
        Fresh rows (id, speed, edge, color) for every vehicle.

        Pending updates are drained first. Vehicles that vanish or fail
        mid-scan are skipped; a connection fault ends the scan and the
        rows gathered so far are returned.
        """
        rows: list[VehicleRow] = []
        ids = self._refreshed_ids()
        if ids is None:
            return rows

        for vehicle_id in ids:
            try:
                rows.append(self._row_for(vehicle_id))
            except ConnectionFault as e:
                self.session.report_connection_fault(e)
                break
            except OperationFault as e:
                logger.debug("Failed to fetch row for vehicle %s: %s", vehicle_id, e)
        return rows

    def _collect(self, method: str, decode) -> dict:
        """Map vehicle id -> decoded getter value, skipping failures."""
        out = {}
        ids = self._refreshed_ids()
        if ids is None:
            return out

        for vehicle_id in ids:
            try:
                value = decode(self.session.execute_read("vehicle", method, vehicle_id))
            except ConnectionFault as e:
                self.session.report_connection_fault(e)
                break
            except OperationFault:
                continue
            if value is not None:
                out[vehicle_id] = value
        return out

    def get_vehicle_positions(self) -> dict[str, tuple[float, float]]:
        return self._collect("getPosition", decode_position)

    def get_vehicle_lane_ids(self) -> dict[str, str]:
        return self._collect("getLaneID", lambda v: to_str(v) or None)

    def get_vehicle_angles(self) -> dict[str, float]:
        """Heading in degrees per vehicle (SUMO convention, 0 = north)."""
        return self._collect(
            "getAngle", lambda v: float(v) if isinstance(v, (int, float)) else None
        )

    def get_vehicle_types(self) -> dict[str, str]:
        """
        Vehicle class per vehicle ('passenger', 'bus', ...).

        Falls back to the vType id when the class is unavailable.
        """
        out: dict[str, str] = {}
        if not self.is_ready():
            return out
        try:
            ids = to_id_list(self.session.execute_read("vehicle", "getIDList"))
        except ConnectionFault as e:
            self.session.report_connection_fault(e)
            return out
        except OperationFault as e:
            logger.debug("Failed to fetch vehicle types: %s", e)
            return out

        for vehicle_id in ids:
            try:
                vclass = self.session.execute_read("vehicle", "getVehicleClass", vehicle_id)
                if vclass:
                    out[vehicle_id] = str(vclass).lower()
                    continue
                type_id = self.session.execute_read("vehicle", "getTypeID", vehicle_id)
                if type_id:
                    out[vehicle_id] = str(type_id)
            except ConnectionFault as e:
                self.session.report_connection_fault(e)
                break
            except OperationFault:
                continue
        return out

    # ------------------------------------------------------------------
    # Single vehicle accessors
    # ------------------------------------------------------------------

    def get_speed(self, vehicle_id: str) -> float:
        """Speed in m/s during the last step (0 on error)."""
        return to_float(self._read(0.0, "vehicle", "getSpeed", vehicle_id))

    def set_speed(self, vehicle_id: str, new_speed: float) -> None:
        """Set the speed in m/s; -1 hands control back to SUMO."""
        try:
            require_id(vehicle_id, "vehicle_id")
            new_speed = require_number(new_speed, "new_speed")
        except InvalidInput as e:
            logger.debug("set_speed ignored: %s", e)
            return
        self._write("vehicle", "setSpeed", vehicle_id, new_speed)

    def get_position(self, vehicle_id: str) -> tuple[float, float]:
        position = decode_position(self._read(None, "vehicle", "getPosition", vehicle_id))
        return position if position is not None else ORIGIN

    def get_edge_id(self, vehicle_id: str) -> str:
        """Current road id; "" on error."""
        return to_str(self._read("", "vehicle", "getRoadID", vehicle_id))

    def get_lane_id(self, vehicle_id: str) -> str:
        return to_str(self._read("", "vehicle", "getLaneID", vehicle_id))

    def get_lane_index(self, vehicle_id: str) -> int:
        return to_int(
            self._read(LANE_INDEX_ERROR, "vehicle", "getLaneIndex", vehicle_id),
            LANE_INDEX_ERROR,
        )

    def get_color_rgba(self, vehicle_id: str) -> Color:
        """
        Color set for the vehicle via XML or TraCI.

        This is not necessarily what the GUI shows. Returns
        Color(0, 0, 0, 0) if unavailable.
        """
        color = decode_color(self._read(None, "vehicle", "getColor", vehicle_id))
        return color if color is not None else UNSET_COLOR

    def set_color_rgba(self, vehicle_id: str, color: Color) -> None:
        if not vehicle_id or color is None or not color.is_valid():
            return
        self._write("vehicle", "setColor", vehicle_id, color.as_tuple())

    def add_vehicle(
        self,
        vehicle_id: str,
        route_or_edge_id: str,
        speed: float = 0.0,
        color: Color | None = None,
    ) -> None:
        """Inject a vehicle on a route or bare edge (fire-and-forget)."""
        if not self.is_ready():
            return
        try:
            self.injector.inject(vehicle_id, route_or_edge_id, speed, color)
        except InvalidInput as e:
            logger.debug("add_vehicle ignored: %s", e)
        except ConnectionFault as e:
            self.session.report_connection_fault(e)

    def configure_vehicle(
        self,
        vehicle_id: str,
        max_speed: float,
        speed_ratio: float,
        r: int,
        g: int,
        b: int,
        a: int = 255,
    ) -> None:
        """
        Configure an existing vehicle.

        Sets its max speed, its current speed (max_speed * speed_ratio,
        ratio clamped to [0, 1]) and its color.
        """
        if not self.is_ready():
            return
        try:
            require_id(vehicle_id, "vehicle_id")
            max_speed = require_speed(max_speed, "max_speed")
            speed_ratio = require_number(speed_ratio, "speed_ratio")
            color = require_color(Color(r, g, b, a))
        except InvalidInput as e:
            logger.debug("configure_vehicle ignored: %s", e)
            return
        actual_speed = max_speed * _clamp(speed_ratio, 0.0, 1.0)
        if not self._write("vehicle", "setMaxSpeed", vehicle_id, max_speed):
            return
        if not self._write("vehicle", "setSpeed", vehicle_id, actual_speed):
            return
        self.set_color_rgba(vehicle_id, color)

    def update_state(self, vehicle_id: str) -> VehicleState:
        """Point-in-time snapshot of one vehicle."""
        x, y = self.get_position(vehicle_id)
        return VehicleState(
            vehicle_id, x, y, self.get_speed(vehicle_id), self.get_edge_id(vehicle_id)
        )
