"""
Infrastructure accessors: bus stops, edges, lanes and routes.

All methods check the session first and return their documented
sentinel on any failure.
"""

import logging
from collections.abc import Sequence

from .normalize import to_float, to_id_list, to_int, to_str
from .session import TraCISession
from .wrapper import SessionWrapper

logger = logging.getLogger(__name__)


class InfrastructureWrapper(SessionWrapper):
    """Static network elements of the running scenario."""

    _logger = logger

    def __init__(self, session: TraCISession):
        super().__init__(session)

    # Bus stops
    def get_bus_stop_ids(self) -> list[str]:
        return to_id_list(self._read([], "busstop", "getIDList"))

    def get_bus_stop_lane(self, bus_stop_id: str) -> str | None:
        """Lane hosting the bus stop; None if not ready, "" on error."""
        if not self.is_ready() or not bus_stop_id:
            return None
        return to_str(self._read("", "busstop", "getLaneID", bus_stop_id))

    def get_bus_stop_person_count(self, bus_stop_id: str) -> int:
        if not bus_stop_id:
            return 0
        return to_int(self._read(0, "busstop", "getPersonCount", bus_stop_id))

    def get_bus_stop_start_pos(self, bus_stop_id: str) -> float:
        """Start position on the lane in meters; -1.0 on error."""
        if not bus_stop_id:
            return -1.0
        return to_float(self._read(-1.0, "busstop", "getStartPos", bus_stop_id), -1.0)

    def get_bus_stop_end_pos(self, bus_stop_id: str) -> float:
        """End position on the lane in meters; -1.0 on error."""
        if not bus_stop_id:
            return -1.0
        return to_float(self._read(-1.0, "busstop", "getEndPos", bus_stop_id), -1.0)

    def get_bus_stop_name(self, bus_stop_id: str) -> str:
        if not bus_stop_id:
            return ""
        return to_str(self._read("", "busstop", "getName", bus_stop_id))

    # Edges
    def get_edge_list(self) -> list[str]:
        return to_id_list(self._read([], "edge", "getIDList"))

    def get_lane_count(self, edge_id: str) -> int:
        if not edge_id:
            return 0
        return to_int(self._read(0, "edge", "getLaneNumber", edge_id))

    # Lanes
    def get_lane_list(self) -> list[str]:
        return to_id_list(self._read([], "lane", "getIDList"))

    def get_lane_max_speed(self, lane_id: str) -> float:
        """Maximum allowed speed on the lane in m/s."""
        if not lane_id:
            return 0.0
        return to_float(self._read(0.0, "lane", "getMaxSpeed", lane_id))

    def get_lane_length(self, lane_id: str) -> float:
        if not lane_id:
            return 0.0
        return to_float(self._read(0.0, "lane", "getLength", lane_id))

    # Routes
    def create_route(self, route_id: str, edges: Sequence[str]) -> bool:
        if not route_id or not edges:
            return False
        if not self._write("route", "add", route_id, list(edges)):
            return False
        logger.debug("Created route %s", route_id)
        return True

    def route_exists(self, route_id: str) -> bool:
        if not route_id:
            return False
        return route_id in to_id_list(self._read([], "route", "getIDList"))

    def create_route_if_missing(self, route_id: str, edge_id: str) -> None:
        if not self.is_ready() or not route_id or not edge_id:
            return
        if not self.route_exists(route_id):
            self.create_route(route_id, [edge_id])
