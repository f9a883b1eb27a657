"""
Per-edge traffic statistics and edge accessors.

Statistics are recomputed from the complete vehicle roster on every
query; nothing is cached between calls except the (static) edge list.
"""

import logging
from collections.abc import Iterable, Sequence

from .models import NO_VEHICLES_SPEED, EdgeStats, VehicleRow
from .normalize import to_float, to_id_list, to_int
from .session import TraCISession
from .vehicles import VehicleWrapper
from .wrapper import SessionWrapper

logger = logging.getLogger(__name__)


def compute_edge_stats(
    edge_ids: Sequence[str], live_vehicles: Iterable[VehicleRow]
) -> dict[str, EdgeStats]:
    """
    Aggregate vehicle count and mean speed per edge.

    Vehicles reporting an edge outside ``edge_ids`` (junction-internal
    segments, or an empty edge after removal) are not attributed to any
    edge. Edges without vehicles keep the -1 speed sentinel.

    Args:
        edge_ids: Known edge ids, in display order
        live_vehicles: Rows with at least ``edge`` and ``speed``

    Returns:
        Mapping edge id -> EdgeStats, ordered like ``edge_ids``
    """
    stats = {edge_id: EdgeStats() for edge_id in edge_ids}
    speed_sums = dict.fromkeys(stats, 0.0)

    for vehicle in live_vehicles:
        edge_stats = stats.get(vehicle.edge)
        if edge_stats is None:
            continue
        edge_stats.vehicle_count += 1
        speed_sums[vehicle.edge] += vehicle.speed

    for edge_id, edge_stats in stats.items():
        if edge_stats.vehicle_count > 0:
            edge_stats.average_speed = speed_sums[edge_id] / edge_stats.vehicle_count
        else:
            edge_stats.average_speed = NO_VEHICLES_SPEED
    return stats


class EdgeWrapper(SessionWrapper):
    """Edge statistics and edge-level TraCI accessors."""

    _logger = logger

    def __init__(self, session: TraCISession, vehicles: VehicleWrapper):
        super().__init__(session)
        if vehicles is None:
            raise TypeError("vehicles must not be None")
        self.vehicles = vehicles
        self._edge_ids: list[str] = []
        session.add_fault_listener(self._on_connection_fault)

    def _on_connection_fault(self, error: BaseException) -> None:
        # The next connection may load another network.
        self._edge_ids = []

    def get_edge_ids(self) -> list[str]:
        """All edge ids of the network (fetched once, then cached)."""
        if not self._edge_ids:
            self._edge_ids = to_id_list(self._read([], "edge", "getIDList"))
        return list(self._edge_ids)

    def get_edge_stats(self) -> dict[str, EdgeStats]:
        """Recompute statistics for every edge from the live vehicle roster."""
        edge_ids = self.get_edge_ids()
        rows = self.vehicles.get_vehicle_rows()
        return compute_edge_stats(edge_ids, rows)

    def get_all_avg_edge_speeds(self) -> dict[str, float]:
        return {
            edge_id: s.average_speed for edge_id, s in self.get_edge_stats().items()
        }

    def get_all_num_vehicles(self) -> dict[str, int]:
        return {
            edge_id: s.vehicle_count for edge_id, s in self.get_edge_stats().items()
        }

    def get_avg_edge_speed(self, edge_id: str) -> float:
        """Mean speed on one edge; -1 if empty or unknown."""
        stats = self.get_edge_stats().get(edge_id)
        return stats.average_speed if stats else NO_VEHICLES_SPEED

    def get_num_vehicles(self, edge_id: str) -> int:
        stats = self.get_edge_stats().get(edge_id)
        return stats.vehicle_count if stats else 0

    def get_edge_count(self) -> int:
        return to_int(self._read(0, "edge", "getIDCount"))

    def get_lane_number_of_edge(self, edge_id: str) -> int:
        if not edge_id:
            return 0
        return to_int(self._read(0, "edge", "getLaneNumber", edge_id))

    def set_max_speed(self, edge_id: str, new_max: float) -> None:
        """Set the maximum allowed speed (m/s) on every lane of an edge."""
        if not edge_id or new_max is None or new_max < 0:
            return
        self._write("edge", "setMaxSpeed", edge_id, float(new_max))

    def get_avg_vehicles_per_edge(self) -> float:
        """Average number of vehicles per edge (vehicle density)."""
        edge_count = self.get_edge_count()
        if edge_count <= 0:
            return 0.0
        return self.vehicles.get_vehicle_count() / edge_count

    def get_last_step_mean_speed(self, edge_id: str) -> float:
        """Mean speed reported by SUMO for the last step; -1 on error."""
        return to_float(
            self._read(NO_VEHICLES_SPEED, "edge", "getLastStepMeanSpeed", edge_id),
            NO_VEHICLES_SPEED,
        )

    def get_last_step_vehicle_number(self, edge_id: str) -> int:
        return to_int(self._read(0, "edge", "getLastStepVehicleNumber", edge_id))

    def get_last_step_vehicle_ids(self, edge_id: str) -> list[str] | None:
        """Vehicles on the edge in the last step; None if unavailable."""
        ids = self._read(None, "edge", "getLastStepVehicleIDs", edge_id)
        return None if ids is None else to_id_list(ids)

    def get_waiting_time_sum(self, edge_id: str) -> float:
        return to_float(self._read(0.0, "edge", "getWaitingTime", edge_id))

    def get_last_step_halting_number(self, edge_id: str) -> int:
        """Vehicles slower than 0.1 m/s on the edge in the last step."""
        return to_int(self._read(0, "edge", "getLastStepHaltingNumber", edge_id))

    def get_travel_time(self, edge_id: str) -> float:
        """Current expected travel time (length / mean speed)."""
        return to_float(self._read(0.0, "edge", "getTraveltime", edge_id))
