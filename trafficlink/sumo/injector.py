"""
Vehicle injection onto a route or a bare edge.

Injection is fire-and-forget: nothing is rolled back, and mutations the
freshly added vehicle cannot accept yet are handed to the deferred
operation queue. Connection faults abort the remaining steps and
propagate to the caller.
"""

import logging
from collections.abc import MutableMapping

from .deferred import DeferredOperationQueue
from .faults import OperationFault, require_color, require_id, require_number
from .models import RED, Color, OperationKind
from .normalize import to_id_list
from .routing import RouteDiscoverer
from .session import TraCISession

logger = logging.getLogger(__name__)

DEFAULT_VEHICLE_TYPE = "DEFAULT_VEHTYPE"

# Depart/arrival parameters passed to traci.vehicle.add
INSERTION_DEFAULTS = {
    "depart": "now",
    "departLane": "first",
    "departPos": "base",
    "departSpeed": "0",
    "arrivalLane": "current",
    "arrivalPos": "max",
    "arrivalSpeed": "current",
}


def synthesized_route_id(vehicle_id: str) -> str:
    """Name of the single-edge spawn route created for a vehicle."""
    return f"route_{vehicle_id}"


class VehicleInjector:
    """Resolves the route, adds the vehicle, then applies its settings."""

    def __init__(
        self,
        session: TraCISession,
        queue: DeferredOperationQueue,
        discoverer: RouteDiscoverer,
        preferred_colors: MutableMapping[str, Color],
        default_vehicle_type: str = DEFAULT_VEHICLE_TYPE,
    ):
        self.session = session
        self.queue = queue
        self.discoverer = discoverer
        self.preferred_colors = preferred_colors
        self.default_vehicle_type = default_vehicle_type

    def _is_known_route(self, route_or_edge_id: str) -> bool:
        try:
            routes = to_id_list(self.session.execute_read("route", "getIDList"))
        except OperationFault as e:
            logger.debug("Could not list routes, assuming edge: %s", e)
            return False
        return route_or_edge_id in routes

    def _add(self, vehicle_id: str, route_id: str, type_id: str) -> None:
        self.session.execute_write(
            "vehicle",
            "add",
            vehicle_id,
            route_id,
            typeID=type_id,
            **INSERTION_DEFAULTS,
        )

    def _create_vehicle(self, vehicle_id: str, route_id: str) -> bool:
        """Add the vehicle with the default type, falling back to an empty type."""
        try:
            self._add(vehicle_id, route_id, self.default_vehicle_type)
            logger.info("Injected vehicle %s on route %s", vehicle_id, route_id)
            return True
        except OperationFault as e:
            logger.warning("Error adding vehicle %s: %s", vehicle_id, e)

        try:
            self._add(vehicle_id, route_id, "")
            logger.info("Injected vehicle %s (empty type) on route %s", vehicle_id, route_id)
            return True
        except OperationFault as e:
            logger.warning("Retry with empty type failed for %s: %s", vehicle_id, e)
            return False

    def _apply_or_defer(self, vehicle_id: str, kind: OperationKind, value) -> None:
        try:
            self.session.execute_write("vehicle", kind.traci_method, vehicle_id, value)
        except OperationFault:
            self.queue.enqueue(vehicle_id, kind, value)

    def inject(
        self,
        vehicle_id: str,
        route_or_edge_id: str,
        speed: float = 0.0,
        color: Color | None = None,
    ) -> bool:
        """
        Inject a vehicle.

        If ``route_or_edge_id`` is not an existing route it is treated as
        a spawn edge: a one-edge route ``route_<vehicle_id>`` is created
        and, once the vehicle exists, a longer random route from that
        edge is looked up and applied.

        Args:
            vehicle_id: Id of the new vehicle
            route_or_edge_id: Existing route id, or an edge id
            speed: Maximum speed in m/s (ignored unless > 0)
            color: Requested color (opaque red if None)

        Returns:
            True if the vehicle was created, False if creation failed

        Raises:
            InvalidInput: If an argument is malformed (checked before any
                          remote call)
            ConnectionFault: If the session failed at any step
        """
        require_id(vehicle_id, "vehicle_id")
        require_id(route_or_edge_id, "route_or_edge_id")
        speed = require_number(speed, "speed")
        color = RED if color is None else require_color(color)
        self.preferred_colors[vehicle_id] = color

        route_id = route_or_edge_id
        start_edge = None
        if not self._is_known_route(route_or_edge_id):
            route_id = synthesized_route_id(vehicle_id)
            start_edge = route_or_edge_id
            try:
                self.session.execute_write("route", "add", route_id, [start_edge])
            except OperationFault as e:
                # The edge may not exist; vehicle.add below reports it.
                logger.warning(
                    "Failed to create route %s for edge %s: %s",
                    route_id,
                    start_edge,
                    e,
                )

        if not self._create_vehicle(vehicle_id, route_id):
            return False

        if start_edge:
            edges = self.discoverer.find_reachable_route(
                start_edge, self.default_vehicle_type
            )
            if edges and len(edges) >= 2:
                self._apply_or_defer(vehicle_id, OperationKind.SET_ROUTE, edges)

        self._apply_or_defer(vehicle_id, OperationKind.SET_COLOR, color.as_tuple())

        if speed > 0:
            self._apply_or_defer(vehicle_id, OperationKind.SET_MAX_SPEED, float(speed))
        return True
