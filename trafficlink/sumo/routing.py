"""
Bounded random search for a route leaving a given edge.

Used when a vehicle is injected onto a bare edge: instead of an
exhaustive reachability search, a handful of random destination edges
are tried and the first path SUMO can route is kept.
"""

import logging
import random

from .faults import OperationFault
from .normalize import route_edges, to_id_list
from .session import TraCISession

logger = logging.getLogger(__name__)

RANDOM_ROUTE_TRIES = 10
ROUTING_MODE_DEFAULT = 0


def is_internal_edge(edge_id: str) -> bool:
    """Junction-internal edges are prefixed with ':' in SUMO networks."""
    return edge_id.startswith(":")


class RouteDiscoverer:
    """Samples destination edges and asks SUMO for a path to them."""

    def __init__(
        self,
        session: TraCISession,
        max_tries: int = RANDOM_ROUTE_TRIES,
        rng: random.Random | None = None,
    ):
        """
        Args:
            session: Session used for edge listing and path finding
            max_tries: Number of sampled candidates per search
            rng: Random source (seed it for reproducible searches)
        """
        self.session = session
        self.max_tries = max_tries
        self.rng = rng or random.Random()

    def _find_route(
        self, from_edge: str, to_edge: str, vehicle_type_id: str
    ) -> list[str]:
        try:
            stage = self.session.execute_read(
                "simulation",
                "findRoute",
                from_edge,
                to_edge,
                vehicle_type_id,
                0.0,
                ROUTING_MODE_DEFAULT,
            )
        except OperationFault as e:
            logger.debug("No route %s -> %s: %s", from_edge, to_edge, e)
            return []
        return route_edges(stage)

    def find_reachable_route(
        self,
        start: str,
        vehicle_type_id: str,
        exclude_internal: bool = True,
    ) -> list[str] | None:
        """
        Find a route of at least two edges starting at ``start``.

        Each trial samples one candidate uniformly from all edges; the
        start edge itself and (optionally) internal edges are rejected
        without a remote call. The first path with >= 2 edges wins.

        Args:
            start: Edge the vehicle departs from
            vehicle_type_id: Vehicle type used for routing
            exclude_internal: Reject ':'-prefixed junction edges

        Returns:
            List of edge ids, or None if no route was found

        Raises:
            ConnectionFault: If the session failed during the search
        """
        if not start or not start.strip():
            return None
        try:
            edges = to_id_list(self.session.execute_read("edge", "getIDList"))
        except OperationFault as e:
            logger.debug("Could not list edges: %s", e)
            return None
        if not edges:
            return None

        for _ in range(self.max_tries):
            candidate = self.rng.choice(edges)
            if not candidate or candidate == start:
                continue
            if exclude_internal and is_internal_edge(candidate):
                continue
            route = self._find_route(start, candidate, vehicle_type_id)
            if len(route) >= 2:
                logger.debug("Route from %s via %d edges to %s", start, len(route), candidate)
                return route
        return None
