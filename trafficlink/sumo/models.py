"""
Core dataclasses shared by the SUMO façade.

Defines display rows, point-in-time vehicle snapshots, per-edge
statistics, and the deferred mutation records kept for retry.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


NO_VEHICLES_SPEED = -1.0  # average speed sentinel: edge currently empty


@dataclass(frozen=True)
class Color:
    """RGBA color with 0-255 channels (SUMO convention)."""

    r: int
    g: int
    b: int
    a: int = 255

    @property
    def opacity(self) -> float:
        """Alpha channel as a 0.0-1.0 opacity."""
        return min(max(self.a / 255.0, 0.0), 1.0)

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.r, self.g, self.b, self.a)

    def is_valid(self) -> bool:
        """True if every channel is an int in 0-255."""
        return all(
            isinstance(c, int) and not isinstance(c, bool) and 0 <= c <= 255
            for c in self.as_tuple()
        )


RED = Color(255, 0, 0, 255)
UNSET_COLOR = Color(0, 0, 0, 0)


@dataclass(frozen=True)
class VehicleRow:
    """Display-oriented snapshot of one vehicle, rebuilt on every refresh."""

    id: str
    speed: float
    edge: str
    color: Color = RED

    @property
    def opacity(self) -> float:
        return self.color.opacity


@dataclass(frozen=True)
class VehicleState:
    """
    Immutable snapshot of a single vehicle at one simulation step.

    The edge may be empty if the vehicle is off-network, teleporting, or
    was removed between calls.
    """

    id: str
    x: float
    y: float
    speed: float
    edge: str


@dataclass
class EdgeStats:
    """Vehicle count and mean speed on one edge (-1 speed when empty)."""

    vehicle_count: int = 0
    average_speed: float = NO_VEHICLES_SPEED

    @property
    def is_empty(self) -> bool:
        return self.vehicle_count == 0


class OperationKind(Enum):
    """Vehicle mutations that can be deferred until the vehicle exists."""

    SET_COLOR = "setColor"
    SET_MAX_SPEED = "setMaxSpeed"
    SET_ROUTE = "setRoute"

    @property
    def traci_method(self) -> str:
        """Name of the traci.vehicle setter applying this kind."""
        return self.value


@dataclass
class DeferredOperation:
    """A vehicle mutation waiting to be replayed."""

    entity_id: str
    kind: OperationKind
    value: Any
    attempts: int = 0
    last_error: str | None = field(default=None, compare=False)

    @property
    def key(self) -> tuple[str, OperationKind]:
        return (self.entity_id, self.kind)
