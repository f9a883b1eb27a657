"""
Fault classification for TraCI session calls.

Every failure coming out of a session call is mapped onto one of two
kinds: a connection fault (the session itself is unusable and must be
reported to its owner) or an operation fault (a single command failed
against a live session, e.g. the target vehicle is not inserted yet).
"""

import math
from enum import Enum

import traci

from .models import Color


class FaultKind(Enum):
    """Verdict returned by classify_fault."""

    CONNECTION = "connection"
    OPERATION = "operation"


class SimulationError(Exception):
    """Base exception for all trafficlink errors."""


class ConnectionFault(SimulationError):
    """The TraCI connection is broken or was used out of sequence."""


class OperationFault(SimulationError):
    """A single TraCI command failed; the session is presumed alive."""


class InvalidInput(SimulationError):
    """Argument rejected before any remote call was attempted."""


_CONNECTION_ERRORS = (traci.FatalTraCIError, OSError, EOFError)


def classify_fault(exc: BaseException) -> FaultKind:
    """
    Classify a failure raised by a session call.

    Args:
        exc: Exception raised by the TraCI call (or an already
             classified SimulationError)

    Returns:
        FaultKind.CONNECTION if the session must be considered broken,
        FaultKind.OPERATION otherwise
    """
    if isinstance(exc, ConnectionFault):
        return FaultKind.CONNECTION
    if isinstance(exc, SimulationError):
        return FaultKind.OPERATION
    if isinstance(exc, _CONNECTION_ERRORS):
        return FaultKind.CONNECTION
    return FaultKind.OPERATION


def as_fault(exc: BaseException) -> SimulationError:
    """Wrap exc in the SimulationError subclass matching its fault kind."""
    if isinstance(exc, SimulationError):
        return exc
    if classify_fault(exc) is FaultKind.CONNECTION:
        fault: SimulationError = ConnectionFault(str(exc) or type(exc).__name__)
    else:
        fault = OperationFault(str(exc) or type(exc).__name__)
    fault.__cause__ = exc
    return fault


def require_id(value: str | None, what: str = "id") -> str:
    """Return value if it is a non-blank id, raise InvalidInput otherwise."""
    if value is None or not str(value).strip():
        raise InvalidInput(f"{what} must be a non-empty string")
    return value


def require_number(value: float | None, what: str = "value") -> float:
    """Return value as float if it is a real, non-NaN number, raise InvalidInput otherwise."""
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or math.isnan(value)
    ):
        raise InvalidInput(f"{what} must be a number, got {value!r}")
    return float(value)


def require_speed(value: float | None, what: str = "speed") -> float:
    """Return value as float if it is a speed >= 0, raise InvalidInput otherwise."""
    speed = require_number(value, what)
    if speed < 0:
        raise InvalidInput(f"{what} must be non-negative, got {value!r}")
    return speed


def require_color(color: Color | None, what: str = "color") -> Color:
    """Return color if every channel is an int in 0-255, raise InvalidInput otherwise."""
    if not isinstance(color, Color) or not color.is_valid():
        raise InvalidInput(f"{what} channels must be ints in 0-255, got {color!r}")
    return color
