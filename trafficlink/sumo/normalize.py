"""
Decoding helpers for loosely-typed TraCI return values.

TraCI getters occasionally hand back one-element tuples, plain
sequences, or library objects instead of the scalar the caller wants.
These helpers turn such payloads into the typed values used by the
façade, returning None (or a caller-supplied default) when a payload
cannot be interpreted.
"""

from collections.abc import Iterable, Sequence
from typing import Any

from .models import Color


def to_float(value: float | tuple | None, default: float = 0.0) -> float:
    """Normalize traci return value to float (handles tuple returns)."""
    if value is None:
        return default
    if isinstance(value, tuple):
        return float(value[0]) if len(value) > 0 else default
    return float(value)


def to_int(value: int | tuple | None, default: int = 0) -> int:
    """Normalize traci return value to int (handles tuple returns)."""
    if value is None:
        return default
    if isinstance(value, tuple):
        return int(value[0]) if len(value) > 0 else default
    return int(value)


def to_str(value: str | tuple | None, default: str = "") -> str:
    """Normalize traci return value to str (handles tuple returns)."""
    if value is None:
        return default
    if isinstance(value, tuple):
        return str(value[0]) if len(value) > 0 else default
    return str(value)


def to_id_list(value: Iterable[Any] | None) -> list[str]:
    """Convert an id-list response (tuple, list, ...) to a list of str."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value else []
    return [str(item) for item in value]


def _as_number(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def decode_position(payload: Any) -> tuple[float, float] | None:
    """
    Decode a 2D position payload.

    Accepts an (x, y) sequence or an object exposing ``x`` and ``y``
    attributes.

    Returns:
        (x, y) tuple, or None if the payload is malformed
    """
    if payload is None:
        return None
    if isinstance(payload, Sequence) and not isinstance(payload, str):
        if len(payload) < 2:
            return None
        x, y = _as_number(payload[0]), _as_number(payload[1])
    else:
        x = _as_number(getattr(payload, "x", None))
        y = _as_number(getattr(payload, "y", None))
    if x is None or y is None:
        return None
    return (x, y)


def decode_color(payload: Any) -> Color | None:
    """
    Decode an RGB(A) payload into a Color.

    Channels reported as signed bytes are wrapped back into 0-255.
    A missing alpha channel is treated as fully opaque.

    Returns:
        Color, or None if the payload is malformed
    """
    if isinstance(payload, Color):
        return payload
    if not isinstance(payload, Sequence) or isinstance(payload, str):
        return None
    if len(payload) not in (3, 4):
        return None
    channels = []
    for raw in payload:
        if isinstance(raw, bool) or not isinstance(raw, int):
            return None
        channels.append((raw + 256) % 256)
    if len(channels) == 3:
        channels.append(255)
    return Color(*channels)


def route_edges(payload: Any) -> list[str]:
    """
    Extract the edge list from a simulation.findRoute result.

    Newer SUMO versions return a single Stage object; some return a
    list of stages, in which case the first one is used.
    """
    if payload is None:
        return []
    if isinstance(payload, (list, tuple)):
        if not payload:
            return []
        payload = payload[0]
    edges = getattr(payload, "edges", None)
    return to_id_list(edges)
