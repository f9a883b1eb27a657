"""
trafficlink.

Control-and-telemetry façade over a live SUMO session via TraCI.
"""

from .sumo import (
    Color,
    ConnectionFault,
    EdgeWrapper,
    InfrastructureWrapper,
    OperationFault,
    TraCISession,
    TrafficLightWrapper,
    VehicleWrapper,
    compute_edge_stats,
    run_session,
)
from .settings import FacadeSettings, load_settings_from_path

__version__ = "0.1.0"

__all__ = [
    'Color',
    'ConnectionFault',
    'EdgeWrapper',
    'InfrastructureWrapper',
    'OperationFault',
    'TraCISession',
    'TrafficLightWrapper',
    'VehicleWrapper',
    'compute_edge_stats',
    'run_session',
    'FacadeSettings',
    'load_settings_from_path',
]
