"""
SUMO module.

TraCI session handling and the façade over vehicles, edges, traffic
lights and infrastructure.
"""

from .faults import (
    ConnectionFault,
    FaultKind,
    InvalidInput,
    OperationFault,
    SimulationError,
    classify_fault,
)
from .models import (
    Color,
    DeferredOperation,
    EdgeStats,
    OperationKind,
    VehicleRow,
    VehicleState,
)
from .session import TraCISession
from .deferred import DeferredOperationQueue
from .edges import EdgeWrapper, compute_edge_stats
from .routing import RouteDiscoverer
from .injector import VehicleInjector
from .vehicles import VehicleWrapper
from .traffic_lights import TrafficLightWrapper
from .infrastructure import InfrastructureWrapper
from .runner import Injection, parse_injection, run_session

__all__ = [
    'ConnectionFault',
    'FaultKind',
    'InvalidInput',
    'OperationFault',
    'SimulationError',
    'classify_fault',
    'Color',
    'DeferredOperation',
    'EdgeStats',
    'OperationKind',
    'VehicleRow',
    'VehicleState',
    'TraCISession',
    'DeferredOperationQueue',
    'EdgeWrapper',
    'compute_edge_stats',
    'RouteDiscoverer',
    'VehicleInjector',
    'VehicleWrapper',
    'TrafficLightWrapper',
    'InfrastructureWrapper',
    'Injection',
    'parse_injection',
    'run_session',
]
