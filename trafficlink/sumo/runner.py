"""
Synchronous step loop used by the command-line runner.

Connects a session, injects the requested vehicles, then steps the
simulation while replaying deferred vehicle updates and printing edge
reports. Final edge statistics are collected and the traffic-light
action log exported before the session is closed.
"""

from dataclasses import dataclass
from typing import Any

from .edges import EdgeWrapper
from .session import TraCISession
from .traffic_lights import TrafficLightWrapper
from .vehicles import VehicleWrapper

DEFAULT_REPORT_INTERVAL = 100


@dataclass
class Injection:
    """One vehicle to inject before the first step."""

    vehicle_id: str
    route_or_edge_id: str
    speed: float = 0.0


def parse_injection(text: str) -> Injection:
    """
    Parse a 'VEH_ID:ROUTE_OR_EDGE[:SPEED]' command-line value.

    Raises:
        ValueError: If the value is malformed
    """
    parts = text.split(":")
    if len(parts) not in (2, 3) or not parts[0] or not parts[1]:
        raise ValueError(f"Expected VEH_ID:ROUTE_OR_EDGE[:SPEED], got {text!r}")
    speed = float(parts[2]) if len(parts) == 3 else 0.0
    return Injection(parts[0], parts[1], speed)


def _report_edges(step: int, edges: EdgeWrapper) -> None:
    stats = edges.get_edge_stats()
    occupied = {edge_id: s for edge_id, s in stats.items() if not s.is_empty}
    print(f">>> Step {step}: {len(occupied)}/{len(stats)} edges occupied")
    for edge_id, s in sorted(occupied.items()):
        print(f">>>   {edge_id}: {s.vehicle_count} vehicles, {s.average_speed:.2f} m/s")


def _run_simulation_loop(
    session: TraCISession,
    max_steps: int,
    vehicles: VehicleWrapper,
    edges: EdgeWrapper,
    report_interval: int,
) -> int:
    """Step the simulation, replaying deferred updates each step."""
    step = 0
    print(f">>> Starting simulation (max {max_steps} steps)...")

    while step < max_steps:
        if not session.step():
            print(f">>> Simulation stopped at step {step}")
            break
        vehicles.apply_pending_updates()

        if report_interval > 0 and step % report_interval == 0:
            _report_edges(step, edges)
        step += 1

    return step


def _collect_final_results(
    steps_run: int,
    vehicles: VehicleWrapper,
    edges: EdgeWrapper,
    traffic_lights: TrafficLightWrapper,
) -> dict[str, Any]:
    """Gather final statistics and export the action log."""
    result = {
        'steps': steps_run,
        'edge_stats': edges.get_edge_stats(),
        'pending_operations': len(vehicles.pending_operations()),
        'traffic_lights': traffic_lights,
    }
    traffic_lights.export_action_log()
    return result


def run_session(
    session: TraCISession,
    max_steps: int = 1000,
    injections: list[Injection] | None = None,
    report_interval: int = DEFAULT_REPORT_INTERVAL,
    output_dir: str | None = None,
    default_vehicle_type: str = "DEFAULT_VEHTYPE",
    route_tries: int = 10,
) -> dict[str, Any]:
    """
    Connect, inject vehicles, step the simulation and report edge statistics.

    The session is always disconnected on return.

    Args:
        session: Session to drive (connected here if not already)
        max_steps: Maximum number of simulation steps
        injections: Vehicles to inject before the first step
        report_interval: Print edge statistics every N steps (0 disables)
        output_dir: Directory for traffic_light_actions.csv (None = no export)
        default_vehicle_type: vType used for injected vehicles
        route_tries: Destinations sampled when routing from a bare edge

    Returns:
        Dictionary with 'steps', 'edge_stats', 'pending_operations' and
        'traffic_lights', or an empty dict if SUMO could not be started
    """
    if not session.connect():
        print(">>> Could not connect to SUMO")
        return {}

    vehicles = VehicleWrapper(
        session, default_vehicle_type=default_vehicle_type, route_tries=route_tries
    )
    edges = EdgeWrapper(session, vehicles)
    traffic_lights = TrafficLightWrapper(session, output_dir=output_dir)

    try:
        for injection in injections or []:
            print(f">>> Injecting {injection.vehicle_id} on {injection.route_or_edge_id}")
            vehicles.add_vehicle(
                injection.vehicle_id, injection.route_or_edge_id, injection.speed
            )

        steps_run = _run_simulation_loop(
            session, max_steps, vehicles, edges, report_interval
        )
        print(">>> Collecting final results...")
        result = _collect_final_results(steps_run, vehicles, edges, traffic_lights)
    finally:
        session.disconnect()
        print(">>> Simulation finished")

    return result
