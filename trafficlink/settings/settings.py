"""
Settings dataclass for a façade session.
"""

from dataclasses import dataclass


@dataclass
class FacadeSettings:
    """Connection and behaviour settings (one YAML document)."""

    config_file: str
    sumo_binary: str = "sumo"
    step_length: float = 1.0
    delay: int = 50
    label: str | None = None
    default_vehicle_type: str = "DEFAULT_VEHTYPE"
    route_tries: int = 10
    log_level: str = "INFO"
