"""
YAML loader and saver for façade settings with JSON schema validation.
"""

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml

from .settings import FacadeSettings


def _get_schema_path() -> Path:
    """Get the path to the JSON schema file."""
    return Path(__file__).parent / "schema.json"


def validate_settings(
    data: dict[str, Any], schema_path: Path | None = None
) -> None:
    """
    Validate settings data against JSON schema.

    Args:
        data: Dictionary containing settings data
        schema_path: Optional path to schema file. If None, uses default.

    Raises:
        jsonschema.ValidationError: If validation fails
        FileNotFoundError: If schema file not found
    """
    if schema_path is None:
        schema_path = _get_schema_path()

    if not schema_path.exists():
        raise FileNotFoundError(f"Schema file not found: {schema_path}")

    with open(schema_path, "r", encoding="utf-8") as f:
        schema = json.load(f)

    jsonschema.validate(instance=data, schema=schema)


def _get_field(
    data: dict[str, Any], snake_key: str, camel_key: str, default: Any = None
) -> Any:
    """Get field from dict supporting both snake_case and camelCase."""
    return data.get(snake_key, data.get(camel_key, default))


def _dict_to_settings(data: dict[str, Any]) -> FacadeSettings:
    """Convert dictionary to FacadeSettings dataclass."""
    return FacadeSettings(
        config_file=_get_field(data, "config_file", "configFile"),
        sumo_binary=_get_field(data, "sumo_binary", "sumoBinary", "sumo"),
        step_length=float(_get_field(data, "step_length", "stepLength", 1.0)),
        delay=int(data.get("delay", 50)),
        label=data.get("label"),
        default_vehicle_type=_get_field(
            data, "default_vehicle_type", "defaultVehicleType", "DEFAULT_VEHTYPE"
        ),
        route_tries=int(_get_field(data, "route_tries", "routeTries", 10)),
        log_level=_get_field(data, "log_level", "logLevel", "INFO"),
    )


def _settings_to_dict(settings: FacadeSettings) -> dict[str, Any]:
    """Convert FacadeSettings to dictionary."""
    result = {
        "config_file": settings.config_file,
        "sumo_binary": settings.sumo_binary,
        "step_length": settings.step_length,
        "delay": settings.delay,
        "default_vehicle_type": settings.default_vehicle_type,
        "route_tries": settings.route_tries,
        "log_level": settings.log_level,
    }
    if settings.label is not None:
        result["label"] = settings.label
    return result


def load_settings_from_path(path: Path, validate: bool = True) -> FacadeSettings:
    """
    Load settings from a YAML file path.

    Args:
        path: Path to YAML file
        validate: Whether to validate against JSON schema

    Returns:
        FacadeSettings object

    Raises:
        FileNotFoundError: If file not found
        ValueError: If the file is empty
        yaml.YAMLError: If YAML parsing fails
        jsonschema.ValidationError: If validation fails
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        raise ValueError(f"Empty or invalid YAML file: {path}")

    if validate:
        validate_settings(data)

    return _dict_to_settings(data)


def save_settings_to_path(
    settings: FacadeSettings, path: Path, validate: bool = True
) -> None:
    """
    Save settings to a YAML file path, creating parent directories.

    Raises:
        jsonschema.ValidationError: If validation fails
    """
    data = _settings_to_dict(settings)

    if validate:
        validate_settings(data)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)
