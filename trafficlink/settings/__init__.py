"""
Settings for trafficlink sessions.

Provides the settings dataclass and YAML load/save helpers.
"""

from .settings import FacadeSettings
from .loader import (
    load_settings_from_path,
    save_settings_to_path,
    validate_settings,
)

__all__ = [
    'FacadeSettings',
    'load_settings_from_path',
    'save_settings_to_path',
    'validate_settings',
]
