"""
Core module initialization.
Exports configuration and logging utilities.
"""

from menu_store.core.config import (
    get_settings,
    setup_logging,
    Settings,
    EnvironmentMode,
)

__all__ = ["get_settings", "setup_logging", "Settings", "EnvironmentMode"]
