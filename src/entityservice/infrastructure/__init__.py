"""
Infrastructure

🔧 Configuration and logging setup. Service wiring lives in
``infrastructure.configurator`` and is re-exported by the top-level package.
"""

from .configuration import (
    ApplicationConfig, Environment, EventHubConfig, LoggingConfig, PaginationConfig,
    SecurityConfig, get_config, set_config
)
from .log_setup import configure_logging

__all__ = [
    "ApplicationConfig",
    "Environment",
    "EventHubConfig",
    "LoggingConfig",
    "PaginationConfig",
    "SecurityConfig",
    "get_config",
    "set_config",
    "configure_logging",
]
