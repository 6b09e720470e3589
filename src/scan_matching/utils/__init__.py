"""
Utility Functions Module

This module provides common utilities used across the scan matching project.
- Logging setup
- Typed YAML configuration
"""

from .logging import setup_logger, set_package_log_level
from .config import AppConfig, RegistrationConfig, load_config

__all__ = [
    "setup_logger",
    "set_package_log_level",
    "AppConfig",
    "RegistrationConfig",
    "load_config",
]
