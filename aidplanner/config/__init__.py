"""
Configuration and logging for the Aid Station Planner.
"""

from .config import AppConfig, ProcessingConfig, ConfigManager, get_config, reset_config
from .logging_config import setup_logging, get_logger

__all__ = [
    'AppConfig', 'ProcessingConfig', 'ConfigManager', 'get_config', 'reset_config',
    'setup_logging', 'get_logger',
]
