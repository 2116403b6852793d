"""
Configuration management for the Aid Station Planner.
Centralizes environment variables and processing settings.
"""

import os
from typing import Dict, Any, Optional
from dataclasses import dataclass, field

from .logging_config import get_logger

logger = get_logger(__name__)

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class AppConfig:
    """General application configuration."""
    log_level: str = "INFO"
    log_to_file: bool = False
    data_directory: str = "saved_tracks"
    max_file_size_mb: int = 10
    supported_file_types: list = field(default_factory=lambda: ['gpx'])
    enable_smoothing: bool = False
    persist_tracks: bool = False


@dataclass
class ProcessingConfig:
    """Track processing thresholds."""
    # Marker-to-point proximity for a visit, in miles
    match_radius_miles: float = 0.1
    # Minimum distance between retained visits of one marker
    visit_dedup_threshold: float = 5.0
    # Simplification tolerance in coordinate-degree units
    smoothing_tolerance: float = 0.00015
    smoothing_high_quality: bool = True
    aid_station_lookup_miles: float = 0.1


class ConfigManager:
    """Centralized configuration manager for the application."""

    def __init__(self):
        """Initialize configuration manager."""
        logger.info("Initializing configuration manager")
        self._app_config = None
        self._processing_config = None

        self._load_configurations()

    def _load_configurations(self):
        """Load all configuration sections."""
        try:
            self._app_config = self._load_app_config()
            self._processing_config = self._load_processing_config()

            logger.info("All configurations loaded successfully")

        except ValueError as e:
            logger.error(f"Error loading configurations: {e}")
            raise

    def _load_app_config(self) -> AppConfig:
        """Load general application configuration."""
        config = AppConfig(
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            log_to_file=_env_flag("LOG_TO_FILE", "false"),
            data_directory=os.environ.get("DATA_DIRECTORY", "saved_tracks"),
            max_file_size_mb=int(os.environ.get("MAX_FILE_SIZE_MB", "10")),
            enable_smoothing=_env_flag("ENABLE_SMOOTHING", "false"),
            persist_tracks=_env_flag("PERSIST_TRACKS", "false"),
        )

        logger.debug(f"App config loaded - Log level: {config.log_level}, smoothing: {config.enable_smoothing}")
        return config

    def _load_processing_config(self) -> ProcessingConfig:
        """Load track processing thresholds."""
        config = ProcessingConfig(
            match_radius_miles=float(os.environ.get("MATCH_RADIUS_MILES", "0.1")),
            visit_dedup_threshold=float(os.environ.get("VISIT_DEDUP_THRESHOLD", "5.0")),
            smoothing_tolerance=float(os.environ.get("SMOOTHING_TOLERANCE", "0.00015")),
            smoothing_high_quality=_env_flag("SMOOTHING_HIGH_QUALITY", "true"),
            aid_station_lookup_miles=float(os.environ.get("AID_STATION_LOOKUP_MILES", "0.1")),
        )

        logger.debug(f"Processing config loaded - Match radius: {config.match_radius_miles} mi")
        return config

    @property
    def app(self) -> AppConfig:
        """Get application configuration."""
        return self._app_config

    @property
    def processing(self) -> ProcessingConfig:
        """Get processing configuration."""
        return self._processing_config

    def get_environment_info(self) -> Dict[str, Any]:
        """Get environment information for debugging."""
        return {
            "data_directory": self._app_config.data_directory,
            "log_level": self._app_config.log_level,
            "smoothing_enabled": self._app_config.enable_smoothing,
            "persist_tracks": self._app_config.persist_tracks,
        }

    def validate_configuration(self) -> Dict[str, bool]:
        """Validate all configuration sections."""
        validation_results = {}

        validation_results["valid_log_level"] = self._app_config.log_level in VALID_LOG_LEVELS
        validation_results["valid_max_file_size"] = self._app_config.max_file_size_mb > 0
        validation_results["valid_match_radius"] = self._processing_config.match_radius_miles > 0
        validation_results["valid_dedup_threshold"] = self._processing_config.visit_dedup_threshold >= 0
        validation_results["valid_smoothing_tolerance"] = self._processing_config.smoothing_tolerance > 0

        logger.info(f"Configuration validation completed: {sum(validation_results.values())}/{len(validation_results)} checks passed")

        return validation_results


# Global configuration instance, created on first use
_config_manager: Optional[ConfigManager] = None


def get_config() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() re-reads the environment."""
    global _config_manager
    _config_manager = None
