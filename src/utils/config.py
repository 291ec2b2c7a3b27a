# ========================
# src/utils/config.py
# ========================

"""
Configuration Management

Centralized configuration for the collection engine and its entry points, with environment support.
"""

import os
import logging
from typing import Dict, Any, List, Optional

logger = logging.getLogger(__name__)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ('1', 'true', 'yes', 'on')


class Config:
    """
    Configuration class for the collection engine.
    Supports environment variables and default values.
    """

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            config_dict (dict): Optional configuration overrides
        """
        # Engine behaviour
        self.STRICT_SHAPES = _env_flag('RAY_STRICT_SHAPES', 'true')
        self.MAX_CHAIN_STEPS = int(os.getenv('RAY_MAX_CHAIN_STEPS', '50'))

        # Output
        self.JSON_INDENT = int(os.getenv('RAY_JSON_INDENT', '2'))

        # API Settings
        self.API_HOST = os.getenv('RAY_API_HOST', '0.0.0.0')
        self.API_PORT = int(os.getenv('RAY_API_PORT', '8000'))

        # Logging Configuration
        self.LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
        self.LOG_DIR = os.getenv('RAY_LOG_DIR', 'logs')

        # Override with provided config
        if config_dict:
            self._update_from_dict(config_dict)

    def _update_from_dict(self, config_dict: Dict[str, Any]) -> None:
        """Update configuration from dictionary."""
        for key, value in config_dict.items():
            if hasattr(self, key.upper()):
                setattr(self, key.upper(), value)

    def validate_config(self) -> Dict[str, bool]:
        """
        Validate configuration values.

        Returns:
            dict: Validation results for each setting
        """
        validations = {}

        validations['strict_shapes'] = isinstance(self.STRICT_SHAPES, bool)
        validations['max_chain_steps'] = self.MAX_CHAIN_STEPS > 0
        validations['json_indent'] = self.JSON_INDENT >= 0
        validations['api_port'] = 1000 <= self.API_PORT <= 65535

        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        validations['log_level'] = self.LOG_LEVEL.upper() in valid_log_levels

        return validations

    def warn_invalid_settings(self) -> List[str]:
        """
        Log a warning for every setting that fails validation.

        Returns:
            list: Names of the failed validations
        """
        failed = [name for name, valid in self.validate_config().items() if not valid]
        for name in failed:
            logger.warning(f"Invalid configuration value for {name}: {getattr(self, name.upper(), None)!r}")
        return failed

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            attr: getattr(self, attr)
            for attr in dir(self)
            if not attr.startswith('_') and not callable(getattr(self, attr))
        }

    def save_to_file(self, file_path: str) -> None:
        """Save configuration to JSON file."""
        import json
        with open(file_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2, default=str)

    @classmethod
    def load_from_file(cls, file_path: str) -> 'Config':
        """Load configuration from JSON file."""
        import json
        with open(file_path, 'r') as f:
            config_dict = json.load(f)
        return cls(config_dict)

    def __str__(self) -> str:
        """String representation of configuration."""
        lines = ["Configuration Settings:"]
        config_dict = self.to_dict()
        for key, value in sorted(config_dict.items()):
            lines.append(f"  {key}: {value}")
        return "\n".join(lines)
