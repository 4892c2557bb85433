"""
Configuration module for the resource tracker
Centralizes tracker tolerances, game rules and logging settings with validation
"""

import os
import json
import logging
import threading
from pathlib import Path
from typing import Dict, Any, Optional, Union


class ConfigError(Exception):
    """Configuration validation error"""
    pass


def _safe_int_env(name: str, default: int, min_val: int = None, max_val: int = None) -> int:
    """
    Safely parse integer environment variable with bounds.
    Falls back to default on invalid values.
    """
    logger_local = logging.getLogger(__name__)
    try:
        value = int(os.getenv(name, str(default)))
        if min_val is not None:
            value = max(min_val, value)
        if max_val is not None:
            value = min(max_val, value)
        return value
    except (ValueError, TypeError):
        logger_local.warning(f"Invalid {name}, using default {default}")
        return default


def _safe_float_env(name: str, default: float) -> float:
    """Parse a float environment variable, falling back to default on invalid values."""
    logger_local = logging.getLogger(__name__)
    try:
        return float(os.getenv(name, repr(default)))
    except (ValueError, TypeError):
        logger_local.warning(f"Invalid {name}, using default {default}")
        return default


class Config:
    """
    Configuration management with:
    - Input validation
    - Environment variable support
    - Safe defaults
    - JSON overrides
    """

    # ========== Tracker Settings ==========
    TRACKER = {
        'probability_tolerance': _safe_float_env('TRACKER_PROBABILITY_TOLERANCE', 1e-8),
        'transaction_id_prefix': 'steal',
        'max_event_history': _safe_int_env('TRACKER_MAX_EVENT_HISTORY', 0, 0),  # 0 = unbounded
    }

    # ========== Game Rules ==========
    GAME_RULES = {
        'bank_resources_per_kind': 19,
        'building_costs': {
            'road': {'tree': 1, 'brick': 1},
            'settlement': {'tree': 1, 'brick': 1, 'sheep': 1, 'wheat': 1},
            'city': {'ore': 3, 'wheat': 2},
            'dev_card': {'sheep': 1, 'wheat': 1, 'ore': 1},
        },
        'starting_pieces': {
            'settlements': 5,
            'cities': 4,
            'roads': 15,
        },
        'dev_card_deck': {
            'knights': 14,
            'victory_points': 5,
            'year_of_plenty': 2,
            'road_building': 2,
            'monopoly': 2,
        },
        'dice_range': (2, 12),
    }

    # ========== Logging Settings ==========
    LOGGING = {
        'level': os.getenv('LOG_LEVEL', 'INFO'),
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'date_format': '%Y-%m-%d %H:%M:%S',
        'max_bytes': 5 * 1024 * 1024,
        'backup_count': 3,
        'colored_output': True,
        'log_dir': os.getenv('TRACKER_LOG_DIR', ''),
    }

    def __init__(
        self,
        config_file: Optional[str] = None,
        validate: bool = True,
    ):
        """
        Initialize configuration with optional validation

        Args:
            config_file: Optional path to JSON config file
            validate: Whether to validate configuration on init
        """
        self._lock = threading.RLock()
        self.config_file = config_file
        self._custom_settings = {}
        self._logger = None  # Will be set after logger initialization

        if config_file:
            self.load_from_file(config_file)

        if validate:
            self.validate()

    def validate(self):
        """
        Validate all configuration values

        Raises:
            ConfigError: If configuration is invalid
        """
        errors = []

        tolerance = self.get('tracker', 'probability_tolerance')
        if not isinstance(tolerance, (int, float)) or tolerance <= 0 or tolerance >= 1:
            errors.append("probability_tolerance must be in (0, 1)")
        if not self.get('tracker', 'transaction_id_prefix'):
            errors.append("transaction_id_prefix cannot be empty")
        if self.get('tracker', 'max_event_history', 0) < 0:
            errors.append("max_event_history cannot be negative")

        if self.get('game_rules', 'bank_resources_per_kind', 0) < 1:
            errors.append("bank_resources_per_kind must be positive")
        low, high = self.get('game_rules', 'dice_range', (2, 12))
        if low < 2 or high < low:
            errors.append(f"Invalid dice_range: ({low}, {high})")
        for building, cost in self.get('game_rules', 'building_costs', {}).items():
            if any(amount < 0 for amount in cost.values()):
                errors.append(f"Building cost for {building} cannot be negative")
        for piece, count in self.get('game_rules', 'starting_pieces', {}).items():
            if count < 0:
                errors.append(f"Starting {piece} cannot be negative")

        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if str(self.get('logging', 'level', 'INFO')).upper() not in valid_levels:
            errors.append(f"Invalid log level: {self.get('logging', 'level')}")

        if errors:
            raise ConfigError("Configuration validation failed:\n" + "\n".join(errors))

    def load_from_file(self, filepath: Union[str, Path]):
        """
        Load configuration overrides from JSON file

        Args:
            filepath: Path to JSON configuration file
        """
        filepath = Path(filepath)

        try:
            if not filepath.exists():
                if self._logger:
                    self._logger.warning(f"Config file not found: {filepath}")
                return

            with open(filepath, 'r') as f:
                data = json.load(f)

            if not isinstance(data, dict):
                raise ConfigError(f"Config file must contain a JSON object: {filepath}")

            if 'game_rules' in data and 'dice_range' in data['game_rules']:
                data['game_rules']['dice_range'] = tuple(data['game_rules']['dice_range'])

            with self._lock:
                self._custom_settings = {
                    section.lower(): values for section, values in data.items()
                    if isinstance(values, dict)
                }

            if self._logger:
                self._logger.info(f"Loaded configuration from {filepath}")

        except json.JSONDecodeError as e:
            error_msg = f"Invalid JSON in config file: {e}"
            if self._logger:
                self._logger.error(error_msg)
            raise ConfigError(error_msg)

    def save_to_file(self, filepath: Union[str, Path]):
        """
        Save current configuration to JSON file

        Args:
            filepath: Path where to save the configuration
        """
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2, default=str)

        if self._logger:
            self._logger.info(f"Saved configuration to {filepath}")

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get configuration value with support for custom settings

        Args:
            section: Configuration section name
            key: Configuration key
            default: Default value if not found

        Returns:
            Configuration value or default
        """
        with self._lock:
            section_lower = section.lower()
            if section_lower in self._custom_settings:
                if key in self._custom_settings[section_lower]:
                    return self._custom_settings[section_lower][key]

            section_attr = section.upper()
            if hasattr(self, section_attr):
                section_dict = getattr(self, section_attr)
                if isinstance(section_dict, dict):
                    return section_dict.get(key, default)

        return default

    def set(self, section: str, key: str, value: Any):
        """
        Set a configuration value

        Args:
            section: Configuration section name
            key: Configuration key
            value: Value to set
        """
        with self._lock:
            section_lower = section.lower()
            if section_lower not in self._custom_settings:
                self._custom_settings[section_lower] = {}
            self._custom_settings[section_lower][key] = value

    def reset_overrides(self):
        """Drop all custom settings (for testing)"""
        with self._lock:
            self._custom_settings = {}

    def set_logger(self, logger):
        """Set logger instance after logger initialization"""
        self._logger = logger

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Export entire configuration (defaults merged with overrides) as dictionary"""
        result = {
            'tracker': dict(self.TRACKER),
            'game_rules': dict(self.GAME_RULES),
            'logging': dict(self.LOGGING),
        }
        with self._lock:
            custom_settings = {k: dict(v) for k, v in self._custom_settings.items()}

        for section, values in custom_settings.items():
            result.setdefault(section, {}).update(values)
        return result


# Global configuration instance
config = Config()
