# rangeblock/core/config.py

import yaml
import os
from typing import Any, Dict, List
import logging

from schemas.ranges import BlockerSettings, DEFAULT_SOURCE_URL

logger = logging.getLogger(f"rangeblock.{__name__}")

DEFAULT_CONFIG: Dict[str, Any] = {
    "server": {"host": "0.0.0.0", "port": 8080, "log_level": "info"},
    "blocker": {
        "source_url": DEFAULT_SOURCE_URL,
        "refresh_interval_seconds": 60,
        "region": "",
        "service": "",
        "request_timeout_seconds": 10,
        "trust_forwarded_headers": True,
    },
    "logging": {"file": {"path": None}},
}


class ValidationResult:
    def __init__(self, valid: bool, errors: List[str] = None):
        self.valid = valid
        self.errors = errors or []

    def __bool__(self):
        return self.valid

class ConfigValidator:
    """
    Validate the configuration structure.
    Field-level validation of the blocker section is left to BlockerSettings.
    """
    def __init__(self):
        # expected top-level sections and their types
        self._schemas: Dict[str, Any] = {
            "server": dict,
            "blocker": dict,
        }

    def validate(self, config: Dict) -> ValidationResult:
        if not isinstance(config, dict):
            return ValidationResult(False, [f"Configuration must be a mapping, got {type(config).__name__}"])

        errors = []
        for key, expected_type in self._schemas.items():
            if key not in config:
                errors.append(f"Configuration is missing the key: '{key}'")
            elif not isinstance(config[key], expected_type):
                errors.append(f"Configuration part '{key}' has the wrong type, expected {expected_type}, got {type(config[key])}")

        blocker = config.get("blocker")
        if isinstance(blocker, dict):
            interval = blocker.get("refresh_interval_seconds")
            if interval is not None and (not isinstance(interval, (int, float)) or interval <= 0):
                errors.append("'blocker.refresh_interval_seconds' must be a positive number")

        if errors:
            return ValidationResult(False, errors)
        return ValidationResult(True)


class ConfigLoader:
    """
    Configuration loading interface.
    """
    def load(self) -> Dict:
        raise NotImplementedError


class FileConfigLoader(ConfigLoader):
    """
    Load configuration from a YAML file.
    """
    def __init__(self, file_path: str):
        self._file_path = file_path
        if not os.path.exists(self._file_path):
            raise FileNotFoundError(f"Configuration file not found: {self._file_path}")

    def load(self) -> Dict:
        """Load configuration from a file"""
        try:
            with open(self._file_path, 'r', encoding='utf-8') as f:
                return yaml.safe_load(f)
        except Exception as e:
            logger.error(f"Failed to load configuration file '{self._file_path}': {e}")
            raise


class ConfigManager:
    """
    Central access point for configuration: loads, validates and serves values by dotted path.
    """
    _instance = None

    def __new__(cls, *args, **kwargs):
        if not cls._instance:
            cls._instance = super(ConfigManager, cls).__new__(cls)
        return cls._instance

    def __init__(self, loader: ConfigLoader = None, validator: ConfigValidator = None):
        # Prevent duplicate initialization
        if hasattr(self, '_initialized') and self._initialized:
            return

        self._config_data: Dict = {}
        self._loader = loader
        self._validator = validator or ConfigValidator()
        self._initialized = False

        if self._loader:
            self.load_config()
            self._initialized = True

    def load_config(self) -> bool:
        """Load configuration, if a loader is provided."""
        if not self._loader:
            logger.error("Error: No configuration loader (ConfigLoader) provided.")
            return False
        try:
            new_config = self._loader.load()
            validation_result = self._validator.validate(new_config)
            if not validation_result:
                logger.error(f"Configuration validation failed: {validation_result.errors}")
                return False
            self._config_data = new_config
            logger.info("Configuration loaded and validated successfully.")
            return True
        except Exception as e:
            logger.error(f"Error loading configuration: {e}")
            return False

    def get_config(self, path: str, default: Any = None) -> Any:
        """
        Get a configuration item by path, e.g. "blocker.region".
        """
        if not self._config_data:
            logger.warning("Warning: Configuration data is empty. Possibly not loaded or loading failed.")
            return default

        keys = path.split('.')
        value = self._config_data
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value


def get_config_manager(config_file_path: str = None) -> ConfigManager:
    """
    Get the singleton instance of ConfigManager.
    If first call, provide the configuration file path for initialization.
    """
    if ConfigManager._instance is None or not ConfigManager._instance._initialized:
        if config_file_path is None:
            config_file_path = os.getenv("RANGEBLOCK_CONFIG_PATH", "config/config.yaml")
        if not os.path.exists(config_file_path):
            default_config_dir = os.path.dirname(config_file_path)
            if default_config_dir and not os.path.exists(default_config_dir):
                os.makedirs(default_config_dir, exist_ok=True)

            logger.warning(f"Warning: Configuration file '{config_file_path}' not found. Will try to use a minimal default configuration.")
            try:
                with open(config_file_path, 'w', encoding='utf-8') as f_default:
                    yaml.dump(DEFAULT_CONFIG, f_default, default_flow_style=False)
                logger.info(f"Default configuration file '{config_file_path}' has been created.")
            except Exception as e_create:
                logger.error(f"Failed to create default configuration file '{config_file_path}': {e_create}")
                raise RuntimeError(f"Failed to load or create configuration file: {config_file_path}") from e_create

        loader = FileConfigLoader(file_path=config_file_path)
        ConfigManager(loader=loader) # Initialize singleton

    return ConfigManager._instance


def load_blocker_settings(config: ConfigManager) -> BlockerSettings:
    """
    Build BlockerSettings from the `blocker` section.
    Raises pydantic.ValidationError on invalid values.
    """
    section = config.get_config("blocker", {}) or {}
    return BlockerSettings.model_validate(section)
