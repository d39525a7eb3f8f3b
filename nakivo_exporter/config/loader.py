"""Configuration loader with YAML parsing and environment variable substitution."""

import yaml
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional
from .models import ExporterConfig


class ConfigLoader:
    """Load and validate exporter configuration."""

    @staticmethod
    def load_from_file(config_path: str) -> ExporterConfig:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            ExporterConfig: Validated configuration object

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
            pydantic.ValidationError: If configuration validation fails
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, 'r') as f:
            raw_config = yaml.safe_load(f) or {}

        # Substitute environment variables
        raw_config = ConfigLoader._substitute_env_vars(raw_config)

        # Validate with Pydantic
        return ExporterConfig(**raw_config)

    @staticmethod
    def load(
        config_path: Optional[str] = None,
        overrides: Optional[Dict[str, Dict[str, Any]]] = None
    ) -> ExporterConfig:
        """
        Build the effective configuration.

        Starts from the YAML file when one is given (built-in defaults
        otherwise) and applies command-line overrides on top. Override
        values of None are ignored.

        Args:
            config_path: Optional path to YAML configuration file
            overrides: Section name -> {field: value} mapping

        Returns:
            ExporterConfig: Validated configuration object
        """
        config = (
            ConfigLoader.load_from_file(config_path)
            if config_path else ExporterConfig()
        )
        if not overrides:
            return config

        raw_config = config.model_dump()
        for section, values in overrides.items():
            for key, value in values.items():
                if value is not None:
                    raw_config.setdefault(section, {})[key] = value

        return ExporterConfig(**raw_config)

    @staticmethod
    def _substitute_env_vars(obj: Any) -> Any:
        """
        Recursively substitute ${ENV_VAR} placeholders with environment values.

        Args:
            obj: Object to process (str, dict, list, or primitive)

        Returns:
            Object with environment variables substituted
        """
        if isinstance(obj, str):
            pattern = r'\$\{(\w+)\}'
            return re.sub(pattern, lambda m: os.getenv(m.group(1), ''), obj)

        elif isinstance(obj, dict):
            return {k: ConfigLoader._substitute_env_vars(v) for k, v in obj.items()}

        elif isinstance(obj, list):
            return [ConfigLoader._substitute_env_vars(item) for item in obj]

        return obj
