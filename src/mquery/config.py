"""
Configuration management for mquery.

Handles loading configuration from a YAML file and environment variables.
"""

from __future__ import annotations

import codecs
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

VARIABLE_SUBSECTIONS: Tuple[str, ...] = (
    "Required variables",
    "Optional variables",
    "Output variables",
    "User variables",
)

REFERENCES_HEADER = "\n\nReferences:\n"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class MQueryConfig:
    """Main configuration for mquery."""

    # Subsections of ECLASS VARIABLES searched by the variable list query
    variable_subsections: Tuple[str, ...] = field(default_factory=lambda: VARIABLE_SUBSECTIONS)

    # Written before the links of the SEE ALSO section
    references_header: str = REFERENCES_HEADER

    log_level: str = "WARNING"


class ConfigManager:
    """Manages mquery configuration from multiple sources."""

    def __init__(self, config_file: Optional[Path] = None):
        self.config_dir = Path.home() / '.mquery'
        env_file = os.getenv('MQUERY_CONFIG')
        if config_file is not None:
            self.config_file = Path(config_file)
        elif env_file:
            self.config_file = Path(env_file)
        else:
            self.config_file = self.config_dir / 'config.yaml'
        self._config: Optional[MQueryConfig] = None

    def load_config(self) -> MQueryConfig:
        """Load configuration from all sources."""
        if self._config:
            return self._config

        # Start with defaults
        config = MQueryConfig()

        # Load from file if it exists
        if self.config_file.exists():
            file_config = self._load_from_file()
            config = self._merge_configs(config, file_config)

        # Override with environment variables
        env_config = self._load_from_env()
        config = self._merge_configs(config, env_config)

        self._config = config
        return config

    def _load_from_file(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        try:
            with open(self.config_file, 'r') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Could not load config file %s: %s", self.config_file, e)
            return {}

        if not isinstance(data, dict):
            logger.warning("Ignoring config file %s: expected a mapping", self.config_file)
            return {}
        return data

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        env_config: Dict[str, Any] = {}

        log_level = os.getenv('MQUERY_LOG_LEVEL')
        if log_level:
            env_config['log_level'] = log_level

        subsections = os.getenv('MQUERY_VARIABLE_SUBSECTIONS')
        if subsections:
            env_config['variable_subsections'] = [s.strip() for s in subsections.split(',') if s.strip()]

        header = os.getenv('MQUERY_REFERENCES_HEADER')
        if header:
            # Characters outside latin-1 survive as \uXXXX and decode back
            raw = header.encode('latin-1', 'backslashreplace')
            env_config['references_header'] = codecs.decode(raw, 'unicode_escape')

        return env_config

    def _merge_configs(self, base: MQueryConfig, override: Dict[str, Any]) -> MQueryConfig:
        """Merge a configuration dictionary into ``base``."""
        if 'variable_subsections' in override:
            subsections = override['variable_subsections']
            if isinstance(subsections, (list, tuple)) and all(isinstance(s, str) for s in subsections):
                base.variable_subsections = tuple(subsections)
            else:
                logger.warning("Ignoring variable_subsections: expected a list of strings")

        if 'references_header' in override:
            base.references_header = str(override['references_header'])

        if 'log_level' in override:
            level = str(override['log_level']).upper()
            if level in LOG_LEVELS:
                base.log_level = level
            else:
                logger.warning("Ignoring unknown log level: %s", override['log_level'])

        return base

    def save_config(self, config: MQueryConfig) -> None:
        """Save configuration to file."""
        self.config_file.parent.mkdir(parents=True, exist_ok=True)

        config_dict = {
            'variable_subsections': list(config.variable_subsections),
            'references_header': config.references_header,
            'log_level': config.log_level,
        }

        with open(self.config_file, 'w') as f:
            yaml.safe_dump(config_dict, f, default_flow_style=False, indent=2)


# Global config manager instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager(config_file: Optional[Path] = None) -> ConfigManager:
    """Get the global config manager instance."""
    global _config_manager
    if _config_manager is None or config_file is not None:
        _config_manager = ConfigManager(config_file)
    return _config_manager


def load_config(config_file: Optional[Path] = None) -> MQueryConfig:
    """Load the current configuration."""
    return get_config_manager(config_file).load_config()
