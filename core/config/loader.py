"""Configuration loader - layers defaults, YAML file, env vars and overrides."""

import copy
import logging
import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml

from core.config.exceptions import ConfigNotFoundError, ConfigParseError
from core.config.merger import deep_merge

logger = logging.getLogger(__name__)

# Default paths relative to project root
CONFIG_DIR = Path(__file__).parent.parent.parent / "config"
DEFAULT_CONFIG_FILE = CONFIG_DIR / "gateway.yaml"

DEFAULT_BASE_URL = "https://app.infisical.com"

DEFAULTS = {
    "infisical": {
        "baseUrl": DEFAULT_BASE_URL,
        "timeout": 30,
        "retry": {
            "maxRetries": 3,
            "initialDelayMs": 1000,
        },
    }
}

ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _env_overrides() -> dict:
    """Map INFISICAL_* environment variables onto the config shape."""

    def env(name):
        return os.environ.get(name) or None

    return {
        "infisical": {
            "baseUrl": env("INFISICAL_BASE_URL"),
            "workspaceId": env("INFISICAL_WORKSPACE_ID"),
            "environment": env("INFISICAL_ENVIRONMENT"),
            "authentication": {
                "auth_token": {"token": env("INFISICAL_TOKEN")},
                "universalAuth": {
                    "clientId": env("INFISICAL_CLIENT_ID"),
                    "clientSecret": env("INFISICAL_CLIENT_SECRET"),
                },
            },
        }
    }


class ConfigLoader:
    """
    Loads and merges gateway configuration from multiple sources.

    Load order (later wins):
        1. Built-in defaults
        2. YAML file (config/gateway.yaml unless a path is given)
        3. INFISICAL_* environment variables
        4. Explicit overrides (e.g. CLI flags)
        5. Resolve ${VAR} patterns from the environment

    Usage:
        loader = ConfigLoader()
        config = loader.load(overrides={"infisical": {"baseUrl": url}})
    """

    def __init__(self, config_path: Optional[Path] = None):
        self.explicit = config_path is not None
        self.config_path = Path(config_path) if config_path else DEFAULT_CONFIG_FILE

    def _load_yaml(self, path: Path) -> dict:
        """Load and parse a YAML file."""
        if not path.exists():
            raise ConfigNotFoundError(f"Config file not found: {path}", path=path)

        try:
            with open(path) as f:
                content = yaml.safe_load(f) or {}
                logger.debug(f"Loaded config: {path}")
                return content
        except yaml.YAMLError as e:
            raise ConfigParseError(f"Invalid YAML in {path}: {e}", path=path) from e

    def _load_file(self) -> dict:
        """Load the config file; a missing default file means env-only config."""
        if self.explicit or self.config_path.exists():
            return self._load_yaml(self.config_path)
        logger.debug(f"No config file at {self.config_path}, using environment only")
        return {}

    def resolve_env(self, config: Any) -> Any:
        """Recursively replace ${VAR} patterns with environment values."""
        if isinstance(config, dict):
            return {k: self.resolve_env(v) for k, v in config.items()}
        elif isinstance(config, list):
            return [self.resolve_env(item) for item in config]
        elif isinstance(config, str):
            return ENV_PATTERN.sub(lambda m: os.environ.get(m.group(1), ""), config)
        else:
            return config

    def load(self, overrides: Optional[dict] = None) -> dict:
        """
        Load the complete gateway configuration.

        Args:
            overrides: Optional nested dict applied last (None values ignored)

        Returns:
            Merged and resolved configuration dict
        """
        config = copy.deepcopy(DEFAULTS)

        file_config = self._load_file()
        if file_config:
            config = deep_merge(config, file_config)
            logger.info(f"Merged config file: {self.config_path}")

        config = deep_merge(config, _env_overrides())

        if overrides:
            config = deep_merge(config, overrides)

        config = self.resolve_env(config)
        config["infisical"]["baseUrl"] = (
            config["infisical"].get("baseUrl") or DEFAULT_BASE_URL
        ).rstrip("/")
        return config


def mask_config(config: Any) -> Any:
    """Return a copy of the config with credential values masked."""
    sensitive = {"token", "clientSecret"}
    if isinstance(config, dict):
        return {
            k: ("****" if k in sensitive and v else mask_config(v))
            for k, v in config.items()
        }
    if isinstance(config, list):
        return [mask_config(item) for item in config]
    return config
