"""Resolver configuration assembled from config files and CLI overrides.

Precedence, highest first: CLI flags, the explicit ``--config`` file,
the default YAML locations, built-in ``Constants``.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from constants import Constants, _load_yaml_config, default_cache_dir

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when a configuration file cannot be read or has the wrong shape."""


def load_config_file(path: Optional[str]) -> Dict[str, Any]:
    """Load a YAML or JSON config file; the default YAML locations when ``path`` is None.

    Raises:
        ConfigError: for a missing, unreadable or non-mapping explicit file.
    """
    if not path:
        return _load_yaml_config() or {}

    if not os.path.isfile(path):
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as fh:
            if path.lower().endswith(".json"):
                data = json.load(fh)
            else:
                data = yaml.safe_load(fh)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to load config {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must be a mapping at the top level")
    return data


@dataclass
class ResolverConfig:
    """Settings for one resolver invocation."""

    repositories: List[str] = field(default_factory=lambda: list(Constants.DEFAULT_REPOSITORIES))
    cache_dir: Path = field(default_factory=lambda: Path(default_cache_dir()))
    lock_file: Path = field(default_factory=lambda: Path(Constants.LOCK_FILE))
    timeout: int = Constants.REQUEST_TIMEOUT

    @classmethod
    def from_sources(cls, args: Any, file_config: Optional[Dict[str, Any]] = None) -> "ResolverConfig":
        """Create config from a loaded config mapping and parsed CLI arguments.

        Args:
            args: Parsed CLI arguments namespace.
            file_config: Mapping from :func:`load_config_file`.

        Returns:
            ResolverConfig instance.
        """
        config = cls()
        file_config = file_config or {}

        repositories = file_config.get("repositories")
        if repositories is not None:
            if not isinstance(repositories, list) or not all(isinstance(r, str) for r in repositories):
                raise ConfigError("'repositories' must be a list of URLs")
            config.repositories = list(repositories)
        if file_config.get("cache_dir"):
            config.cache_dir = Path(os.path.expanduser(str(file_config["cache_dir"])))
        if file_config.get("lock_file"):
            config.lock_file = Path(str(file_config["lock_file"]))
        if file_config.get("timeout") is not None:
            try:
                config.timeout = int(file_config["timeout"])
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"'timeout' must be an integer: {exc}") from exc

        # CLI overrides
        if getattr(args, "REPOSITORIES", None):
            config.repositories = list(args.REPOSITORIES)
        if getattr(args, "CACHE_DIR", None):
            config.cache_dir = Path(os.path.expanduser(args.CACHE_DIR))
        if getattr(args, "LOCK_FILE", None):
            config.lock_file = Path(args.LOCK_FILE)
        if getattr(args, "TIMEOUT", None) is not None:
            config.timeout = int(args.TIMEOUT)

        if not config.repositories:
            raise ConfigError("At least one repository must be configured")
        if config.timeout <= 0:
            raise ConfigError("'timeout' must be a positive number of seconds")
        return config
