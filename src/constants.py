"""Constants used in the project."""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    RESOLUTION_ERROR = 1
    EXIT_WARNINGS = 3


class ArtifactTypes(Enum):
    """Archive extensions tried for an artifact, in priority order.

    Args:
        Enum (string): File extension in the repository layout.
    """

    AAR = "aar"
    JAR = "jar"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    VERSION = "0.1.0"
    USER_AGENT = f"vampire-deps/{VERSION}"

    DEFAULT_REPOSITORIES = [
        "https://dl.google.com/dl/android/maven2",
        "https://repo.maven.apache.org/maven2",
    ]
    LOCK_FILE = "vampire.lock"
    LOCK_SCHEMA_VERSION = "1"
    MANIFEST_FILE = "Cargo.toml"
    MANIFEST_DEPENDENCY_TABLE = ("package", "metadata", "vampire", "dependencies")
    METADATA_FILE = "maven-metadata.xml"

    PROPAGATED_SCOPES = ("compile", "runtime")
    DEFAULT_SCOPE = "compile"

    ENV_CACHE_DIR = "VAMPIRE_CACHE_DIR"
    ENV_LOG_LEVEL = "VAMPIRE_LOG_LEVEL"
    DEFAULT_CACHE_DIR = os.path.join("~", ".cache", "vampire", "maven")

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    DOWNLOAD_CHUNK_SIZE = 64 * 1024

    CONFIG_FILE_CANDIDATES = ("vampire.yml", "vampire.yaml")


def default_cache_dir() -> str:
    """Return the artifact cache root, honoring VAMPIRE_CACHE_DIR."""
    env_dir = os.environ.get(Constants.ENV_CACHE_DIR)
    if env_dir and env_dir.strip():
        return os.path.expanduser(env_dir.strip())
    return os.path.expanduser(Constants.DEFAULT_CACHE_DIR)


def _default_config_paths() -> list:
    """Default YAML config locations, most specific first."""
    paths = [os.path.join(os.getcwd(), name) for name in Constants.CONFIG_FILE_CANDIDATES]
    xdg = os.environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    paths.append(os.path.join(xdg, "vampire", "config.yml"))
    return paths


def _load_yaml_config() -> Optional[Dict[str, Any]]:
    """Load the first default YAML config found, or None when there is none."""
    import yaml  # pylint: disable=import-outside-toplevel

    for path in _default_config_paths():
        if not os.path.isfile(path):
            continue
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        if not isinstance(data, dict):
            logger.warning("Ignoring config %s: top level is not a mapping", path)
            continue
        logger.debug("Loaded default config from %s", path)
        return data
    return None
