"""
Configuration hierarchy:
1. Explicit parameters to functions / methods
2. Environment variables (highest priority)
3. Settings TOML file
4. Defaults (lowest priority)
"""

from __future__ import annotations
from pathlib import Path
import tomllib
from dataclasses import dataclass
from xdg_base_dirs import (
    xdg_config_home,
    xdg_state_home,
)
import os
import logging
from importlib.metadata import version

logger = logging.getLogger(__name__)

# Directories
CONFIG_DIR = Path(xdg_config_home()) / "prompttester"
STATE_DIR = Path(xdg_state_home()) / "prompttester"

# Version
try:
    __version__ = version("prompttester")
except Exception:
    __version__ = "unknown"

# File paths
SETTINGS_TOML_PATH = CONFIG_DIR / "settings.toml"
DEFAULT_STORE_PATH = STATE_DIR / "store.json"

# Constants
MAX_VERSIONS = 10
DEFAULT_CONTENT = "# System Prompt\nYou are a helpful assistant."
DEFAULT_ENDPOINT = "https://api.openai.com/v1/chat/completions"
DEFAULT_TIMEOUT = 60.0


@dataclass
class Settings:
    endpoint: str
    request_timeout: float
    max_versions: int
    default_content: str
    store_path: Path
    paths: dict[str, Path]
    version: str


def _read_toml(path: Path) -> dict[str, object]:
    from prompttester.domain.exceptions.exceptions import ConfigurationError

    if not path.exists():
        logger.debug(f"No settings file at {path}, using defaults.")
        return {}
    try:
        with path.open("rb") as f:
            toml_config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Malformed settings file {path}: {e}") from e
    return toml_config.get("settings", {})


def load_settings(settings_path: Path = SETTINGS_TOML_PATH) -> Settings:
    from prompttester.domain.exceptions.exceptions import ConfigurationError

    # Defaults (lowest priority)
    config: dict[str, object] = {
        "endpoint": DEFAULT_ENDPOINT,
        "request_timeout": DEFAULT_TIMEOUT,
        "max_versions": MAX_VERSIONS,
        "default_content": DEFAULT_CONTENT,
        "store_path": DEFAULT_STORE_PATH,
        "version": __version__,
    }

    # Config file (medium priority)
    toml_dict = _read_toml(settings_path)
    endpoint = toml_dict.get("endpoint", config["endpoint"])
    request_timeout = toml_dict.get("request_timeout", config["request_timeout"])
    max_versions = toml_dict.get("max_versions", config["max_versions"])
    default_content = toml_dict.get("default_content", config["default_content"])
    store_path = Path(toml_dict.get("store_path", config["store_path"]))

    # Environment variables (highest priority)
    endpoint = os.getenv("PROMPTTESTER_ENDPOINT") or endpoint
    store_path = (
        Path(os.getenv("PROMPTTESTER_STORE"))
        if os.getenv("PROMPTTESTER_STORE")
        else store_path
    )
    if os.getenv("PROMPTTESTER_TIMEOUT"):
        try:
            request_timeout = float(os.getenv("PROMPTTESTER_TIMEOUT"))
        except ValueError as e:
            raise ConfigurationError(
                f"PROMPTTESTER_TIMEOUT must be a number, got {os.getenv('PROMPTTESTER_TIMEOUT')!r}"
            ) from e
    try:
        request_timeout = float(request_timeout)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"request_timeout must be a number, got {request_timeout!r}"
        ) from e

    try:
        max_versions = int(max_versions)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"max_versions must be an integer, got {max_versions!r}"
        ) from e
    if max_versions < 1:
        raise ConfigurationError("max_versions must be at least 1.")

    paths = {
        "CONFIG_DIR": CONFIG_DIR,
        "STATE_DIR": STATE_DIR,
        "SETTINGS_TOML_PATH": settings_path,
        "STORE_PATH": store_path,
    }

    config.update(
        {
            "endpoint": str(endpoint),
            "request_timeout": float(request_timeout),
            "max_versions": int(max_versions),
            "default_content": str(default_content),
            "store_path": store_path,
            "paths": paths,
        }
    )

    return Settings(**config)


# Singleton
settings = load_settings()
