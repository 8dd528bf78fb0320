"""
Configuration loading for bepfetch.

Settings live in a YAML file in the platform config directory. Every key is
optional; `Settings.from_config` fills defaults and validates values, and the
resulting object is passed explicitly to the sources and the resolver.
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import platformdirs
import yaml

from bepfetch.constants import (
    APP_NAME,
    BE_NAMING_CUTOVER_ARTIFACT_ID,
    BEPINEX_RELEASES_URL,
    BLEEDING_EDGE_BASE_URL,
    CONFIG_FILE_NAME,
    DOWNLOADS_DIR_NAME,
    MIN_SUPPORTED_STABLE_VERSION,
    OLDEST_SUPPORTED_BE_ARTIFACT_ID,
)
from bepfetch.download.version import Version, parse_version
from bepfetch.exceptions import ConfigFileError, ConfigValidationError
from bepfetch.log_utils import logger


def get_config_dir() -> str:
    return platformdirs.user_config_dir(APP_NAME)


def get_config_file() -> str:
    return os.path.join(get_config_dir(), CONFIG_FILE_NAME)


def get_default_download_dir() -> str:
    return os.path.join(platformdirs.user_cache_dir(APP_NAME), DOWNLOADS_DIR_NAME)


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the bepfetch configuration YAML.

    Parameters:
        config_path (str | None): Explicit file to load; defaults to the platformdirs-managed config file.

    Returns:
        dict: The parsed configuration, or an empty dict if the file does not exist.

    Raises:
        ConfigFileError: If the file cannot be read, is not valid YAML, or is not a mapping.
    """
    path = config_path or get_config_file()
    if not os.path.exists(path):
        logger.debug(f"No configuration file at {path}; using defaults")
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigFileError("Failed to load configuration", details=f"{path}: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigFileError(
            "Configuration must be a mapping",
            details=f"{path}: got {type(config).__name__}",
        )
    logger.debug(f"Loaded configuration from {path}")
    return config


def _get_bool(config: Dict[str, Any], key: str, default: bool) -> bool:
    value = config.get(key, default)
    if isinstance(value, bool):
        return value
    raise ConfigValidationError(f"{key} must be true or false", details=repr(value))


def _get_url(config: Dict[str, Any], key: str, default: str) -> str:
    value = config.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ConfigValidationError(f"{key} must be a non-empty URL", details=repr(value))
    parsed = urlparse(value.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigValidationError(f"{key} must be an http(s) URL", details=value)
    return value.strip()


@dataclass(frozen=True)
class Settings:
    """Validated runtime settings."""

    bleeding_edge_base_url: str = BLEEDING_EDGE_BASE_URL
    stable_releases_url: str = BEPINEX_RELEASES_URL
    min_stable_version: Optional[Version] = parse_version(MIN_SUPPORTED_STABLE_VERSION)
    include_prereleases: bool = False
    min_be_artifact_id: Optional[int] = OLDEST_SUPPORTED_BE_ARTIFACT_ID
    be_naming_cutover: int = BE_NAMING_CUTOVER_ARTIFACT_ID
    github_token: Optional[str] = None
    allow_env_token: bool = True
    download_dir: Optional[str] = None
    log_level: Optional[str] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "Settings":
        """
        Build Settings from a loaded configuration mapping.

        Missing keys take their defaults; an explicit `null` for MIN_STABLE_VERSION or
        MIN_BE_ARTIFACT_ID disables that floor.

        Raises:
            ConfigValidationError: If any value has the wrong type or shape.
        """
        min_stable: Optional[Version] = cls.min_stable_version
        if "MIN_STABLE_VERSION" in config:
            raw = config["MIN_STABLE_VERSION"]
            if raw is None:
                min_stable = None
            elif isinstance(raw, (str, int, float)) and not isinstance(raw, bool):
                min_stable = parse_version(str(raw))
            else:
                raise ConfigValidationError(
                    "MIN_STABLE_VERSION must be a version string", details=repr(raw)
                )

        min_be: Optional[int] = cls.min_be_artifact_id
        if "MIN_BE_ARTIFACT_ID" in config:
            raw = config["MIN_BE_ARTIFACT_ID"]
            if raw is None:
                min_be = None
            elif isinstance(raw, int) and not isinstance(raw, bool) and raw >= 0:
                min_be = raw
            else:
                raise ConfigValidationError(
                    "MIN_BE_ARTIFACT_ID must be a non-negative integer",
                    details=repr(raw),
                )

        github_token = config.get("GITHUB_TOKEN")
        if github_token is not None and not isinstance(github_token, str):
            raise ConfigValidationError("GITHUB_TOKEN must be a string")

        download_dir = config.get("DOWNLOAD_DIR") or get_default_download_dir()
        if not isinstance(download_dir, str):
            raise ConfigValidationError(
                "DOWNLOAD_DIR must be a path", details=repr(download_dir)
            )

        log_level = config.get("LOG_LEVEL")
        if log_level is not None and not isinstance(log_level, str):
            raise ConfigValidationError("LOG_LEVEL must be a string", details=repr(log_level))

        return cls(
            bleeding_edge_base_url=_get_url(
                config, "BLEEDING_EDGE_BASE_URL", BLEEDING_EDGE_BASE_URL
            ),
            stable_releases_url=_get_url(
                config, "STABLE_RELEASES_URL", BEPINEX_RELEASES_URL
            ),
            min_stable_version=min_stable,
            include_prereleases=_get_bool(config, "INCLUDE_PRERELEASES", False),
            min_be_artifact_id=min_be,
            github_token=github_token,
            allow_env_token=_get_bool(config, "ALLOW_ENV_TOKEN", True),
            download_dir=os.path.expanduser(download_dir),
            log_level=log_level,
        )
