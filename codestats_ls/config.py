"""Startup configuration: API endpoint, API token and on-disk locations.

Resolution order for each setting:
    1. Environment variable (CODE_STATS_API_URL / CODE_STATS_API_TOKEN)
    2. ~/.config/code-stats/config.toml (keys: api_url, api_token)
    3. Built-in default (api_url only)

A missing token is fatal: the server refuses to start rather than silently
collecting XP it can never deliver.
"""
from __future__ import annotations

import logging
import os
import sys
import tomllib
from dataclasses import dataclass
from urllib.parse import urlparse

from codestats_ls import __app_name__
from codestats_ls.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://codestats.net"
API_URL_ENV = "CODE_STATS_API_URL"
API_TOKEN_ENV = "CODE_STATS_API_TOKEN"


@dataclass(frozen=True)
class Config:
    api_url: str
    api_token: str

    def __repr__(self) -> str:
        return f"Config(api_url={self.api_url!r}, api_token='***')"


def get_config_path() -> str:
    """Path to the shared Code::Stats config file."""
    return os.path.join(os.path.expanduser("~"), ".config", "code-stats", "config.toml")


def get_data_dir() -> str:
    """Per-user data directory, following each platform's convention."""
    if sys.platform == "win32":
        base = os.environ.get("APPDATA") or os.path.join(
            os.path.expanduser("~"), "AppData", "Roaming")
    elif sys.platform == "darwin":
        base = os.path.join(os.path.expanduser("~"), "Library", "Application Support")
    else:
        base = os.environ.get("XDG_DATA_HOME") or os.path.join(
            os.path.expanduser("~"), ".local", "share")
    return base


def get_cache_dir() -> str:
    """Default directory of the offline pulse cache."""
    return os.path.join(get_data_dir(), __app_name__, "cache")


def load_config_file(config_path: str) -> dict:
    """Load config.toml, returning an empty dict if it doesn't exist.

    Raises:
        ConfigError: the file exists but can't be read or isn't valid TOML.
    """
    if not os.path.exists(config_path):
        return {}
    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"failed to read {config_path}: {e}") from e


def validate_api_url(api_url: str) -> str:
    parsed = urlparse(api_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"invalid API URL: {api_url}")
    return api_url.rstrip("/")


def read_config(config_path: str | None = None) -> Config:
    """Resolve the Config from environment and config file.

    Raises:
        ConfigError: token missing, URL invalid, or config file unreadable.
    """
    file_config = load_config_file(config_path or get_config_path())

    api_url = os.environ.get(API_URL_ENV) or file_config.get("api_url") or DEFAULT_API_URL
    api_url = validate_api_url(str(api_url))

    api_token = os.environ.get(API_TOKEN_ENV) or file_config.get("api_token")
    if not api_token:
        raise ConfigError(f"{API_TOKEN_ENV} must be set")

    logger.debug("Using Code::Stats API at %s", api_url)
    return Config(api_url=api_url, api_token=str(api_token))
