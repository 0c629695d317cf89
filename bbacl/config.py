"""
Credentials and connection settings.

Settings are resolved from, in order of precedence: explicit arguments,
environment variables, then a TOML config file located at
``$XDG_CONFIG_HOME/bbacl/config.toml`` or ``~/.config/bbacl/config.toml``::

    username = "jdoe"
    password = "app-password"
    # base_url = "https://api.bitbucket.org/2.0"
"""

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from bbacl.exceptions import ConfigurationError
from bbacl.logging import get_logger
from bbacl.transport import DEFAULT_BASE_URL, DEFAULT_TIMEOUT

logger = get_logger("config")

CONFIG_DIR_NAME = "bbacl"
CONFIG_FILE_NAME = "config.toml"

ENV_USERNAME = "BITBUCKET_USERNAME"
ENV_PASSWORD = "BITBUCKET_PASSWORD"
ENV_BASE_URL = "BITBUCKET_BASE_URL"


@dataclass(frozen=True)
class Config:
    """Connection settings for the Bitbucket API."""

    username: str
    password: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT

    def __repr__(self) -> str:
        return (
            f"Config(username={self.username!r}, password='[REDACTED]', "
            f"base_url={self.base_url!r}, timeout={self.timeout!r})"
        )


def default_config_path() -> Path:
    """Return the config file path, honoring XDG_CONFIG_HOME."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    root = Path(xdg) if xdg else Path.home() / ".config"
    return root / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def read_config_file(path: Path) -> dict[str, Any]:
    """
    Read a TOML config file.

    Raises:
        ConfigurationError: If the file cannot be read or parsed
    """
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid config file {path}: {e}") from e


def load_config(
    path: Path | str | None = None,
    username: str | None = None,
    password: str | None = None,
    base_url: str | None = None,
    timeout: float | None = None,
) -> Config:
    """
    Resolve connection settings.

    Args:
        path: Config file path. When given it must exist; otherwise the default
            location is used if present.
        username: Overrides environment and file
        password: Overrides environment and file
        base_url: Overrides environment and file
        timeout: Request timeout in seconds

    Returns:
        Resolved Config

    Raises:
        ConfigurationError: If username or password cannot be resolved
    """
    file_values: dict[str, Any] = {}
    if path is not None:
        file_values = read_config_file(Path(path))
    else:
        default_path = default_config_path()
        if default_path.is_file():
            file_values = read_config_file(default_path)
        else:
            logger.debug("No config file at %s", default_path)

    resolved_username = username or os.environ.get(ENV_USERNAME) or file_values.get("username")
    resolved_password = password or os.environ.get(ENV_PASSWORD) or file_values.get("password")
    resolved_base_url = (
        base_url or os.environ.get(ENV_BASE_URL) or file_values.get("base_url") or DEFAULT_BASE_URL
    )

    if not resolved_username:
        raise ConfigurationError(
            f"Username not set: pass --username, set {ENV_USERNAME} "
            f"or add 'username' to {path or default_config_path()}"
        )
    if not resolved_password:
        raise ConfigurationError(
            f"Password not set: pass --password, set {ENV_PASSWORD} "
            f"or add 'password' to {path or default_config_path()}"
        )

    if timeout is None:
        timeout = parse_timeout(file_values.get("timeout", DEFAULT_TIMEOUT), path or default_config_path())

    return Config(
        username=str(resolved_username),
        password=str(resolved_password),
        base_url=str(resolved_base_url),
        timeout=timeout,
    )


def parse_timeout(value: Any, source: Path | str) -> float:
    """
    Read a positive timeout in seconds.

    Raises:
        ConfigurationError: If the value is not a positive number
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid timeout in {source}: {value!r}")
    try:
        timeout = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid timeout in {source}: {value!r}") from e
    if timeout <= 0:
        raise ConfigurationError(f"Invalid timeout in {source}: {value!r}")
    return timeout
