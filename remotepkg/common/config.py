"""Configuration management for remotepkg.

Handles loading and validation of YAML configuration files: which package
formats are enabled, the sniffing window, HTTP source settings and logging.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Set

import yaml

from .logger import DEFAULT_LOG_DIR

DEFAULT_CONFIG_PATH = os.path.join("~", ".config", "remotepkg", "config.yaml")

DEFAULT_ENABLED_FORMATS = ["deb", "rpm"]

DEFAULT_PEEK_SIZE = 1024


@dataclass
class HttpConfig:
    """Configuration for HTTP byte sources."""

    timeout: float = 30.0
    user_agent: str = "remotepkg"
    follow_redirects: bool = True
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class LoggingConfig:
    """Configuration for log output."""

    level: str = "INFO"
    log_dir: str = DEFAULT_LOG_DIR
    file_logging: bool = False


@dataclass
class RemotePkgConfig:
    """Top-level configuration for remotepkg."""

    enabled_formats: List[str] = field(
        default_factory=lambda: list(DEFAULT_ENABLED_FORMATS)
    )
    peek_size: int = DEFAULT_PEEK_SIZE
    http: HttpConfig = field(default_factory=HttpConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def parse_http_config(http_dict: Dict[str, Any]) -> HttpConfig:
    """Parse an HTTP configuration dictionary.

    Args:
        http_dict: HTTP configuration dictionary

    Returns:
        HttpConfig instance
    """
    return HttpConfig(
        timeout=float(http_dict.get("timeout", 30.0)),
        user_agent=http_dict.get("user_agent", "remotepkg"),
        follow_redirects=http_dict.get("follow_redirects", True),
        headers=dict(http_dict.get("headers", {})),
    )


def parse_logging_config(logging_dict: Dict[str, Any]) -> LoggingConfig:
    """Parse a logging configuration dictionary.

    Args:
        logging_dict: Logging configuration dictionary

    Returns:
        LoggingConfig instance
    """
    return LoggingConfig(
        level=logging_dict.get("level", "INFO"),
        log_dir=logging_dict.get("log_dir", DEFAULT_LOG_DIR),
        file_logging=logging_dict.get("file_logging", False),
    )


def parse_config(config_dict: Dict[str, Any]) -> RemotePkgConfig:
    """Parse the full configuration dictionary.

    Args:
        config_dict: Full configuration dictionary

    Returns:
        RemotePkgConfig instance

    Raises:
        ValueError: If peek_size is not a positive integer
    """
    peek_size = config_dict.get("peek_size", DEFAULT_PEEK_SIZE)
    if isinstance(peek_size, bool) or not isinstance(peek_size, int) or peek_size <= 0:
        raise ValueError(f"peek_size must be a positive integer, got {peek_size!r}")

    enabled = config_dict.get("enabled_formats", DEFAULT_ENABLED_FORMATS)
    if isinstance(enabled, str):
        enabled = [enabled]

    return RemotePkgConfig(
        enabled_formats=[str(name) for name in enabled],
        peek_size=peek_size,
        http=parse_http_config(config_dict.get("http", {})),
        logging=parse_logging_config(config_dict.get("logging", {})),
    )


def get_enabled_formats(config: RemotePkgConfig) -> Set["FormatTag"]:
    """Get the set of enabled format tags.

    Args:
        config: RemotePkgConfig instance

    Returns:
        Set of FormatTag values

    Raises:
        ValueError: If a configured format name is not supported
    """
    # Imported here to avoid circular imports
    from ..formats.base import FormatTag

    return {FormatTag.parse(name) for name in config.enabled_formats}


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file (``~`` is expanded)

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
        TypeError: If the YAML root is not a mapping
    """
    config_file = Path(config_path).expanduser()

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with config_file.open("r") as f:
        config = yaml.safe_load(f)

    if config is None:
        config = {}

    if not isinstance(config, dict):
        raise TypeError(
            f"Configuration root must be a mapping, got {type(config).__name__}"
        )

    return _expand_env_vars(config)


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in configuration.

    Args:
        obj: Configuration object (dict, list, str, etc.)

    Returns:
        Configuration with expanded environment variables
    """
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        return os.path.expandvars(obj)
    else:
        return obj


def load_typed_config(config_path: str = DEFAULT_CONFIG_PATH) -> RemotePkgConfig:
    """Load and parse configuration into typed dataclass.

    Args:
        config_path: Path to configuration file

    Returns:
        RemotePkgConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
    """
    config_dict = load_config(config_path)
    return parse_config(config_dict)
