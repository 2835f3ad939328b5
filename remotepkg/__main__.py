"""CLI interface for remote package identification."""

import sys

import yaml

from .common.config import DEFAULT_CONFIG_PATH, RemotePkgConfig, load_typed_config
from .common.logger import setup_logger
from .errors import PkgError
from .factory import identify_path, identify_url


def _is_url(target: str) -> bool:
    return target.startswith(("http://", "https://"))


def _load_config() -> RemotePkgConfig:
    # Use defaults if config not found
    try:
        return load_typed_config(DEFAULT_CONFIG_PATH)
    except FileNotFoundError:
        return RemotePkgConfig()


def main(argv=None):
    """Main entry point for the remotepkg CLI."""
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("Usage: python -m remotepkg <package-url-or-path>", file=sys.stderr)
        sys.exit(1)

    target = args[0]

    try:
        config = _load_config()
        setup_logger(
            level=config.logging.level,
            log_dir=config.logging.log_dir,
            file_logging=config.logging.file_logging,
        )
    except (ValueError, TypeError, OSError, yaml.YAMLError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    try:
        if _is_url(target):
            package = identify_url(target, config=config)
        else:
            package = identify_path(
                target,
                enabled_formats=config.enabled_formats,
                peek_size=config.peek_size,
            )
        print(f"Type: {package.package_type.value}")
        print(f"Name: {package.name}")
        print(f"Version: {package.version}")
        print(f"Arch: {package.arch}")
        print(f"Iteration: {package.iteration or '(none)'}")
    except (PkgError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    sys.exit(0)


if __name__ == "__main__":
    main()
