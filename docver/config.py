#!/usr/bin/env python3

import os
import json
import logging
import sys
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .exit_codes import ConfigError

logger = logging.getLogger("docver")

CONFIG_FILENAMES = ['docver.toml', '.docver.toml', '.docver.yaml', '.docver.yml', '.docver.json']
ENV_PREFIX = 'DOCVER_'
TRUE_VALUES = ('true', '1', 'yes', 'on')
FALSE_VALUES = ('false', '0', 'no', 'off')


def get_config_path(cwd: Optional[Path] = None) -> Optional[Path]:
    """Get the path to the configuration file.

    Checks in order:
    1. DOCVER_CONFIG environment variable
    2. docver.toml / .docver.toml / .docver.yaml / .docver.yml / .docver.json
       in the working directory

    Returns None when no configuration file exists.
    """
    if 'DOCVER_CONFIG' in os.environ:
        path = Path(os.environ['DOCVER_CONFIG']).expanduser()
        if path.exists():
            return path
        logger.warning(f"DOCVER_CONFIG points to missing file {path}")

    base = Path(cwd) if cwd is not None else Path.cwd()
    for filename in CONFIG_FILENAMES:
        path = base / filename
        if path.is_file():
            return path

    return None


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return {
        "remote": "origin",
        "branch": "gh-pages",
        "default_alias": "latest",
        "deploy_prefix": "",
        "versions_file": "versions.json",
        "redirects_file": "_redirects",
        "nojekyll": True,
        "logging": {
            "level": "WARNING",
            "format": "%(levelname)s: %(message)s"
        },
    }


def read_config_file(config_path: Path) -> Dict[str, Any]:
    """
    Read a configuration file in TOML, YAML or JSON format.

    Raises:
        ConfigError: The file cannot be read or parsed
    """
    suffix = config_path.suffix.lower()
    try:
        if suffix == '.toml':
            with open(config_path, 'rb') as f:
                file_config = tomllib.load(f)
        elif suffix in ['.yaml', '.yml']:
            with open(config_path, 'r') as f:
                file_config = yaml.safe_load(f) or {}
        else:
            with open(config_path, 'r') as f:
                file_config = json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Error loading config from {config_path}: {e}") from e

    if not isinstance(file_config, dict):
        raise ConfigError(f"Error loading config from {config_path}: expected a mapping")

    # Allow a [docver] table so the settings can live beside other tools'
    if isinstance(file_config.get('docver'), dict):
        file_config = file_config['docver']
    return file_config


def load_config(cwd: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration: defaults, then config file, then DOCVER_* environment."""
    config = get_default_config()

    config_path = get_config_path(cwd)
    if config_path is not None:
        logger.debug(f"Loading config from {config_path}")
        config = merge_configs(config, read_config_file(config_path))

    return apply_env_overrides(config)


def merge_configs(base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
    """Merge `override_config` into a copy of `base_config`; nested tables merge key by key."""
    merged = dict(base_config)
    for key, value in override_config.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value
    return merged


def _parse_bool(value: str) -> Optional[bool]:
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    return None


def apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply DOCVER_* environment overrides.

    DOCVER_<KEY> sets a top-level setting (DOCVER_DEFAULT_ALIAS=stable) and
    DOCVER_LOGGING_<KEY> a logging one (DOCVER_LOGGING_LEVEL=DEBUG).
    Unknown keys are ignored; boolean settings accept true/false, 1/0,
    yes/no and on/off.
    """
    for env_key, value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX) or env_key == 'DOCVER_CONFIG':
            continue

        key = env_key[len(ENV_PREFIX):].lower()
        section = config
        if key.startswith('logging_') and isinstance(config.get('logging'), dict):
            section, key = config['logging'], key[len('logging_'):]
        if key not in section or isinstance(section[key], dict):
            continue

        if isinstance(section[key], bool):
            flag = _parse_bool(value)
            if flag is None:
                logger.warning(f"Ignoring {env_key}={value!r}: expected a boolean")
                continue
            section[key] = flag
        else:
            section[key] = value

    return config


def configure_logging(config: Dict[str, Any], verbose: bool = False) -> None:
    """Send docver logs to stderr at the configured level."""
    log_config = config.get("logging", {})
    level = "DEBUG" if verbose else str(log_config.get("level", "WARNING")).upper()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(log_config.get("format", "%(levelname)s: %(message)s")))

    logger.handlers = [handler]
    logger.setLevel(getattr(logging, level, logging.WARNING))
