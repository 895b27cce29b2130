#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

import toml
import yaml

from .exit_codes import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("pushlog")

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. PUSHLOG_CONFIG environment variable
    2. ~/.pushlog/ directory
    """
    # Check for environment variable override
    if 'PUSHLOG_CONFIG' in os.environ:
        path = Path(os.environ['PUSHLOG_CONFIG'])
        if path.exists():
            return path

    pushlog_dir = Path.home() / '.pushlog'
    for filename in CONFIG_FILENAMES:
        path = pushlog_dir / filename
        if path.exists() and path.stat().st_size > 0:
            return path

    # If no file exists, return default path for saving
    return pushlog_dir / 'config.json'


def load_config():
    """Load configuration from file, then apply environment overrides."""
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    if config_path.exists():
        try:
            suffix = config_path.suffix.lower()
            if suffix == '.toml':
                with open(config_path, 'rb') as f:
                    file_config = tomllib.load(f)
            elif suffix in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            else:
                # Default to JSON format
                with open(config_path, 'r') as f:
                    file_config = json.load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"Error loading config from {config_path}: {e}") from e

        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")

        # Merge file config with defaults
        config = merge_configs(config, file_config)

    # Apply environment variable overrides
    config = apply_env_overrides(config)

    return config


def save_config(config, config_path=None):
    """Save configuration to file. Returns the path written."""
    config_path = Path(config_path) if config_path else get_config_path()

    # Create directory if it doesn't exist
    config_path.parent.mkdir(parents=True, exist_ok=True)

    suffix = config_path.suffix.lower()
    with open(config_path, 'w') as f:
        if suffix == '.toml':
            toml.dump(config, f)
        elif suffix in ['.yaml', '.yml']:
            yaml.safe_dump(config, f, default_flow_style=False)
        else:
            json.dump(config, f, indent=2)
            f.write('\n')

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def get_default_config():
    """Get default configuration."""
    return {
        "archive": {
            "threshold": 1,
            "log_ref": "refs/push-certs",
            "state_dir": "push-certs",
            "identity": {
                "name": "pushlog",
                "email": "pushlog@localhost"
            }
        },
        "ingest": {
            "cert_variable": "GIT_PUSH_CERT",
            "status_variable": "GIT_PUSH_CERT_NONCE_STATUS",
            "accepted_status": "OK"
        },
        "git": {
            "timeout_seconds": 60
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s"
        }
    }


def get_threshold(config, override=None) -> int:
    """
    Resolve the batch threshold.

    An explicit override wins over the configured value. The result must be
    a positive integer.
    """
    value = override if override is not None else config.get('archive', {}).get('threshold', 1)
    if isinstance(value, bool):
        raise ConfigError(f"Invalid archive threshold: {value!r}")
    try:
        threshold = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid archive threshold: {value!r}")
    if threshold < 1:
        raise ConfigError(f"Archive threshold must be at least 1, got {threshold}")
    return threshold


def configure_logging(config, debug: bool = False) -> None:
    """Apply the logging section of the config to the package logger."""
    log_config = config.get('logging', {})
    level_name = 'DEBUG' if debug else str(log_config.get('level', 'INFO')).upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        raise ConfigError(f"Unknown logging level: {level_name}")
    logger.setLevel(level)

    fmt = log_config.get('format')
    if fmt:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(logging.Formatter(fmt))


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            # Recursively merge nested dictionaries
            merged[key] = merge_configs(merged[key], value)
        else:
            # Override or add new key
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: PUSHLOG_SECTION_SUBSECTION_KEY
    For example: PUSHLOG_ARCHIVE_THRESHOLD=10
    """
    env_prefix = "PUSHLOG_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == 'PUSHLOG_CONFIG':
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        # Convert value
        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i : i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if matched_key is None:
                break

            # If we are at the end of the env var, we have found the key to set
            if i + best_match_len == len(key_parts):
                current_level[matched_key] = typed_value
                break

            # Otherwise, we descend into the dictionary
            if not isinstance(current_level[matched_key], dict):
                # Path conflict, e.g., env var is longer but we found a non-dict value
                break
            current_level = current_level[matched_key]
            i += best_match_len

    return config
