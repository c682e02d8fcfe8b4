"""
Configuration loading.

Precedence, lowest first: built-in defaults, YAML config file,
environment (.env is loaded by the caller), command line flags.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from vncbrute.core.exceptions import ConfigurationError


DEFAULT_CONFIG_PATH = "config/config.yaml"

DEFAULT_CONFIG = {
    'attack': {
        'concurrency': 100,
        'timeout': 3.0,
    },
    'logging': {
        'level': 'WARNING',
        'file': None,
        'console': True,
    },
    'progress': {
        'enabled': True,
        'interval': 0.5,
    },
}

# environment variable -> (section, key, type)
ENV_OVERRIDES = {
    'VNCBRUTE_CONCURRENCY': ('attack', 'concurrency', int),
    'VNCBRUTE_TIMEOUT': ('attack', 'timeout', float),
    'LOG_LEVEL': ('logging', 'level', str),
    'VNCBRUTE_LOG_FILE': ('logging', 'file', str),
}


def _merge(base: dict, override: dict) -> dict:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config(config_path: Optional[str] = None) -> dict:
    """
    Load configuration from YAML on top of the defaults.

    Args:
        config_path: Explicit file; must exist. When None the default
            path is used if present

    Returns:
        Merged configuration dictionary

    Raises:
        ConfigurationError: If an explicit file is missing, the YAML is
            invalid, or an environment override has the wrong type
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    path = Path(config_path or DEFAULT_CONFIG_PATH)
    if path.exists():
        try:
            with open(path, 'r') as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML config: {str(e)}")
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Config file must contain a mapping: {path}")
        _merge(config, loaded)
    elif config_path:
        raise ConfigurationError(f"Config file not found: {config_path}")

    for var, (section, key, cast) in ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if value is None or value == '':
            continue
        try:
            config[section][key] = cast(value)
        except ValueError:
            raise ConfigurationError(f"Invalid value for {var}: {value!r}")

    return validate_config(config)


def _positive(value, cast, name: str):
    try:
        number = cast(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    if number <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value!r}")
    return number


def validate_config(config: dict) -> dict:
    """
    Range-check and normalise the merged configuration in place.

    A zero timeout would put sockets into non-blocking mode.

    Raises:
        ConfigurationError: On a non-positive concurrency, timeout or
            progress interval, or an unknown log level
    """
    attack = config['attack']
    attack['concurrency'] = _positive(attack['concurrency'], int, 'attack.concurrency')
    attack['timeout'] = _positive(attack['timeout'], float, 'attack.timeout')

    progress = config['progress']
    progress['interval'] = _positive(progress['interval'], float, 'progress.interval')

    level = str(config['logging']['level']).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigurationError(f"Unknown log level: {config['logging']['level']!r}")
    config['logging']['level'] = level

    return config
