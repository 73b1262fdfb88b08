"""
YAML configuration loader with validation.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Union
from dataclasses import fields, is_dataclass

from .schema import ConverterConfig, ParserConfig, WriterConfig, LoggingConfig


_TRUE_STRINGS = {'true', 'yes', 'on', '1'}
_FALSE_STRINGS = {'false', 'no', 'off', '0'}


def _merge_dict(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_dict(result[key], value)
        else:
            result[key] = value
    return result


def _coerce_type(value, field_type):
    """Coerce value to the expected field type."""
    if not isinstance(value, str):
        return value
    if field_type in (int, 'int'):
        try:
            return int(value)
        except ValueError:
            return value
    if field_type in (bool, 'bool'):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return value


def _dict_to_dataclass(cls, data: dict):
    """Convert a flat dictionary to a dataclass instance, skipping unknown keys."""
    if not is_dataclass(cls):
        return data

    field_types = {f.name: f.type for f in fields(cls)}
    kwargs = {}

    for key, value in data.items():
        if key not in field_types:
            continue  # Skip unknown fields
        kwargs[key] = _coerce_type(value, field_types[key])

    return cls(**kwargs)


def load_yaml(path: Union[str, Path]) -> ConverterConfig:
    """
    Load converter configuration from a YAML file.

    Args:
        path: Path to YAML configuration file

    Returns:
        ConverterConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ConfigurationError: If the settings are inconsistent
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}

    return from_dict(data)


def from_dict(data: Dict[str, Any]) -> ConverterConfig:
    """
    Create ConverterConfig from a dictionary.

    Handles nested sections and applies defaults for missing values.
    """
    sections = {
        'parser': ParserConfig,
        'writer': WriterConfig,
        'logging': LoggingConfig,
    }
    config_dict = {}
    for name, cls in sections.items():
        if isinstance(data.get(name), dict):
            config_dict[name] = _dict_to_dataclass(cls, data[name])

    return ConverterConfig(**config_dict).validate()


def apply_cli_overrides(config: ConverterConfig, args) -> ConverterConfig:
    """
    Apply command-line argument overrides to a configuration.

    Only overrides values that were explicitly set (not None).

    Args:
        config: Base configuration
        args: argparse.Namespace with CLI arguments

    Returns:
        Updated ConverterConfig
    """
    cli_mapping = {
        'dimensions': ('parser', 'dimensions'),
        'binary': ('parser', 'binary'),
        'single_block': ('parser', 'single_block'),
        'ascii_output': ('writer', 'ascii'),
        'appended': ('writer', 'appended'),
        'precision': ('writer', 'precision'),
        'log_level': ('logging', 'level'),
    }

    overrides: Dict[str, Any] = {}
    for cli_name, (section, key) in cli_mapping.items():
        value = getattr(args, cli_name, None)
        if value is not None:
            overrides.setdefault(section, {})[key] = value

    # Text output is always inline
    if overrides.get('writer', {}).get('ascii') and 'appended' not in overrides['writer']:
        overrides['writer']['appended'] = False

    return from_dict(_merge_dict(config.to_dict(), overrides))


def save_yaml(config: ConverterConfig, path: Union[str, Path]) -> None:
    """Save configuration to a YAML file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w') as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
