"""
Configuration module for the Plot3D to VTK converter.

Provides YAML-based configuration with dataclass schema.
"""

from .schema import (
    ConverterConfig,
    ParserConfig,
    WriterConfig,
    LoggingConfig,
)

from .loader import (
    load_yaml,
    from_dict,
    apply_cli_overrides,
    save_yaml,
)

__all__ = [
    # Schema classes
    'ConverterConfig',
    'ParserConfig',
    'WriterConfig',
    'LoggingConfig',
    # Loader functions
    'load_yaml',
    'from_dict',
    'apply_cli_overrides',
    'save_yaml',
]
