"""
Configuration schema for the Plot3D to VTK converter.

Dataclass-based configuration that can be loaded from YAML or constructed programmatically.
"""

from dataclasses import dataclass, field, asdict

from ..errors import ConfigurationError


@dataclass
class ParserConfig:
    """Plot3D input configuration."""

    dimensions: int = 3        # 2 or 3
    binary: bool = True        # Fortran unformatted (True) or formatted text (False)
    single_block: bool = False # File has no block-count record


@dataclass
class WriterConfig:
    """VTK output configuration."""

    ascii: bool = False        # Text values instead of Base64
    appended: bool = True      # Defer binary payloads to <AppendedData>
    precision: int = 6         # Significant digits for ascii floats


@dataclass
class LoggingConfig:
    """Console logging configuration."""

    level: str = "INFO"
    show_time: bool = True


@dataclass
class ConverterConfig:
    """Complete converter configuration."""

    parser: ParserConfig = field(default_factory=ParserConfig)
    writer: WriterConfig = field(default_factory=WriterConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> 'ConverterConfig':
        """Raise ConfigurationError for inconsistent settings; returns self."""
        if self.parser.dimensions not in (2, 3):
            raise ConfigurationError(
                f"parser.dimensions must be 2 or 3, got {self.parser.dimensions!r}"
            )
        if self.writer.ascii and self.writer.appended:
            raise ConfigurationError("writer.ascii and writer.appended cannot both be set")
        if self.writer.precision < 1:
            raise ConfigurationError(
                f"writer.precision must be at least 1, got {self.writer.precision}"
            )
        return self

    def to_dict(self) -> dict:
        """Convert to nested dictionary."""
        return asdict(self)
