"""CLI utilities package for timer-guard.

Modules:
    output: OutputManager for consistent CLI output with color/quiet support
    errors: Errors that end a command with exit status 2
"""

from .errors import CLIError, ConfigurationError, SourceFileError
from .output import OutputConfig, OutputManager, should_use_color

__all__ = [
    # Output
    "OutputConfig",
    "OutputManager",
    "should_use_color",
    # Errors
    "CLIError",
    "ConfigurationError",
    "SourceFileError",
]
