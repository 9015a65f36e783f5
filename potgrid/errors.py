"""Custom exceptions for the :mod:`potgrid` package."""
from __future__ import annotations


class PotGridError(Exception):
    """Base exception for potential grid sweep errors."""


class ConfigurationError(PotGridError, ValueError):
    """Invalid CLI arguments or configuration values."""


class TemplateError(PotGridError, OSError):
    """A cluster template could not be read."""


class OutputFileError(PotGridError, OSError):
    """The potential output file could not be created or reopened."""


class RestartError(PotGridError, RuntimeError):
    """The existing output cannot be mapped back onto the grid."""


class EngineError(PotGridError, RuntimeError):
    """Spawning, feeding or reading the external engine failed."""


class ExtractionError(PotGridError, ValueError):
    """Engine output did not yield one energy per submitted point."""


__all__ = [
    "PotGridError",
    "ConfigurationError",
    "TemplateError",
    "OutputFileError",
    "RestartError",
    "EngineError",
    "ExtractionError",
]
