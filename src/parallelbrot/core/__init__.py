"""Core configuration, errors and type definitions."""

from parallelbrot.core.config import EscapeCriterion, Precision, RunConfig, load_config
from parallelbrot.core.errors import (
    ConfigurationError,
    InternalProtocolViolation,
    ParallelbrotError,
    RenderCancelled,
    ResourceCreationError,
)
from parallelbrot.core.types import Color, Raster, WrittenMask

__all__ = [
    "Color",
    "ConfigurationError",
    "EscapeCriterion",
    "InternalProtocolViolation",
    "ParallelbrotError",
    "Precision",
    "Raster",
    "RenderCancelled",
    "ResourceCreationError",
    "RunConfig",
    "WrittenMask",
    "load_config",
]
