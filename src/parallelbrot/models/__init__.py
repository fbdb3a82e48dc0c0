"""Per-pixel models: escape-time computation and color mapping."""

from parallelbrot.models.color import grayscale_intensity, map_intensity
from parallelbrot.models.mandelbrot import PixelComputer, escape_iterations

__all__ = [
    "PixelComputer",
    "escape_iterations",
    "grayscale_intensity",
    "map_intensity",
]
