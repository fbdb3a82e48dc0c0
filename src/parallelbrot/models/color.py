"""Iteration count to color mapping."""

from parallelbrot.core.constants import PIXEL_ALPHA
from parallelbrot.core.types import Color


def grayscale_intensity(iteration_count: int, iteration_bound: int) -> int:
    """Linear intensity: 255 for immediate escape, 0 for points that never escape."""
    return 255 - iteration_count * 255 // iteration_bound


def map_intensity(iteration_count: int, iteration_bound: int) -> Color:
    """Map an escape iteration count onto an opaque-ish gray RGBA color."""
    value = grayscale_intensity(iteration_count, iteration_bound)
    return (value, value, value, PIXEL_ALPHA)
