"""Escape-time computation for the Mandelbrot recurrence.

The Mandelbrot set is the set of complex numbers c for which the sequence

    z(0) = 0
    z(n+1) = z(n)^2 + c

remains bounded. The escape iteration count is the number of steps taken before
the sequence leaves the escape radius, capped at the iteration bound.
"""

import numpy as np

from parallelbrot.core.config import EscapeCriterion, Precision, RunConfig
from parallelbrot.core.types import Color
from parallelbrot.models.color import map_intensity


def escape_iterations(
    c: complex,
    iteration_bound: int,
    escape_radius: float,
    criterion: EscapeCriterion = EscapeCriterion.MODULUS,
    precision: Precision = Precision.DOUBLE,
) -> int:
    """Return the escape iteration count of ``c``.

    Pure and total: always terminates within ``iteration_bound`` steps.

    ``EscapeCriterion.REAL_PART`` with ``Precision.SINGLE`` reproduces images
    made by the legacy renderer, which tested only the real part of z in
    complex64 arithmetic. This is not the standard escape test.
    """
    if precision is Precision.SINGLE:
        c = np.complex64(c)
        z = np.complex64(0)
    else:
        z = 0j

    if criterion is EscapeCriterion.REAL_PART:
        def bounded(value) -> bool:
            return abs(float(value.real)) <= escape_radius
    else:
        def bounded(value) -> bool:
            return abs(value) <= escape_radius

    n = 0
    # complex64 can overflow to inf/nan once the real-part test lets z grow
    with np.errstate(over="ignore", invalid="ignore"):
        while bounded(z) and n < iteration_bound:
            z = z * z + c
            n += 1
    return n


class PixelComputer:
    """Maps pixel coordinates to colors for one RunConfig."""

    def __init__(self, config: RunConfig):
        self.config = config

    def iterations(self, x: int, y: int) -> int:
        """Escape iteration count of pixel (x, y)."""
        cfg = self.config
        return escape_iterations(
            cfg.pixel_to_complex(x, y),
            cfg.iteration_bound,
            cfg.escape_radius,
            cfg.escape_criterion,
            cfg.precision,
        )

    def color(self, x: int, y: int) -> Color:
        """Color of pixel (x, y)."""
        return map_intensity(self.iterations(x, y), self.config.iteration_bound)
