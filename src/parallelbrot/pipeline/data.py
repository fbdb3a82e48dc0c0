"""Data classes for pipeline communication."""

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from parallelbrot.core.types import Color, Raster


@dataclass(frozen=True)
class Region:
    """A half-open rectangle of pixels assigned to one worker.

    Covers x in [min_x, max_x) and y in [min_y, max_y).
    """

    min_x: int
    max_x: int
    min_y: int
    max_y: int

    def __post_init__(self):
        if not (0 <= self.min_x < self.max_x and 0 <= self.min_y < self.max_y):
            raise ValueError(f"empty or negative region: {self}")

    @property
    def width(self) -> int:
        return self.max_x - self.min_x

    @property
    def height(self) -> int:
        return self.max_y - self.min_y

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def contains(self, x: int, y: int) -> bool:
        return self.min_x <= x < self.max_x and self.min_y <= y < self.max_y

    def pixels(self) -> Iterator[tuple[int, int]]:
        """Yield (x, y) in row-major order."""
        for y in range(self.min_y, self.max_y):
            for x in range(self.min_x, self.max_x):
                yield x, y


@dataclass(frozen=True)
class PixelResult:
    """One computed pixel on its way to the aggregator."""

    x: int
    y: int
    color: Color


class AggregatorState(str, Enum):
    """Lifecycle of the aggregator."""

    WAITING = "waiting"  # no pixel received yet
    RECEIVING = "receiving"
    COMPLETE = "complete"  # every expected pixel written
    FAILED = "failed"  # stopped by a violation or cancellation


@dataclass(frozen=True)
class ProgressEvent:
    """Coarse progress notification.

    ``stage`` is "dispatch" (regions handed to workers) or "render"
    (pixels written to the raster).
    """

    stage: str
    done: int
    total: int

    @property
    def fraction(self) -> float:
        return self.done / self.total if self.total else 1.0


# Observer invoked at decile boundaries
ProgressObserver = Callable[[ProgressEvent], None]


@dataclass
class RenderResult:
    """Summary of a completed run."""

    raster: Raster
    pixels_rendered: int
    regions_dispatched: int
    peak_workers: int
    elapsed_seconds: float
    output_path: Path | None = None
    encode_error: str | None = None
