"""Region partitioner - splits the image into equal rectangular work units."""

import logging
from collections.abc import Iterator
from math import isqrt
from queue import Queue

from parallelbrot.core.config import RunConfig
from parallelbrot.core.errors import ConfigurationError
from parallelbrot.pipeline.data import Region

logger = logging.getLogger(__name__)


class RegionPartitioner:
    """Splits the raster into an r x r grid of regions, r = isqrt(region_count).

    Each cell is (width // r) x (height // r) pixels. When the image size is
    not a multiple of r the rightmost columns and bottom rows are left out of
    the grid; they are never computed.
    """

    def __init__(self, config: RunConfig, log_fn=None):
        if config.region_count < 1:
            raise ConfigurationError(f"region_count must be >= 1, got {config.region_count}")
        self.config = config
        self.log = log_fn or logger.info

        self.side = isqrt(config.region_count)
        self.cell_width = config.width // self.side
        self.cell_height = config.height // self.side
        if self.cell_width < 1 or self.cell_height < 1:
            raise ConfigurationError(
                f"{self.side}x{self.side} grid does not fit a {config.width}x{config.height} image"
            )

    @property
    def region_count(self) -> int:
        """Number of regions actually produced (a perfect square)."""
        return self.side * self.side

    @property
    def covered_width(self) -> int:
        return self.side * self.cell_width

    @property
    def covered_height(self) -> int:
        return self.side * self.cell_height

    @property
    def covered_pixels(self) -> int:
        """Pixels inside the grid; equals width * height unless truncated."""
        return self.covered_width * self.covered_height

    @property
    def is_truncated(self) -> bool:
        return self.covered_pixels != self.config.total_pixels

    def regions(self) -> Iterator[Region]:
        """Yield every region in row-major order of the grid."""
        for row in range(self.side):
            for col in range(self.side):
                region = Region(
                    min_x=col * self.cell_width,
                    max_x=(col + 1) * self.cell_width,
                    min_y=row * self.cell_height,
                    max_y=(row + 1) * self.cell_height,
                )
                if self.config.show_regions:
                    self.log(f"region {row * self.side + col}: {region}")
                yield region

    def fill(self, queue: Queue) -> int:
        """Put every region on ``queue``, blocking while it is full.

        Returns the number of regions queued.
        """
        if self.is_truncated:
            logger.warning(
                f"{self.config.width}x{self.config.height} is not divisible by the "
                f"{self.side}x{self.side} grid; only {self.covered_width}x{self.covered_height} "
                f"pixels will be rendered"
            )
        count = 0
        for region in self.regions():
            queue.put(region)
            count += 1
        return count
