"""Region worker - computes every pixel of one region."""

import logging
import threading
from queue import Full, Queue

from parallelbrot.core.errors import InternalProtocolViolation
from parallelbrot.models.mandelbrot import PixelComputer
from parallelbrot.pipeline.data import PixelResult, Region

logger = logging.getLogger(__name__)


class RegionWorker:
    """Computes the pixels of a single region and streams them to the aggregator.

    A worker owns exactly one region. Its only shared state is the pixel
    queue and the worker slot it releases when done.
    """

    def __init__(
        self,
        region: Region,
        computer: PixelComputer,
        pixel_queue: Queue,
        release_slot,
        cancel_event: threading.Event | None = None,
    ):
        self.region = region
        self.computer = computer
        self.pixel_queue = pixel_queue
        self.release_slot = release_slot
        self.cancel_event = cancel_event or threading.Event()
        self.pixels_emitted = 0

    def _emit(self, x: int, y: int) -> None:
        result = PixelResult(x=x, y=y, color=self.computer.color(x, y))
        try:
            # The pixel queue holds the whole image, so a full queue means
            # more pixels were produced than exist.
            self.pixel_queue.put_nowait(result)
        except Full:
            raise InternalProtocolViolation(
                f"pixel queue full while emitting ({x}, {y}) from {self.region}"
            ) from None
        self.pixels_emitted += 1

    def run(self) -> int:
        """Emit every pixel of the region, then release the worker slot.

        Returns the number of pixels emitted, which is less than the region's
        pixel count only if the run was cancelled.
        """
        try:
            for x, y in self.region.pixels():
                if self.cancel_event.is_set():
                    logger.debug(f"worker for {self.region} cancelled after {self.pixels_emitted} pixels")
                    break
                self._emit(x, y)
        finally:
            self.release_slot()
        return self.pixels_emitted
