"""Aggregator - assembles streamed pixel results into the output raster.

The aggregator is the only writer of the raster. Each pixel is written
before it is counted, so once the completion signal fires every counted
pixel is already in the raster.
"""

import logging
import threading
from queue import Empty, Queue

from parallelbrot.core.config import RunConfig
from parallelbrot.core.constants import POLL_INTERVAL
from parallelbrot.core.errors import InternalProtocolViolation
from parallelbrot.core.types import Raster, new_raster, new_written_mask
from parallelbrot.pipeline.data import AggregatorState, PixelResult, ProgressObserver
from parallelbrot.pipeline.progress import DecileReporter

logger = logging.getLogger(__name__)


class CompletionTracker:
    """Authoritative pixel counter with a one-shot completion signal."""

    def __init__(self, total: int):
        if total < 1:
            raise ValueError(f"total must be >= 1, got {total}")
        self.total = total
        self._count = 0
        self._lock = threading.Lock()
        self._done = threading.Event()

    def record(self) -> int:
        """Count one written pixel and return the new count."""
        with self._lock:
            if self._count >= self.total:
                raise InternalProtocolViolation(
                    f"pixel count would exceed the image total of {self.total}"
                )
            self._count += 1
            if self._count == self.total:
                self._done.set()
            return self._count

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    @property
    def is_complete(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._done.wait(timeout)


class Aggregator:
    """Single consumer of the pixel queue.

    State: WAITING -> RECEIVING (first pixel) -> COMPLETE (count reaches the
    expected total). The loop ends at COMPLETE even if the queue still holds
    items; nothing more is ever expected. FAILED is entered on a protocol
    violation or on cancellation.
    """

    def __init__(
        self,
        config: RunConfig,
        pixel_queue: Queue,
        expected_pixels: int | None = None,
        cancel_event: threading.Event | None = None,
        on_fault=None,
        progress_observer: ProgressObserver | None = None,
        log_fn=None,
    ):
        self.config = config
        self.pixel_queue = pixel_queue
        self.expected_pixels = expected_pixels or config.total_pixels
        self.cancel_event = cancel_event or threading.Event()
        self.on_fault = on_fault
        self.progress = DecileReporter("render", self.expected_pixels, progress_observer)
        self.log = log_fn or logger.info

        self.raster: Raster = new_raster(config.width, config.height)
        self.written = new_written_mask(config.width, config.height)
        self.tracker = CompletionTracker(self.expected_pixels)
        self.state = AggregatorState.WAITING
        self.error: InternalProtocolViolation | None = None

        self._thread: threading.Thread | None = None

    def consume(self, pixel: PixelResult) -> int:
        """Write one pixel into the raster and count it.

        Returns the number of pixels written so far.

        Raises:
            InternalProtocolViolation: if the pixel lies outside the raster,
                was already written, or arrived after completion.
        """
        if self.state is AggregatorState.COMPLETE:
            raise InternalProtocolViolation(f"pixel ({pixel.x}, {pixel.y}) arrived after completion")
        if not (0 <= pixel.x < self.config.width and 0 <= pixel.y < self.config.height):
            raise InternalProtocolViolation(
                f"pixel ({pixel.x}, {pixel.y}) outside {self.config.width}x{self.config.height} raster"
            )
        if self.written[pixel.y, pixel.x]:
            raise InternalProtocolViolation(f"pixel ({pixel.x}, {pixel.y}) written twice")

        self.state = AggregatorState.RECEIVING
        self.raster[pixel.y, pixel.x] = pixel.color
        self.written[pixel.y, pixel.x] = True

        count = self.tracker.record()
        self.progress.update(count)
        if self.tracker.is_complete:
            self.state = AggregatorState.COMPLETE
        return count

    def _aggregator_loop(self):
        """Main loop - drain pixels until the expected total is written."""
        while not self.cancel_event.is_set():
            try:
                pixel = self.pixel_queue.get(timeout=POLL_INTERVAL)
            except Empty:
                continue

            try:
                self.consume(pixel)
            except InternalProtocolViolation as e:
                logger.error(f"aggregator stopped: {e}")
                self.error = e
                self.state = AggregatorState.FAILED
                if self.on_fault:
                    self.on_fault(e)
                return

            if self.state is AggregatorState.COMPLETE:
                logger.debug(f"aggregated {self.tracker.count} pixels")
                return

        self.state = AggregatorState.FAILED
        self.log(f"Aggregation cancelled at {self.tracker.count}/{self.expected_pixels} pixels")

    def start(self):
        """Start the aggregator thread."""
        self._thread = threading.Thread(target=self._aggregator_loop, name="aggregator", daemon=True)
        self._thread.start()

    def stop(self):
        """Stop the aggregator without waiting for completion."""
        self.cancel_event.set()
        if self._thread:
            self._thread.join(timeout=5.0)

    def join(self):
        """Wait for the aggregator loop to exit."""
        if self._thread:
            self._thread.join()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until every expected pixel is written (or timeout)."""
        return self.tracker.wait(timeout)

    @property
    def is_complete(self) -> bool:
        return self.tracker.is_complete

    @property
    def pixels_written(self) -> int:
        return self.tracker.count
