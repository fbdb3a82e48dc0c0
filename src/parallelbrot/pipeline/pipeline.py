"""Pipeline driver - wires partitioner, dispatcher, aggregator and encoder."""

import logging
import threading
import time
from pathlib import Path
from queue import Queue

from parallelbrot.core import constants
from parallelbrot.core.config import EscapeCriterion, RunConfig, load_config
from parallelbrot.core.constants import POLL_INTERVAL
from parallelbrot.core.errors import RenderCancelled, ResourceCreationError
from parallelbrot.models.mandelbrot import PixelComputer
from parallelbrot.pipeline.aggregator import Aggregator
from parallelbrot.pipeline.data import ProgressObserver, RenderResult
from parallelbrot.pipeline.dispatcher import Dispatcher
from parallelbrot.pipeline.encoder import ImageEncoder
from parallelbrot.pipeline.partitioner import RegionPartitioner
from parallelbrot.pipeline.progress import log_progress

logger = logging.getLogger(__name__)


class Pipeline:
    """Runs one render from configuration to encoded image.

    Architecture:
    ┌───────────────────┐     ┌──────────────┐     ┌──────────────────┐
    │ RegionPartitioner │────▶│ region_queue │────▶│ Dispatcher       │
    │ (r x r grid)      │     │ (Region)     │     │ (worker slots)   │
    └───────────────────┘     └──────────────┘     └──────────────────┘
                                                            │
                                                            ▼
                                                   ┌──────────────────┐
                                                   │ RegionWorker x N │
                                                   │ (thread pool)    │
                                                   └──────────────────┘
                                                            │
                                                            ▼
                              ┌──────────────┐     ┌──────────────────┐
                              │ ImageEncoder │◀────│ Aggregator       │
                              │ (Pillow)     │     │ (pixel_queue)    │
                              └──────────────┘     └──────────────────┘
    """

    def __init__(
        self,
        config: RunConfig | None = None,
        encoder: ImageEncoder | None = None,
        progress_observer: ProgressObserver | None = None,
        write_output: bool = True,
        output_path: str | Path | None = None,
        log_fn=None,
    ):
        self.config = config or load_config()
        self.encoder = encoder or ImageEncoder()
        if progress_observer is None and self.config.progress_enabled:
            progress_observer = log_progress
        self.progress_observer = progress_observer
        self.write_output = write_output
        self.output_path = Path(output_path) if output_path else self.config.output_path
        self.log = log_fn or logger.info

        self.cancel_event = threading.Event()
        self._faults: list[BaseException] = []
        self._fault_lock = threading.Lock()

        # Components (created during run)
        self.partitioner: RegionPartitioner | None = None
        self.dispatcher: Dispatcher | None = None
        self.aggregator: Aggregator | None = None

    def _fault(self, exc: BaseException) -> None:
        """Record a component failure and cancel the run."""
        with self._fault_lock:
            self._faults.append(exc)
        self.cancel_event.set()

    def _wait_for_completion(self) -> bool:
        while not self.aggregator.wait(POLL_INTERVAL):
            if self.cancel_event.is_set():
                return self.aggregator.is_complete
        return True

    def run(self) -> RenderResult:
        """Render the image, encode it, and return a run summary.

        Raises:
            ConfigurationError: if the grid cannot be built.
            InternalProtocolViolation: if a pipeline invariant is broken.
            RenderCancelled: if ``stop()`` was called before completion.
        """
        cfg = self.config
        self.log(f"Rendering {cfg.width}x{cfg.height}, {cfg.iteration_bound} iterations")
        self.log(f"Regions: {cfg.region_count}, workers: {cfg.worker_count}")
        if cfg.escape_criterion is EscapeCriterion.REAL_PART:
            logger.warning("real-part escape test is non-standard; use it only to match legacy images")

        start_time = time.time()

        self.partitioner = RegionPartitioner(cfg)
        region_queue: Queue = Queue(maxsize=self.partitioner.region_count)
        pixel_queue: Queue = Queue(maxsize=cfg.total_pixels)

        # Partitioning is eager; the dispatcher never waits on a region
        region_count = self.partitioner.fill(region_queue)

        self.dispatcher = Dispatcher(
            config=cfg,
            region_queue=region_queue,
            pixel_queue=pixel_queue,
            region_count=region_count,
            computer=PixelComputer(cfg),
            cancel_event=self.cancel_event,
            on_fault=self._fault,
            progress_observer=self.progress_observer,
            log_fn=self.log,
        )
        self.aggregator = Aggregator(
            config=cfg,
            pixel_queue=pixel_queue,
            expected_pixels=self.partitioner.covered_pixels,
            cancel_event=self.cancel_event,
            on_fault=self._fault,
            progress_observer=self.progress_observer,
            log_fn=self.log,
        )

        self.dispatcher.start()
        self.aggregator.start()

        completed = self._wait_for_completion()
        if self._faults or not completed:
            self.stop()
            if self._faults:
                raise self._faults[0]
            raise RenderCancelled(
                f"stopped after {self.aggregator.pixels_written}/{self.aggregator.expected_pixels} pixels"
            )

        self.dispatcher.join()
        self.aggregator.join()
        # A worker can fail after its last pixel, e.g. on a double slot release
        if self._faults:
            raise self._faults[0]

        elapsed = time.time() - start_time
        self.log(f"Pixels rendered: {self.aggregator.pixels_written}")
        self.log(f"Peak concurrent workers: {self.dispatcher.peak_workers}")
        self.log(f"Render time: {elapsed:.2f}s")

        result = RenderResult(
            raster=self.aggregator.raster,
            pixels_rendered=self.aggregator.pixels_written,
            regions_dispatched=self.dispatcher.regions_dispatched,
            peak_workers=self.dispatcher.peak_workers,
            elapsed_seconds=elapsed,
        )

        if self.write_output:
            try:
                result.output_path = self.encoder.encode(result.raster, self.output_path)
            except ResourceCreationError as e:
                logger.error(f"err: {e}")
                result.encode_error = str(e)

        return result

    def stop(self):
        """Cancel the run and stop all components."""
        self.cancel_event.set()
        if self.dispatcher:
            self.dispatcher.stop()
        if self.aggregator:
            self.aggregator.stop()


def run_pipeline(
    width: int = constants.BASE_WIDTH,
    height: int = constants.BASE_HEIGHT,
    iteration_bound: int = constants.MAX_ITER,
    region_count: int = constants.NUM_REGIONS,
    worker_count: int = constants.NUM_WORKERS,
    output_path: str | None = None,
    progress_observer: ProgressObserver | None = None,
) -> RenderResult:
    """Convenience function to render one image.

    Args:
        width: Image width in pixels
        height: Image height in pixels
        iteration_bound: Maximum iterations per pixel
        region_count: Requested number of regions (rounded down to a square)
        worker_count: Maximum concurrent workers
        output_path: Output file (None = mandelbrot_<w>_<h>_<iter>.png)
        progress_observer: Called at each decile of dispatch and render

    Returns:
        The run summary, including the raster
    """
    config = load_config(
        width=width,
        height=height,
        iteration_bound=iteration_bound,
        region_count=region_count,
        worker_count=worker_count,
    )
    pipeline = Pipeline(
        config=config,
        progress_observer=progress_observer,
        output_path=output_path,
    )
    return pipeline.run()
