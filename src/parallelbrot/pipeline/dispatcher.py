"""Dispatcher - admission-controlled launch of region workers.

Workers are only started when both a region and a free worker slot are
available, so at most ``worker_count`` regions are in flight at any time no
matter how many regions the image was split into.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from queue import Empty, Queue

from parallelbrot.core.config import RunConfig
from parallelbrot.core.constants import POLL_INTERVAL
from parallelbrot.core.errors import InternalProtocolViolation
from parallelbrot.models.mandelbrot import PixelComputer
from parallelbrot.pipeline.data import ProgressObserver
from parallelbrot.pipeline.progress import DecileReporter
from parallelbrot.pipeline.worker import RegionWorker

logger = logging.getLogger(__name__)


class WorkerSlots:
    """Fixed pool of worker slots backed by a bounded semaphore.

    Also tracks how many slots are held right now and the most ever held at
    once. Releasing a slot that was never acquired is a protocol violation.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._semaphore = threading.BoundedSemaphore(capacity)
        self._lock = threading.Lock()
        self._active = 0
        self._peak = 0

    def acquire(self, cancel_event: threading.Event | None = None) -> bool:
        """Block until a slot is free.

        Returns False without taking a slot if ``cancel_event`` is set first.
        """
        while True:
            if cancel_event is not None and cancel_event.is_set():
                return False
            if self._semaphore.acquire(timeout=POLL_INTERVAL):
                break
        with self._lock:
            self._active += 1
            self._peak = max(self._peak, self._active)
        return True

    def release(self) -> None:
        with self._lock:
            if self._active <= 0:
                raise InternalProtocolViolation("worker slot released more times than acquired")
            self._active -= 1
            try:
                self._semaphore.release()
            except ValueError as e:
                raise InternalProtocolViolation(f"worker slot pool overflow: {e}") from e

    @property
    def active(self) -> int:
        with self._lock:
            return self._active

    @property
    def peak(self) -> int:
        with self._lock:
            return self._peak


class Dispatcher:
    """Takes regions off the region queue and launches one worker per region.

    Regions are dispatched in queue order. The dispatcher stops once
    ``region_count`` regions have been launched; it does not wait for the
    workers to finish (the aggregator detects the end from the pixel count).
    """

    def __init__(
        self,
        config: RunConfig,
        region_queue: Queue,
        pixel_queue: Queue,
        region_count: int,
        computer: PixelComputer | None = None,
        cancel_event: threading.Event | None = None,
        on_fault=None,
        progress_observer: ProgressObserver | None = None,
        log_fn=None,
    ):
        self.config = config
        self.region_queue = region_queue
        self.pixel_queue = pixel_queue
        self.region_count = region_count
        self.computer = computer or PixelComputer(config)
        self.cancel_event = cancel_event or threading.Event()
        self.on_fault = on_fault or self._default_fault
        self.progress = DecileReporter("dispatch", region_count, progress_observer)
        self.log = log_fn or logger.info

        self.slots = WorkerSlots(config.worker_count)
        self.faults: list[BaseException] = []

        self._thread: threading.Thread | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._dispatched = 0

    def _default_fault(self, exc: BaseException) -> None:
        self.faults.append(exc)
        self.cancel_event.set()

    def _on_worker_done(self, future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error(f"region worker failed: {exc!r}")
            self.on_fault(exc)

    def _launch(self, region) -> None:
        worker = RegionWorker(
            region=region,
            computer=self.computer,
            pixel_queue=self.pixel_queue,
            release_slot=self.slots.release,
            cancel_event=self.cancel_event,
        )
        future = self._executor.submit(worker.run)
        future.add_done_callback(self._on_worker_done)

    def _dispatcher_loop(self):
        """Main dispatcher loop - one region per free slot, in order."""
        try:
            while self._dispatched < self.region_count and not self.cancel_event.is_set():
                try:
                    region = self.region_queue.get(timeout=POLL_INTERVAL)
                except Empty:
                    continue

                # Admission control: wait for a free worker slot
                if not self.slots.acquire(self.cancel_event):
                    break

                self._launch(region)
                self._dispatched += 1
                self.progress.update(self._dispatched)
        except Exception as e:
            logger.error(f"dispatcher failed: {e!r}")
            self.on_fault(e)
            return

        if self._dispatched == self.region_count:
            logger.debug(f"all {self.region_count} regions dispatched")
        else:
            self.log(f"Dispatch stopped after {self._dispatched}/{self.region_count} regions")

    def start(self):
        """Start the dispatcher thread and the worker pool."""
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.worker_count,
            thread_name_prefix="region-worker",
        )
        self._thread = threading.Thread(target=self._dispatcher_loop, name="dispatcher", daemon=True)
        self._thread.start()

    def stop(self):
        """Stop dispatching and abandon queued workers."""
        self.cancel_event.set()
        if self._thread:
            self._thread.join(timeout=5.0)
        if self._executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

    def join(self):
        """Wait for the dispatcher and every launched worker to finish."""
        if self._thread:
            self._thread.join()
        if self._executor:
            self._executor.shutdown(wait=True)

    @property
    def regions_dispatched(self) -> int:
        return self._dispatched

    @property
    def peak_workers(self) -> int:
        """Most workers that were ever running at the same time."""
        return self.slots.peak
