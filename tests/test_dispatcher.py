"""Tests for admission-controlled dispatch."""

import threading
import time
from queue import Queue

import pytest

from parallelbrot.core.config import load_config
from parallelbrot.core.errors import InternalProtocolViolation
from parallelbrot.pipeline.dispatcher import Dispatcher, WorkerSlots
from parallelbrot.pipeline.partitioner import RegionPartitioner


class ConcurrencyTracker:
    """Stand-in pixel computer that measures how many regions run at once."""

    def __init__(self, delay: float = 0.0005):
        self.delay = delay
        self._lock = threading.Lock()
        self._threads: set[int] = set()
        self.peak = 0

    def color(self, x, y):
        ident = threading.get_ident()
        with self._lock:
            self._threads.add(ident)
            self.peak = max(self.peak, len(self._threads))
        time.sleep(self.delay)
        with self._lock:
            self._threads.discard(ident)
        return (x % 256, y % 256, 0, 254)


class FailingComputer:
    def color(self, x, y):
        raise RuntimeError("boom")


def _drain(queue: Queue) -> list:
    items = []
    while not queue.empty():
        items.append(queue.get_nowait())
    return items


def _make_dispatcher(config, computer, **kwargs):
    partitioner = RegionPartitioner(config)
    region_queue: Queue = Queue(maxsize=partitioner.region_count)
    pixel_queue: Queue = Queue(maxsize=config.total_pixels)
    count = partitioner.fill(region_queue)
    dispatcher = Dispatcher(
        config=config,
        region_queue=region_queue,
        pixel_queue=pixel_queue,
        region_count=count,
        computer=computer,
        **kwargs,
    )
    return partitioner, dispatcher, pixel_queue


class TestWorkerSlots:
    """Tests for the slot pool."""

    def test_acquire_release(self):
        slots = WorkerSlots(2)

        assert slots.acquire()
        assert slots.acquire()
        assert slots.active == 2
        slots.release()
        assert slots.active == 1
        assert slots.peak == 2

    def test_release_without_acquire(self):
        """Returning a slot that was never taken is a defect."""
        slots = WorkerSlots(1)
        with pytest.raises(InternalProtocolViolation):
            slots.release()

    def test_double_release(self):
        slots = WorkerSlots(1)
        slots.acquire()
        slots.release()
        with pytest.raises(InternalProtocolViolation):
            slots.release()

    def test_acquire_gives_up_on_cancel(self):
        """A blocked acquire should return once cancellation is signalled."""
        slots = WorkerSlots(1)
        slots.acquire()
        cancel = threading.Event()
        threading.Timer(0.05, cancel.set).start()

        assert slots.acquire(cancel) is False
        assert slots.active == 1

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            WorkerSlots(0)


class TestDispatcher:
    """Tests for the dispatcher loop."""

    def test_concurrency_ceiling(self):
        """No more than worker_count regions should ever run at once."""
        config = load_config(width=8, height=8, region_count=16, worker_count=3)
        tracker = ConcurrencyTracker()
        _, dispatcher, pixel_queue = _make_dispatcher(config, tracker)

        dispatcher.start()
        dispatcher.join()

        assert dispatcher.regions_dispatched == 16
        assert dispatcher.peak_workers <= 3
        assert tracker.peak <= 3
        assert dispatcher.slots.active == 0
        pixels = _drain(pixel_queue)
        assert len(pixels) == 64
        assert len({(p.x, p.y) for p in pixels}) == 64

    def test_two_workers_four_regions(self):
        config = load_config(width=4, height=4, region_count=4, worker_count=2)
        _, dispatcher, pixel_queue = _make_dispatcher(config, ConcurrencyTracker())

        dispatcher.start()
        dispatcher.join()

        assert dispatcher.regions_dispatched == 4
        assert 1 <= dispatcher.peak_workers <= 2
        assert len(_drain(pixel_queue)) == 16

    def test_fifo_dispatch_order(self):
        """With one worker, pixels arrive region by region in partition order."""
        config = load_config(width=6, height=6, region_count=9, worker_count=1)
        partitioner, dispatcher, pixel_queue = _make_dispatcher(config, ConcurrencyTracker(delay=0))

        dispatcher.start()
        dispatcher.join()

        expected = [xy for region in partitioner.regions() for xy in region.pixels()]
        assert [(p.x, p.y) for p in _drain(pixel_queue)] == expected
        assert dispatcher.peak_workers == 1

    def test_worker_failure_is_reported(self):
        """A failing worker should be reported as a fault and cancel dispatch."""
        config = load_config(width=4, height=4, region_count=4, worker_count=1)
        faults = []
        cancel = threading.Event()

        def on_fault(exc):
            faults.append(exc)
            cancel.set()

        _, dispatcher, _ = _make_dispatcher(
            config, FailingComputer(), cancel_event=cancel, on_fault=on_fault
        )
        dispatcher.start()
        dispatcher.join()

        assert faults
        assert isinstance(faults[0], RuntimeError)
        assert cancel.is_set()

    def test_default_fault_handler(self):
        config = load_config(width=2, height=2, region_count=1, worker_count=1)
        _, dispatcher, _ = _make_dispatcher(config, FailingComputer())

        dispatcher.start()
        dispatcher.join()

        assert len(dispatcher.faults) == 1
        assert dispatcher.cancel_event.is_set()

    def test_progress_reported_at_deciles(self):
        events = []
        config = load_config(width=10, height=10, region_count=100, worker_count=4)
        _, dispatcher, _ = _make_dispatcher(
            config, ConcurrencyTracker(delay=0), progress_observer=events.append
        )

        dispatcher.start()
        dispatcher.join()

        assert [e.done for e in events] == list(range(10, 101, 10))
        assert all(e.stage == "dispatch" for e in events)
