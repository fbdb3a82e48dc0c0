"""Tests for pixel aggregation and completion detection."""

import threading
from queue import Queue

import numpy as np
import pytest

from parallelbrot.core.config import load_config
from parallelbrot.core.errors import InternalProtocolViolation
from parallelbrot.pipeline.aggregator import Aggregator, CompletionTracker
from parallelbrot.pipeline.data import AggregatorState, PixelResult


def _pixels(width, height, color=(10, 20, 30, 254)):
    return [PixelResult(x, y, color) for y in range(height) for x in range(width)]


@pytest.fixture
def config():
    return load_config(width=4, height=4, region_count=4, worker_count=2)


class TestCompletionTracker:
    """Tests for the completion counter."""

    def test_completes_at_total(self):
        tracker = CompletionTracker(3)

        assert tracker.record() == 1
        assert tracker.record() == 2
        assert not tracker.is_complete
        assert tracker.record() == 3
        assert tracker.is_complete
        assert tracker.wait(timeout=0)

    def test_never_exceeds_total(self):
        tracker = CompletionTracker(1)
        tracker.record()
        with pytest.raises(InternalProtocolViolation):
            tracker.record()
        assert tracker.count == 1

    def test_invalid_total(self):
        with pytest.raises(ValueError):
            CompletionTracker(0)


class TestAggregatorConsume:
    """Tests for synchronous pixel consumption."""

    def test_state_transitions(self, config):
        """WAITING -> RECEIVING -> COMPLETE."""
        aggregator = Aggregator(config, Queue())
        pixels = _pixels(4, 4)

        assert aggregator.state is AggregatorState.WAITING
        aggregator.consume(pixels[0])
        assert aggregator.state is AggregatorState.RECEIVING
        for p in pixels[1:]:
            aggregator.consume(p)
        assert aggregator.state is AggregatorState.COMPLETE
        assert aggregator.is_complete
        assert aggregator.pixels_written == 16

    def test_writes_raster(self, config):
        aggregator = Aggregator(config, Queue())
        aggregator.consume(PixelResult(1, 2, (1, 2, 3, 254)))

        assert tuple(aggregator.raster[2, 1]) == (1, 2, 3, 254)
        assert aggregator.written[2, 1]
        assert aggregator.written.sum() == 1

    def test_duplicate_pixel(self, config):
        aggregator = Aggregator(config, Queue())
        aggregator.consume(PixelResult(0, 0, (0, 0, 0, 254)))
        with pytest.raises(InternalProtocolViolation, match="twice"):
            aggregator.consume(PixelResult(0, 0, (0, 0, 0, 254)))

    @pytest.mark.parametrize("xy", [(4, 0), (0, 4), (-1, 0)])
    def test_out_of_bounds(self, config, xy):
        aggregator = Aggregator(config, Queue())
        with pytest.raises(InternalProtocolViolation, match="outside"):
            aggregator.consume(PixelResult(*xy, (0, 0, 0, 254)))

    def test_pixel_after_completion(self, config):
        aggregator = Aggregator(config, Queue(), expected_pixels=1)
        aggregator.consume(PixelResult(0, 0, (0, 0, 0, 254)))
        with pytest.raises(InternalProtocolViolation, match="after completion"):
            aggregator.consume(PixelResult(1, 0, (0, 0, 0, 254)))

    def test_progress_deciles(self):
        events = []
        config = load_config(width=10, height=10, region_count=1)
        aggregator = Aggregator(config, Queue(), progress_observer=events.append)
        for p in _pixels(10, 10):
            aggregator.consume(p)

        assert len(events) == 10
        assert events[-1].fraction == 1.0
        assert all(e.stage == "render" for e in events)


class TestAggregatorThread:
    """Tests for the threaded aggregation loop."""

    def test_completes_and_stops_early(self, config):
        """The loop ends at the expected count even with items still queued."""
        queue: Queue = Queue()
        for p in _pixels(4, 4):
            queue.put(p)
        queue.put(PixelResult(0, 0, (0, 0, 0, 254)))  # never consumed

        aggregator = Aggregator(config, queue)
        aggregator.start()

        assert aggregator.wait(timeout=5.0)
        aggregator.join()
        assert aggregator.state is AggregatorState.COMPLETE
        assert aggregator.pixels_written == 16
        assert queue.qsize() == 1
        assert np.all(aggregator.written)

    def test_violation_is_reported(self, config):
        faults = []
        queue: Queue = Queue()
        queue.put(PixelResult(9, 9, (0, 0, 0, 254)))

        aggregator = Aggregator(config, queue, on_fault=faults.append)
        aggregator.start()
        aggregator.join()

        assert aggregator.state is AggregatorState.FAILED
        assert isinstance(aggregator.error, InternalProtocolViolation)
        assert faults == [aggregator.error]

    def test_cancel(self, config):
        cancel = threading.Event()
        aggregator = Aggregator(config, Queue(), cancel_event=cancel)
        aggregator.start()
        cancel.set()
        aggregator.join()

        assert aggregator.state is AggregatorState.FAILED
        assert not aggregator.is_complete
