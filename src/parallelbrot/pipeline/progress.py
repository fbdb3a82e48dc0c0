"""Decile progress reporting, decoupled from the dispatch and render loops."""

import logging

from parallelbrot.core.constants import PROGRESS_STEPS
from parallelbrot.pipeline.data import ProgressEvent, ProgressObserver

logger = logging.getLogger(__name__)


class DecileReporter:
    """Calls an observer each time a counter crosses a decile of its total.

    With no observer every call is a no-op.
    """

    def __init__(self, stage: str, total: int, observer: ProgressObserver | None = None):
        self.stage = stage
        self.total = total
        self.observer = observer
        self._last_step = 0

    def update(self, done: int) -> None:
        if self.observer is None or self.total <= 0:
            return
        step = done * PROGRESS_STEPS // self.total
        if step > self._last_step:
            self._last_step = step
            self.observer(ProgressEvent(stage=self.stage, done=done, total=self.total))


def log_progress(event: ProgressEvent) -> None:
    """Default observer: one log line per decile."""
    logger.info(f"{event.stage}: {event.fraction:4.0%} ({event.done}/{event.total})")
