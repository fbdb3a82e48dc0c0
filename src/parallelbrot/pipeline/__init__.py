"""Concurrent region-based rendering pipeline.

Architecture:
┌───────────────────┐     ┌──────────────────┐     ┌──────────────────┐
│ RegionPartitioner │────▶│  Region Queue    │────▶│  Dispatcher      │
│ (r x r grid)      │     │  (Region)        │     │  (worker slots)  │
└───────────────────┘     └──────────────────┘     └──────────────────┘
                                                            │
                                                            ▼
                                                   ┌──────────────────┐
                                                   │  Region Workers  │
                                                   │  (thread pool)   │
                                                   └──────────────────┘
                                                            │
                                                            ▼
                                                   ┌──────────────────┐
                                                   │  Pixel Queue     │
                                                   │  (PixelResult)   │
                                                   └──────────────────┘
                                                            │
                                                            ▼
                                                   ┌──────────────────┐
                                                   │  Aggregator      │──▶ ImageEncoder
                                                   │  (raster)        │    (Pillow PNG)
                                                   └──────────────────┘

Properties:
- At most worker_count regions are computed at once
- Every pixel is written to the raster exactly once
- Completion is detected from the pixel count, not from worker exits
"""

from parallelbrot.pipeline.aggregator import Aggregator, CompletionTracker
from parallelbrot.pipeline.data import (
    AggregatorState,
    PixelResult,
    ProgressEvent,
    Region,
    RenderResult,
)
from parallelbrot.pipeline.dispatcher import Dispatcher, WorkerSlots
from parallelbrot.pipeline.encoder import ImageEncoder
from parallelbrot.pipeline.partitioner import RegionPartitioner
from parallelbrot.pipeline.pipeline import Pipeline, run_pipeline
from parallelbrot.pipeline.worker import RegionWorker

__all__ = [
    "Aggregator",
    "AggregatorState",
    "CompletionTracker",
    "Dispatcher",
    "ImageEncoder",
    "Pipeline",
    "PixelResult",
    "ProgressEvent",
    "Region",
    "RegionPartitioner",
    "RegionWorker",
    "RenderResult",
    "WorkerSlots",
    "run_pipeline",
]
