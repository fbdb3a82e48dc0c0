"""Type definitions shared across the renderer."""

from typing import TypeAlias

import numpy as np
from numpy.typing import NDArray

# RGBA color, one byte per channel
Color: TypeAlias = tuple[int, int, int, int]

# Output image buffer, shape (height, width, 4)
Raster: TypeAlias = NDArray[np.uint8]

# Per-pixel written flags, shape (height, width)
WrittenMask: TypeAlias = NDArray[np.bool_]


def new_raster(width: int, height: int) -> Raster:
    """Allocate a blank (fully transparent) RGBA raster."""
    return np.zeros((height, width, 4), dtype=np.uint8)


def new_written_mask(width: int, height: int) -> WrittenMask:
    """Allocate a mask with no pixel marked as written."""
    return np.zeros((height, width), dtype=np.bool_)
