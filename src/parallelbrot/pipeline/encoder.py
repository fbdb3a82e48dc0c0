"""Image encoder using Pillow.

Receives the finished raster once the aggregator has signalled completion
and writes it as a lossless image file.
"""

import logging
from pathlib import Path

import numpy as np
from PIL import Image

from parallelbrot.core.errors import ResourceCreationError
from parallelbrot.core.types import Raster

logger = logging.getLogger(__name__)


class ImageEncoder:
    """Writes RGBA rasters to disk."""

    def __init__(self, image_format: str = "PNG", log_fn=None):
        self.image_format = image_format
        self.log = log_fn or logger.info

    def encode(self, raster: Raster, output_path: str | Path) -> Path:
        """Encode ``raster`` to ``output_path``.

        The file is created before encoding starts; if that fails nothing is
        encoded. A file left half-written by a failed encode is removed.

        Raises:
            ResourceCreationError: if the output file cannot be created or written.
        """
        output_path = Path(output_path)
        try:
            f = open(output_path, "wb")
        except OSError as e:
            raise ResourceCreationError(f"cannot create {output_path}: {e}") from e

        try:
            with f:
                Image.fromarray(raster).save(f, format=self.image_format)
        except (OSError, ValueError, TypeError, KeyError) as e:
            output_path.unlink(missing_ok=True)
            raise ResourceCreationError(f"cannot encode {output_path}: {e!r}") from e

        self.log(f"Image created: {output_path}")
        return output_path

    @staticmethod
    def decode(path: str | Path) -> Raster:
        """Read an encoded image back into an RGBA raster."""
        with Image.open(path) as img:
            return np.asarray(img.convert("RGBA"), dtype=np.uint8).copy()
