"""Configuration for a single render run."""

from enum import Enum
from math import isqrt
from pathlib import Path
from typing import Any, Self

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from parallelbrot.core import constants
from parallelbrot.core.errors import ConfigurationError


class EscapeCriterion(str, Enum):
    """Test used to decide that the recurrence has escaped."""

    MODULUS = "modulus"  # |z| > radius (standard)
    REAL_PART = "real_part"  # |Re(z)| > radius (legacy renderer output)


class Precision(str, Enum):
    """Floating point precision of the complex recurrence."""

    DOUBLE = "double"  # complex128
    SINGLE = "single"  # complex64 (legacy renderer output)


class RunConfig(BaseSettings):
    """Immutable parameters of one render.

    Every pipeline component receives this at construction; nothing reads
    process-wide state.
    """

    model_config = SettingsConfigDict(
        env_prefix="PARALLELBROT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Image size (pixels)
    width: int = Field(default=constants.BASE_WIDTH, gt=0)
    height: int = Field(default=constants.BASE_HEIGHT, gt=0)

    # Escape-time recurrence
    iteration_bound: int = Field(default=constants.MAX_ITER, gt=0)
    escape_radius: float = Field(default=constants.ESCAPE_RADIUS, gt=0)
    escape_criterion: EscapeCriterion = EscapeCriterion.MODULUS
    precision: Precision = Precision.DOUBLE

    # Work distribution
    region_count: int = Field(default=constants.NUM_REGIONS, ge=1)
    worker_count: int = Field(default=constants.NUM_WORKERS, ge=1)

    # Complex plane window
    re_start: float = constants.RE_START
    re_end: float = constants.RE_END
    im_start: float = constants.IM_START
    im_end: float = constants.IM_END

    # Output
    output_dir: Path = Path(".")

    # Diagnostics
    progress_enabled: bool = True
    show_regions: bool = False

    @model_validator(mode="after")
    def check_plane_and_grid(self) -> Self:
        """Reject empty plane windows and grids finer than the image."""
        if self.re_start >= self.re_end:
            raise ValueError(f"re_start ({self.re_start}) must be less than re_end ({self.re_end})")
        if self.im_start >= self.im_end:
            raise ValueError(f"im_start ({self.im_start}) must be less than im_end ({self.im_end})")
        side = self.grid_side
        if self.width // side < 1 or self.height // side < 1:
            raise ValueError(
                f"region_count={self.region_count} gives a {side}x{side} grid, "
                f"too fine for a {self.width}x{self.height} image"
            )
        return self

    @property
    def grid_side(self) -> int:
        """Number of regions along each image axis."""
        return isqrt(self.region_count)

    @property
    def total_pixels(self) -> int:
        return self.width * self.height

    @property
    def output_filename(self) -> str:
        return (
            f"{constants.OUTPUT_PREFIX}_{self.width}_{self.height}_"
            f"{self.iteration_bound}.{constants.OUTPUT_FORMAT}"
        )

    @property
    def output_path(self) -> Path:
        return self.output_dir / self.output_filename

    def pixel_to_complex(self, x: int, y: int) -> complex:
        """Map a pixel coordinate onto the configured plane window."""
        return complex(
            self.re_start + x / self.width * (self.re_end - self.re_start),
            self.im_start + y / self.height * (self.im_end - self.im_start),
        )

    def scaled(self, factor: int) -> "RunConfig":
        """Return a copy with both image dimensions multiplied by ``factor``."""
        return load_config(scale=factor, **self.model_dump())


class ImageSize(BaseSettings):
    """Base image size, read from the same sources as RunConfig.

    Resolved on its own so the size can be scaled before the grid is checked.
    """

    model_config = SettingsConfigDict(
        env_prefix="PARALLELBROT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    width: int = Field(default=constants.BASE_WIDTH, gt=0)
    height: int = Field(default=constants.BASE_HEIGHT, gt=0)


def load_config(scale: int = 1, **overrides: Any) -> RunConfig:
    """Load a RunConfig from the environment, .env and explicit overrides.

    ``scale`` multiplies the base width and height (from ``overrides`` or the
    environment) before the configuration is validated.

    Raises:
        ConfigurationError: if any value is invalid.
    """
    if scale < 1:
        raise ConfigurationError(f"image scale must be >= 1, got {scale}")
    try:
        if scale != 1:
            size = ImageSize(**{k: overrides[k] for k in ("width", "height") if k in overrides})
            overrides = {**overrides, "width": size.width * scale, "height": size.height * scale}
        return RunConfig(**overrides)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
