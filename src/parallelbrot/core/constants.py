"""Rendering defaults."""

# Base image size (pixels), multiplied by the image scale factor
BASE_WIDTH = 600
BASE_HEIGHT = 400

# Iteration bound for the escape-time recurrence
MAX_ITER = 255

# Complex plane window
RE_START = -2.0
RE_END = 1.0
IM_START = -1.0
IM_END = 1.0

# Escape radius
ESCAPE_RADIUS = 2.0

# Work distribution
NUM_REGIONS = 64
NUM_WORKERS = 12

# Alpha channel written for every computed pixel
PIXEL_ALPHA = 254

# Progress is reported at decile boundaries
PROGRESS_STEPS = 10

# Poll interval (seconds) for blocking waits that must observe cancellation
POLL_INTERVAL = 0.1

# Output file naming
OUTPUT_PREFIX = "mandelbrot"
OUTPUT_FORMAT = "png"
