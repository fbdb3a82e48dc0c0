"""Parallel Mandelbrot Renderer.

Renders the Mandelbrot set by splitting the image into regions, computing the
regions on a bounded pool of worker threads, and assembling the pixels into a PNG.
"""

__version__ = "0.1.0"
