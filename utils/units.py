"""Millimeter to pixel conversion and display sizing helpers."""

import math
from typing import Tuple

MM_PER_INCH = 25.4
CSS_DPI = 96  # browser pixel density; badge font sizes are CSS px


def to_pixels(value_mm: float, dpi: float) -> int:
    """Convert millimeters to whole pixels at the given DPI.

    Rounds half up, so 0.5 px becomes 1 px. Every call rounds on its own:
    the pixel sum of two lengths can differ by one from the pixels of
    their summed length.
    """
    return int(math.floor(value_mm * dpi / MM_PER_INCH + 0.5))


def css_px_to_pixels(value_px: float, dpi: float) -> float:
    """Scale a CSS pixel size (96 DPI) to the target DPI."""
    return value_px * dpi / CSS_DPI


def display_size(width: int, height: int, scale: float) -> Tuple[int, int]:
    """Presentation size of a surface; never affects pixel content."""
    return (
        max(1, int(math.floor(width * scale + 0.5))),
        max(1, int(math.floor(height * scale + 0.5))),
    )


def compute_scale_factor(
    image_width: int,
    image_height: int,
    box_width: int,
    box_height: int,
) -> float:
    """Compute uniform scale factor to fit an image within a box."""
    if image_width <= 0 or image_height <= 0:
        return 1.0
    scale_x = box_width / image_width
    scale_y = box_height / image_height
    return min(scale_x, scale_y)


def aspect_ratio_label(width_mm: float, height_mm: float) -> str:
    """CSS-style aspect ratio string, e.g. '210 / 297'."""
    return f"{width_mm:g} / {height_mm:g}"
