"""Fraction <-> pixel conversion for hotspot positions.

Hotspots are stored as fractions of the image's own width and height. Pixel
positions only exist for a particular rendered box and are recomputed every
time that box changes.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np


@dataclass(frozen=True)
class ImageBox:
    """Rendered image box inside its positioning container."""

    width: float
    height: float
    offset_x: float = 0.0
    offset_y: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not (self.width > 0 and self.height > 0)


def is_valid_fraction(value: float) -> bool:
    return 0.0 <= value <= 1.0


def to_pixel(
    frac_x: float, frac_y: float, rendered_width: float, rendered_height: float
) -> tuple[float, float]:
    return frac_x * rendered_width, frac_y * rendered_height


def to_fraction(
    pixel_x: float, pixel_y: float, rendered_width: float, rendered_height: float
) -> tuple[float, float] | None:
    """Inverse of ``to_pixel``.

    Returns ``None`` when the point is outside the rendered box or the box has
    no size yet. Callers must drop the click rather than clamp it.
    """
    if not (rendered_width > 0 and rendered_height > 0):
        return None
    if not (0.0 <= pixel_x <= rendered_width and 0.0 <= pixel_y <= rendered_height):
        return None
    return pixel_x / rendered_width, pixel_y / rendered_height


def project(frac_x: float, frac_y: float, box: ImageBox) -> tuple[float, float] | None:
    """Container-space position of a fraction, or ``None`` for an unloaded image."""
    if box.is_empty:
        return None
    px, py = to_pixel(frac_x, frac_y, box.width, box.height)
    return px + box.offset_x, py + box.offset_y


def project_many(fractions: Iterable[tuple[float, float]], box: ImageBox) -> np.ndarray:
    """Project many (x_pct, y_pct) pairs at once.

    Returns an ``(n, 2)`` float array of container-space positions; an empty
    box yields an empty ``(0, 2)`` array regardless of input.
    """
    if box.is_empty:
        return np.empty((0, 2), dtype=np.float64)
    arr = np.asarray(list(fractions), dtype=np.float64).reshape(-1, 2)
    scale = np.array([box.width, box.height], dtype=np.float64)
    offset = np.array([box.offset_x, box.offset_y], dtype=np.float64)
    return arr * scale + offset


def container_to_fraction(
    container_x: float, container_y: float, box: ImageBox
) -> tuple[float, float] | None:
    # fractions are relative to the image box, never the container
    return to_fraction(
        container_x - box.offset_x, container_y - box.offset_y, box.width, box.height
    )
