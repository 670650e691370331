"""Geometry and unit-conversion helpers for the receptive-field display.

This module holds the small pieces of numeric code that the rest of the package
shares: the :class:`Rect` pixel rectangle, the visual-degrees to pixels
conversion used to size the tiles, and the conversion from top-left pixel
rectangles to PsychoPy's centred ``pix`` coordinates.  Nothing here imports
PsychoPy so the calculations can be reused (and tested) without opening a
window.
"""
from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Iterable, Tuple

from .config import ConfigurationError


# ---------------------------------------------------------------------------
# Pixel rectangles
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Rect:
    """Axis-aligned pixel rectangle ``[x1, x2) x [y1, y2)``.

    The origin is the top-left corner of the screen and ``y`` grows downward,
    matching the way regions and tiles are described to the experimenter.
    """

    x1: int
    y1: int
    x2: int
    y2: int

    @property
    def width(self) -> int:
        return self.x2 - self.x1

    @property
    def height(self) -> int:
        return self.y2 - self.y1

    @property
    def area(self) -> int:
        if self.is_empty:
            return 0
        return self.width * self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x1 + self.x2) / 2.0, (self.y1 + self.y2) / 2.0

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return self.x1, self.y1, self.x2, self.y2

    def intersection(self, other: "Rect") -> "Rect":
        """Return the overlap with ``other`` (possibly empty)."""

        return Rect(
            max(self.x1, other.x1),
            max(self.y1, other.y1),
            min(self.x2, other.x2),
            min(self.y2, other.y2),
        )

    def overlaps(self, other: "Rect") -> bool:
        return not self.intersection(other).is_empty

    def contains(self, other: "Rect") -> bool:
        return (
            self.x1 <= other.x1
            and self.y1 <= other.y1
            and other.x2 <= self.x2
            and other.y2 <= self.y2
        )


def bounding_rect(rects: Iterable[Rect]) -> Rect:
    """Return the smallest rectangle enclosing every rect in ``rects``."""

    rects = list(rects)
    if not rects:
        raise ValueError("bounding_rect() needs at least one rectangle")
    return Rect(
        min(rect.x1 for rect in rects),
        min(rect.y1 for rect in rects),
        max(rect.x2 for rect in rects),
        max(rect.y2 for rect in rects),
    )


def screen_rect(screen_width: int, screen_height: int) -> Rect:
    return Rect(0, 0, screen_width, screen_height)


# ---------------------------------------------------------------------------
# Visual angle conversion
# ---------------------------------------------------------------------------

def round_half_away(value: float) -> int:
    """Round to the nearest integer, taking exact halves away from zero.

    Python's :func:`round` sends halves to the even neighbour (``round(2.5) == 2``);
    pixel sizes here follow the usual half-up rule instead.
    """

    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def deg_to_px(
    size_deg: float,
    viewing_distance_cm: float,
    screen_width_px: int,
    display_width_mm: float,
) -> int:
    """Return the on-screen size in pixels of an object spanning ``size_deg``.

    Parameters
    ----------
    size_deg:
        Visual angle subtended by the object, in degrees.
    viewing_distance_cm:
        Distance from the eye to the screen in centimetres.
    screen_width_px:
        Horizontal resolution of the display.
    display_width_mm:
        Physical width of the visible display area in millimetres.

    Returns
    -------
    int
        The rounded side length in pixels.
    """

    if display_width_mm <= 0:
        raise ValueError("Display width must be positive for the deg->px conversion")
    px_per_cm = screen_width_px / (display_width_mm / 10.0)
    size_cm = 2.0 * viewing_distance_cm * math.tan(math.radians(size_deg / 2.0))
    return round_half_away(size_cm * px_per_cm)


def check_tile_fits(tile_px: int, screen_width: int, screen_height: int) -> None:
    """Raise :class:`ConfigurationError` if a tile is larger than the screen."""

    if tile_px > screen_width or tile_px > screen_height:
        raise ConfigurationError(
            f"Tile {tile_px} px too big for screen [{screen_width}x{screen_height}]."
        )
    if tile_px <= 0:
        raise ConfigurationError(f"Tile size must be at least 1 px (got {tile_px}).")


# ---------------------------------------------------------------------------
# PsychoPy coordinates
# ---------------------------------------------------------------------------

def rect_to_pix(
    rect: Rect, screen_width: int, screen_height: int
) -> Tuple[Tuple[float, float], Tuple[int, int]]:
    """Convert ``rect`` into a PsychoPy ``(pos, size)`` pair in ``pix`` units.

    PsychoPy puts the origin in the middle of the window with ``y`` pointing up,
    so the rectangle centre has to be shifted and the vertical axis flipped.
    """

    cx, cy = rect.center
    pos = (cx - screen_width / 2.0, screen_height / 2.0 - cy)
    return pos, (rect.width, rect.height)


def photodiode_rect(screen_width: int, screen_height: int, size_px: int) -> Rect:
    """Square patch in the bottom-right corner used to drive a photodiode."""

    return Rect(screen_width - size_px, screen_height - size_px, screen_width, screen_height)


__all__ = [
    "Rect",
    "bounding_rect",
    "screen_rect",
    "round_half_away",
    "deg_to_px",
    "check_tile_fits",
    "rect_to_pix",
    "photodiode_rect",
]
