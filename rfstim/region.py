"""Resolve region specifiers into a pixel bounding box.

A region specifier names one or more parts of the screen, for example ``"tl"``,
``"left,top"`` or ``"sw+w+s+center"``.  Every token maps to a fixed rectangle
computed from the screen size; the resolved region is the bounding box of all
of them.  A specifier consisting of ``fullscreen`` alone instead selects a single
tile-sized square in the middle of the screen; mixed with other tokens it is
just another unknown token.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Callable, Dict, List

from .calibration import Rect, bounding_rect

_logger = logging.getLogger(__name__)

FULLSCREEN_TOKEN = "fullscreen"
# Tokens missing from the table select the whole screen instead of raising.
UNKNOWN_TOKEN_FALLBACK = "full"

_SEPARATORS = re.compile(r"[+,]")


@dataclass(frozen=True)
class ScreenDivisions:
    """Half and third boundaries of a screen.

    Halves split at ``floor``/``ceil`` of the midpoint.  Thirds use ``floor`` for
    the first boundary and ``ceil`` for the second so that neighbouring third
    tokens always share their edges.
    """

    width: int
    height: int

    @property
    def half_x_lo(self) -> int:
        return self.width // 2

    @property
    def half_x_hi(self) -> int:
        return -(-self.width // 2)

    @property
    def half_y_lo(self) -> int:
        return self.height // 2

    @property
    def half_y_hi(self) -> int:
        return -(-self.height // 2)

    @property
    def third_x(self) -> int:
        return self.width // 3

    @property
    def two_third_x(self) -> int:
        return -(-2 * self.width // 3)

    @property
    def third_y(self) -> int:
        return self.height // 3

    @property
    def two_third_y(self) -> int:
        return -(-2 * self.height // 3)


_TokenRect = Callable[[ScreenDivisions], Rect]


def _full(d: ScreenDivisions) -> Rect:
    return Rect(0, 0, d.width, d.height)


def _quadrant(left: bool, top: bool) -> _TokenRect:
    def build(d: ScreenDivisions) -> Rect:
        x1, x2 = (0, d.half_x_lo) if left else (d.half_x_hi, d.width)
        y1, y2 = (0, d.half_y_lo) if top else (d.half_y_hi, d.height)
        return Rect(x1, y1, x2, y2)

    return build


def _third(column: int, row: int) -> _TokenRect:
    def build(d: ScreenDivisions) -> Rect:
        xs = (0, d.third_x, d.two_third_x, d.width)
        ys = (0, d.third_y, d.two_third_y, d.height)
        return Rect(xs[column], ys[row], xs[column + 1], ys[row + 1])

    return build


REGION_TOKENS: Dict[str, _TokenRect] = {
    "full": _full,
    "left": lambda d: Rect(0, 0, d.half_x_lo, d.height),
    "right": lambda d: Rect(d.half_x_hi, 0, d.width, d.height),
    "top": lambda d: Rect(0, 0, d.width, d.half_y_lo),
    "bottom": lambda d: Rect(0, d.half_y_hi, d.width, d.height),
    "tl": _quadrant(left=True, top=True),
    "tr": _quadrant(left=False, top=True),
    "bl": _quadrant(left=True, top=False),
    "br": _quadrant(left=False, top=False),
    "nw": _third(0, 0),
    "n": _third(1, 0),
    "ne": _third(2, 0),
    "w": _third(0, 1),
    "center": _third(1, 1),
    "e": _third(2, 1),
    "sw": _third(0, 2),
    "s": _third(1, 2),
    "se": _third(2, 2),
}

# numeric quadrant aliases
REGION_TOKENS.update(
    {"1": REGION_TOKENS["tl"], "2": REGION_TOKENS["tr"], "3": REGION_TOKENS["bl"], "4": REGION_TOKENS["br"]}
)


def _normalize(spec: str) -> str:
    return "".join(spec.split()).lower()


def region_tokens(spec: str) -> List[str]:
    """Split ``spec`` into lowercase tokens.

    Empty entries (``"tl,"``, ``"left++top"`` or an empty ``spec``) are kept and
    resolve like any other unknown token.
    """

    return _SEPARATORS.split(_normalize(spec))


def token_rect(token: str, screen_width: int, screen_height: int) -> Rect:
    """Return the rectangle for a single token (unknown tokens give the full screen)."""

    divisions = ScreenDivisions(screen_width, screen_height)
    builder = REGION_TOKENS.get(token)
    if builder is None:
        _logger.warning(
            "Unknown region token '%s'; using '%s' instead.", token, UNKNOWN_TOKEN_FALLBACK
        )
        builder = REGION_TOKENS[UNKNOWN_TOKEN_FALLBACK]
    return builder(divisions)


def centered_square(size: int, screen_width: int, screen_height: int) -> Rect:
    x1 = math.floor((screen_width - size) / 2)
    y1 = math.floor((screen_height - size) / 2)
    return Rect(x1, y1, x1 + size, y1 + size)


def resolve_region(spec: str, tile_size: int, screen_width: int, screen_height: int) -> Rect:
    """Return the pixel bounding box selected by ``spec``.

    Parameters
    ----------
    spec:
        Case-insensitive token list separated by ``+`` or ``,`` (whitespace is
        ignored), or the keyword ``fullscreen`` on its own.
    tile_size:
        Tile side length in pixels; only used by ``fullscreen``.
    screen_width, screen_height:
        Screen resolution in pixels.

    Returns
    -------
    Rect
        Bounding box over the rectangles of every token.
    """

    tokens = region_tokens(spec)
    if tokens == [FULLSCREEN_TOKEN]:
        return centered_square(tile_size, screen_width, screen_height)
    return bounding_rect(token_rect(token, screen_width, screen_height) for token in tokens)


__all__ = [
    "FULLSCREEN_TOKEN",
    "UNKNOWN_TOKEN_FALLBACK",
    "REGION_TOKENS",
    "ScreenDivisions",
    "region_tokens",
    "token_rect",
    "centered_square",
    "resolve_region",
]
