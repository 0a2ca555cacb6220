"""Quadrant sectors used to pick which edge gives way in a conflict (world frame, +y up)."""
from __future__ import annotations

import math
from enum import Enum

from territory_tabs.rect_kit import Point, Rect


class Sector(Enum):
    RIGHT = "right"
    TOP = "top"
    LEFT = "left"
    BOTTOM = "bottom"

    @property
    def horizontal(self) -> bool:
        return self in (Sector.RIGHT, Sector.LEFT)

    def opposite(self) -> "Sector":
        return {
            Sector.RIGHT: Sector.LEFT,
            Sector.LEFT: Sector.RIGHT,
            Sector.TOP: Sector.BOTTOM,
            Sector.BOTTOM: Sector.TOP,
        }[self]


def sector_for_angle(degrees: float) -> Sector:
    if -45.0 <= degrees <= 45.0:
        return Sector.RIGHT
    if 45.0 < degrees <= 135.0:
        return Sector.TOP
    if -135.0 <= degrees < -45.0:
        return Sector.BOTTOM
    return Sector.LEFT


def conflict_sector(origin: Point, target: Point) -> Sector:
    """Sector of `target` as seen from `origin`."""
    angle = math.degrees(math.atan2(target[1] - origin[1], target[0] - origin[0]))
    return sector_for_angle(angle)


def extent_along(rect: Rect, sector: Sector) -> float:
    return rect.width if sector.horizontal else rect.height


def retract_edge(rect: Rect, sector: Sector, amount: float) -> Rect:
    """Pull the edge facing `sector` back toward the rect's interior."""
    if sector is Sector.RIGHT:
        return Rect(rect.min_x, rect.min_y, rect.max_x - amount, rect.max_y)
    if sector is Sector.TOP:
        return Rect(rect.min_x, rect.min_y, rect.max_x, rect.max_y - amount)
    if sector is Sector.LEFT:
        return Rect(rect.min_x + amount, rect.min_y, rect.max_x, rect.max_y)
    return Rect(rect.min_x, rect.min_y + amount, rect.max_x, rect.max_y)


def retract_clear_of(rect: Rect, sector: Sector, obstacle: Rect) -> Rect:
    """Pull the edge facing `sector` back to the obstacle's near edge, wherever the obstacle sits."""
    if sector is Sector.RIGHT:
        return Rect(rect.min_x, rect.min_y, min(rect.max_x, obstacle.min_x), rect.max_y)
    if sector is Sector.TOP:
        return Rect(rect.min_x, rect.min_y, rect.max_x, min(rect.max_y, obstacle.min_y))
    if sector is Sector.LEFT:
        return Rect(max(rect.min_x, obstacle.max_x), rect.min_y, rect.max_x, rect.max_y)
    return Rect(rect.min_x, max(rect.min_y, obstacle.max_y), rect.max_x, rect.max_y)


def push_away(rect: Rect, sector: Sector, amount: float) -> Rect:
    """Shrink a rect lying in `sector` of its aggressor by moving its facing edge away."""
    return retract_edge(rect, sector.opposite(), amount)
