"""Rectangle value types and the four-frame coordinate kit (no Qt types)."""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

Point = Tuple[float, float]

APPROX_TOLERANCE = 1e-6


class GeometryError(ValueError):
    """Raised when a conversion is asked to work with unusable geometry."""


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle stored as its min and max corners."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def from_corners(cls, x0: float, y0: float, x1: float, y1: float) -> "Rect":
        return cls(min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1))

    @classmethod
    def from_center_size(cls, center_x: float, center_y: float, width: float, height: float) -> "Rect":
        half_w = width / 2.0
        half_h = height / 2.0
        return cls(center_x - half_w, center_y - half_h, center_x + half_w, center_y + half_h)

    @classmethod
    def zero(cls) -> "Rect":
        return cls(0.0, 0.0, 0.0, 0.0)

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Point:
        return (self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0

    @property
    def size(self) -> Point:
        return self.width, self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return self.min_x, self.min_y, self.max_x, self.max_y

    def is_empty(self) -> bool:
        """True when the rect has no area; rects that only share an edge do not overlap."""
        return self.min_x >= self.max_x or self.min_y >= self.max_y

    def is_finite(self) -> bool:
        return all(math.isfinite(value) for value in self.as_tuple())

    def intersect(self, other: "Rect") -> "Rect":
        min_x = max(self.min_x, other.min_x)
        min_y = max(self.min_y, other.min_y)
        max_x = min(self.max_x, other.max_x)
        max_y = min(self.max_y, other.max_y)
        # Disjoint rects collapse to zero extent instead of going negative.
        return Rect(min(min_x, max_x), min(min_y, max_y), max_x, max_y)

    def overlaps(self, other: "Rect") -> bool:
        return not self.intersect(other).is_empty()

    def contains_point(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def contains_rect(self, other: "Rect") -> bool:
        return self.contains_point(other.min_x, other.min_y) and self.contains_point(other.max_x, other.max_y)

    def translate(self, dx: float, dy: float) -> "Rect":
        return Rect(self.min_x + dx, self.min_y + dy, self.max_x + dx, self.max_y + dy)

    def move_corners(self, delta_min: Point, delta_max: Point) -> "Rect":
        """Shift the min and max corners independently.

        The result is not normalised: an edge pushed past its opposite edge
        yields an empty rect rather than a silently flipped one.
        """
        return Rect(
            self.min_x + delta_min[0],
            self.min_y + delta_min[1],
            self.max_x + delta_max[0],
            self.max_y + delta_max[1],
        )

    def approx_equals(self, other: "Rect", tolerance: float = APPROX_TOLERANCE) -> bool:
        return all(
            math.isclose(a, b, rel_tol=0.0, abs_tol=tolerance)
            for a, b in zip(self.as_tuple(), other.as_tuple())
        )

    def same_size(self, other: "Rect", tolerance: float = APPROX_TOLERANCE) -> bool:
        return math.isclose(self.width, other.width, rel_tol=0.0, abs_tol=tolerance) and math.isclose(
            self.height, other.height, rel_tol=0.0, abs_tol=tolerance
        )


def validate_dimensions(width: float, height: float) -> None:
    try:
        w = float(width)
        h = float(height)
    except (TypeError, ValueError) as exc:
        raise GeometryError(f"container size must be numeric, got {width!r}x{height!r}") from exc
    if not (math.isfinite(w) and math.isfinite(h)) or w <= 0.0 or h <= 0.0:
        raise GeometryError(f"container size must be positive and finite, got {width!r}x{height!r}")


def dimensions_valid(width: float, height: float) -> bool:
    try:
        validate_dimensions(width, height)
    except GeometryError:
        return False
    return True


def window_world_rect(width: float, height: float) -> Rect:
    validate_dimensions(width, height)
    return Rect.from_center_size(0.0, 0.0, width, height)


def window_screen_rect(width: float, height: float) -> Rect:
    validate_dimensions(width, height)
    return Rect(0.0, 0.0, float(width), float(height))


def world_to_screen(rect: Rect, width: float, height: float) -> Rect:
    validate_dimensions(width, height)
    center_x, center_y = rect.center
    return Rect.from_center_size(width / 2.0 + center_x, height / 2.0 - center_y, rect.width, rect.height)


def screen_to_world(rect: Rect, width: float, height: float) -> Rect:
    validate_dimensions(width, height)
    center_x, center_y = rect.center
    return Rect.from_center_size(center_x - width / 2.0, height / 2.0 - center_y, rect.width, rect.height)


def screen_to_screen_norm(rect: Rect, width: float, height: float) -> Rect:
    validate_dimensions(width, height)
    return Rect(rect.min_x / width, rect.min_y / height, rect.max_x / width, rect.max_y / height)


def screen_norm_to_screen(rect: Rect, width: float, height: float) -> Rect:
    validate_dimensions(width, height)
    return Rect(rect.min_x * width, rect.min_y * height, rect.max_x * width, rect.max_y * height)


def world_to_world_norm(rect: Rect, width: float, height: float) -> Rect:
    validate_dimensions(width, height)
    return Rect(rect.min_x / width, rect.min_y / height, rect.max_x / width, rect.max_y / height)


def world_norm_to_world(rect: Rect, width: float, height: float) -> Rect:
    validate_dimensions(width, height)
    return Rect(rect.min_x * width, rect.min_y * height, rect.max_x * width, rect.max_y * height)


def screen_point_to_world(x: float, y: float, width: float, height: float) -> Point:
    validate_dimensions(width, height)
    return x - width / 2.0, height / 2.0 - y


def world_point_to_screen(x: float, y: float, width: float, height: float) -> Point:
    validate_dimensions(width, height)
    return width / 2.0 + x, height / 2.0 - y


class Frame(Enum):
    SCREEN = "screen"
    WORLD = "world"
    SCREEN_NORM = "screen_norm"
    WORLD_NORM = "world_norm"


class RectKit:
    """The same area expressed in screen, world and both normalised frames.

    World is the frame every other one is derived from; setting any frame
    converts it to world first and then refreshes the rest, so the four rects
    stay consistent for the container size passed in.
    """

    __slots__ = ("screen", "world", "screen_norm", "world_norm")

    def __init__(self, screen: Rect, world: Rect, screen_norm: Rect, world_norm: Rect) -> None:
        self.screen = screen
        self.world = world
        self.screen_norm = screen_norm
        self.world_norm = world_norm

    def __repr__(self) -> str:
        return f"RectKit(world={self.world!r}, screen={self.screen!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RectKit):
            return NotImplemented
        return (
            self.screen == other.screen
            and self.world == other.world
            and self.screen_norm == other.screen_norm
            and self.world_norm == other.world_norm
        )

    @classmethod
    def empty(cls) -> "RectKit":
        zero = Rect.zero()
        return cls(zero, zero, zero, zero)

    @classmethod
    def from_frame(cls, frame: Frame, rect: Rect, width: float, height: float) -> "RectKit":
        kit = cls.empty()
        kit.set(frame, rect, width, height)
        return kit

    @classmethod
    def from_screen(cls, rect: Rect, width: float, height: float) -> "RectKit":
        return cls.from_frame(Frame.SCREEN, rect, width, height)

    @classmethod
    def from_world(cls, rect: Rect, width: float, height: float) -> "RectKit":
        return cls.from_frame(Frame.WORLD, rect, width, height)

    @classmethod
    def from_screen_norm(cls, rect: Rect, width: float, height: float) -> "RectKit":
        return cls.from_frame(Frame.SCREEN_NORM, rect, width, height)

    @classmethod
    def from_world_norm(cls, rect: Rect, width: float, height: float) -> "RectKit":
        return cls.from_frame(Frame.WORLD_NORM, rect, width, height)

    def copy(self) -> "RectKit":
        return RectKit(self.screen, self.world, self.screen_norm, self.world_norm)

    def get(self, frame: Frame) -> Rect:
        return getattr(self, frame.value)

    def set(self, frame: Frame, rect: Rect, width: float, height: float) -> None:
        if frame is Frame.WORLD:
            world = rect
        elif frame is Frame.SCREEN:
            world = screen_to_world(rect, width, height)
        elif frame is Frame.SCREEN_NORM:
            world = screen_to_world(screen_norm_to_screen(rect, width, height), width, height)
        else:
            world = world_norm_to_world(rect, width, height)
        screen = world_to_screen(world, width, height)
        self.world = world
        self.screen = screen
        self.world_norm = world_to_world_norm(world, width, height)
        self.screen_norm = screen_to_screen_norm(screen, width, height)
        # Keep the caller's rect verbatim in its own frame.
        setattr(self, frame.value, rect)

    def set_screen(self, rect: Rect, width: float, height: float) -> None:
        self.set(Frame.SCREEN, rect, width, height)

    def set_world(self, rect: Rect, width: float, height: float) -> None:
        self.set(Frame.WORLD, rect, width, height)

    def set_screen_norm(self, rect: Rect, width: float, height: float) -> None:
        self.set(Frame.SCREEN_NORM, rect, width, height)

    def set_world_norm(self, rect: Rect, width: float, height: float) -> None:
        self.set(Frame.WORLD_NORM, rect, width, height)

    def refresh(self, width: float, height: float) -> None:
        """Recompute the derived frames from world, e.g. after the container resized."""
        self.set(Frame.WORLD, self.world, width, height)

    def move_by(self, frame: Frame, delta_min: Point, delta_max: Point, width: float, height: float) -> None:
        self.set(frame, self.get(frame).move_corners(delta_min, delta_max), width, height)

    def move_screen_by(self, delta_min: Point, delta_max: Point, width: float, height: float) -> None:
        self.move_by(Frame.SCREEN, delta_min, delta_max, width, height)

    def move_world_by(self, delta_min: Point, delta_max: Point, width: float, height: float) -> None:
        self.move_by(Frame.WORLD, delta_min, delta_max, width, height)

    def move_screen_norm_by(self, delta_min: Point, delta_max: Point, width: float, height: float) -> None:
        self.move_by(Frame.SCREEN_NORM, delta_min, delta_max, width, height)

    def move_world_norm_by(self, delta_min: Point, delta_max: Point, width: float, height: float) -> None:
        self.move_by(Frame.WORLD_NORM, delta_min, delta_max, width, height)

    def translate_world(self, dx: float, dy: float, width: float, height: float) -> None:
        self.set_world(self.world.translate(dx, dy), width, height)

    def translate_screen(self, dx: float, dy: float, width: float, height: float) -> None:
        self.set_screen(self.screen.translate(dx, dy), width, height)

    def is_inside_window(self, frame: Frame, width: float, height: float) -> bool:
        if frame is Frame.WORLD:
            bounds = window_world_rect(width, height)
        elif frame is Frame.SCREEN:
            bounds = window_screen_rect(width, height)
        elif frame is Frame.SCREEN_NORM:
            bounds = Rect(0.0, 0.0, 1.0, 1.0)
        else:
            bounds = Rect(-0.5, -0.5, 0.5, 0.5)
        return bounds.contains_rect(self.get(frame))

    def is_inside_world_window(self, width: float, height: float) -> bool:
        return self.is_inside_window(Frame.WORLD, width, height)

    def is_inside_screen_window(self, width: float, height: float) -> bool:
        return self.is_inside_window(Frame.SCREEN, width, height)
