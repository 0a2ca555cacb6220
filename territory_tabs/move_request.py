"""Move requests handed from gesture capture to the pipeline, and their results."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple

from territory_tabs.rect_kit import Frame, Rect

if TYPE_CHECKING:
    from territory_tabs.registry import Territory


class MoveKind(Enum):
    UNKNOWN = "unknown"
    DRAG = "drag"
    RESIZE = "resize"


class ResizeHandle(Enum):
    """Grab handles on a territory; deltas are applied in the screen frame (+y down)."""

    N = "n"
    NE = "ne"
    E = "e"
    SE = "se"
    S = "s"
    SW = "sw"
    W = "w"
    NW = "nw"

    def cardinals(self) -> Tuple["ResizeHandle", ...]:
        return tuple(ResizeHandle(letter) for letter in self.value)

    def apply_screen_delta(self, rect: Rect, dx: float, dy: float) -> Rect:
        min_x, min_y, max_x, max_y = rect.as_tuple()
        for cardinal in self.cardinals():
            if cardinal is ResizeHandle.N:
                min_y += dy
            elif cardinal is ResizeHandle.S:
                max_y += dy
            elif cardinal is ResizeHandle.E:
                max_x += dx
            else:
                min_x += dx
        return Rect(min_x, min_y, max_x, max_y)


@dataclass(frozen=True)
class MoveRequest:
    region_id: int
    proposed: Rect
    frame: Frame = Frame.WORLD
    kind: MoveKind = MoveKind.UNKNOWN
    handle: Optional[ResizeHandle] = None

    @classmethod
    def from_world(cls, region_id: int, rect: Rect, kind: MoveKind = MoveKind.UNKNOWN) -> "MoveRequest":
        return cls(region_id, rect, Frame.WORLD, kind)

    @classmethod
    def from_screen(cls, region_id: int, rect: Rect, kind: MoveKind = MoveKind.UNKNOWN) -> "MoveRequest":
        return cls(region_id, rect, Frame.SCREEN, kind)

    @classmethod
    def drag_by(cls, territory: "Territory", dx: float, dy: float) -> "MoveRequest":
        proposed = territory.expanse.screen.translate(dx, dy)
        return cls(territory.region_id, proposed, Frame.SCREEN, MoveKind.DRAG)

    @classmethod
    def resize_by(cls, territory: "Territory", handle: ResizeHandle, dx: float, dy: float) -> "MoveRequest":
        proposed = handle.apply_screen_delta(territory.expanse.screen, dx, dy)
        return cls(territory.region_id, proposed, Frame.SCREEN, MoveKind.RESIZE, handle)


class MoveOutcome(Enum):
    COMMITTED = "committed"
    DISCARDED_NOOP = "discarded_noop"
    DISCARDED_LOCKED = "discarded_locked"
    DISCARDED_CONFLICT = "discarded_conflict"
    DISCARDED_DEGENERATE = "discarded_degenerate"
    DISCARDED_INVALID = "discarded_invalid"

    @property
    def committed(self) -> bool:
        return self is MoveOutcome.COMMITTED


@dataclass(frozen=True)
class MoveResult:
    region_id: int
    outcome: MoveOutcome
    kind: MoveKind = MoveKind.UNKNOWN
    committed: Optional[Rect] = None
    pushed: Tuple[int, ...] = ()
    reason: str = ""


def classify_move(current: Rect, proposed: Rect) -> MoveKind:
    """DRAG when the size is unchanged (within tolerance), RESIZE otherwise."""
    return MoveKind.DRAG if current.same_size(proposed) else MoveKind.RESIZE
