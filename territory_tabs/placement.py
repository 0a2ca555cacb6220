"""Where a new territory would land when spawned at the pointer."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from territory_tabs.logging_utils import LAYOUT_LOGGER_NAME
from territory_tabs.rect_kit import Rect, screen_point_to_world
from territory_tabs.sectors import conflict_sector, extent_along, push_away

if TYPE_CHECKING:
    from territory_tabs.registry import TerritoryRegistry
    from territory_tabs.settings import TerritorySettings

_LOGGER = logging.getLogger(LAYOUT_LOGGER_NAME)


@dataclass(frozen=True)
class PointerContext:
    """Pointer position in world coordinates, supplied by the gesture layer per call."""

    container_id: int
    world_x: float
    world_y: float

    @classmethod
    def from_screen(cls, container_id: int, x: float, y: float, width: float, height: float) -> "PointerContext":
        world_x, world_y = screen_point_to_world(x, y, width, height)
        return cls(container_id, world_x, world_y)


def plan_spawn_rect(
    registry: "TerritoryRegistry",
    pointer: PointerContext,
    settings: "TerritorySettings",
) -> Optional[Rect]:
    """Return the world rect a territory spawned at ``pointer`` would take, or None.

    The candidate starts at the default size hanging down and to the right of
    the pointer, is clipped to the container, and then gives up the strip each
    overlapping territory occupies on the side facing that territory. It is
    only usable if a minimum-size territory still fits at the same corner.
    """
    container = registry.container(pointer.container_id)
    if container is None:
        return None

    anchor_x = pointer.world_x - settings.inner_margin[0]
    anchor_y = pointer.world_y + settings.inner_margin[1]
    min_w, min_h = settings.min_size
    default_w, default_h = settings.default_size
    minimum = Rect.from_corners(anchor_x, anchor_y, anchor_x + min_w, anchor_y - min_h)
    candidate = Rect.from_corners(anchor_x, anchor_y, anchor_x + default_w, anchor_y - default_h)
    candidate = candidate.intersect(container.world_bounds)

    for territory in registry.territories_in(pointer.container_id):
        occupied = territory.expanse.world
        conflict = candidate.intersect(occupied)
        if conflict.is_empty():
            continue
        sector = conflict_sector(occupied.center, (anchor_x, anchor_y))
        candidate = push_away(candidate, sector, extent_along(conflict, sector))

    if not (candidate.contains_point(minimum.min_x, minimum.min_y) and candidate.contains_point(minimum.max_x, minimum.max_y)):
        return None
    if any(candidate.overlaps(territory.expanse.world) for territory in registry.territories_in(pointer.container_id)):
        _LOGGER.debug("Spawn candidate %s still overlaps an existing territory", candidate)
        return None
    return candidate
