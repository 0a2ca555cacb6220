"""Arena of containers and the territories they hold, keyed by stable ids."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

from territory_tabs.logging_utils import LAYOUT_LOGGER_NAME
from territory_tabs.rect_kit import GeometryError, Rect, RectKit, validate_dimensions

if TYPE_CHECKING:
    from territory_tabs.placement import PointerContext
    from territory_tabs.settings import TerritorySettings

_LOGGER = logging.getLogger(LAYOUT_LOGGER_NAME)


@dataclass
class Territory:
    region_id: int
    container_id: int
    expanse: RectKit
    locked: bool = False


@dataclass
class Container:
    container_id: int
    width: float
    height: float
    children: List[int] = field(default_factory=list)

    @property
    def world_bounds(self) -> Rect:
        return Rect.from_center_size(0.0, 0.0, self.width, self.height)


class TerritoryRegistry:
    """Owns every container and territory; the move pipeline mutates through it."""

    def __init__(self) -> None:
        self._containers: Dict[int, Container] = {}
        self._territories: Dict[int, Territory] = {}
        self._next_container_id = 1
        self._next_region_id = 1

    # Containers -----------------------------------------------------------

    def add_container(self, width: float, height: float) -> int:
        validate_dimensions(width, height)
        container_id = self._next_container_id
        self._next_container_id += 1
        self._containers[container_id] = Container(container_id, float(width), float(height))
        _LOGGER.debug("Container %d added (%.1fx%.1f)", container_id, width, height)
        return container_id

    def container(self, container_id: int) -> Optional[Container]:
        return self._containers.get(container_id)

    def containers(self) -> List[Container]:
        return list(self._containers.values())

    def resize_container(self, container_id: int, width: float, height: float) -> None:
        container = self._require_container(container_id)
        validate_dimensions(width, height)
        container.width = float(width)
        container.height = float(height)
        for region_id in container.children:
            self._territories[region_id].expanse.refresh(container.width, container.height)
        _LOGGER.debug("Container %d resized to %.1fx%.1f", container_id, width, height)

    def remove_container(self, container_id: int) -> None:
        self.despawn_all(container_id)
        del self._containers[container_id]

    # Territories ----------------------------------------------------------

    def spawn_territory(self, container_id: int, world_rect: Rect, locked: bool = False) -> int:
        container = self._require_container(container_id)
        if not world_rect.is_finite() or world_rect.is_empty():
            raise GeometryError(f"cannot spawn a territory from {world_rect!r}")
        region_id = self._next_region_id
        self._next_region_id += 1
        expanse = RectKit.from_world(world_rect, container.width, container.height)
        self._territories[region_id] = Territory(region_id, container_id, expanse, locked)
        container.children.append(region_id)
        _LOGGER.debug("Territory %d spawned in container %d at %s", region_id, container_id, world_rect)
        return region_id

    def spawn_at(self, pointer: "PointerContext", settings: "TerritorySettings") -> Optional[int]:
        from territory_tabs.placement import plan_spawn_rect

        rect = plan_spawn_rect(self, pointer, settings)
        if rect is None:
            _LOGGER.debug(
                "No room to spawn in container %d at (%.1f, %.1f)",
                pointer.container_id,
                pointer.world_x,
                pointer.world_y,
            )
            return None
        return self.spawn_territory(pointer.container_id, rect)

    def despawn_territory(self, region_id: int) -> None:
        territory = self._territories.pop(region_id, None)
        if territory is None:
            return
        container = self._containers.get(territory.container_id)
        if container is not None and region_id in container.children:
            container.children.remove(region_id)

    def despawn_all(self, container_id: int) -> None:
        container = self._require_container(container_id)
        for region_id in list(container.children):
            self._territories.pop(region_id, None)
        container.children.clear()

    def territory(self, region_id: int) -> Optional[Territory]:
        return self._territories.get(region_id)

    def territories_in(self, container_id: int) -> List[Territory]:
        container = self._containers.get(container_id)
        if container is None:
            return []
        return [self._territories[region_id] for region_id in container.children]

    def set_locked(self, region_id: int, locked: bool) -> None:
        territory = self._territories.get(region_id)
        if territory is None:
            raise KeyError(region_id)
        territory.locked = bool(locked)

    def world_rect(self, region_id: int) -> Optional[Rect]:
        territory = self._territories.get(region_id)
        return territory.expanse.world if territory is not None else None

    def _require_container(self, container_id: int) -> Container:
        container = self._containers.get(container_id)
        if container is None:
            raise KeyError(container_id)
        return container
