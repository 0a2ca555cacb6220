"""Non-overlapping territory layout inside a bounded window."""
from __future__ import annotations

from territory_tabs.move_request import MoveKind, MoveOutcome, MoveRequest, MoveResult, ResizeHandle, classify_move
from territory_tabs.pipeline import MoveCycle, MovePipeline
from territory_tabs.placement import PointerContext, plan_spawn_rect
from territory_tabs.rect_kit import Frame, GeometryError, Rect, RectKit
from territory_tabs.registry import Container, Territory, TerritoryRegistry
from territory_tabs.settings import TerritorySettings, load_territory_settings

__version__ = "0.1.0"

__all__ = [
    "Container",
    "Frame",
    "GeometryError",
    "MoveCycle",
    "MoveKind",
    "MoveOutcome",
    "MovePipeline",
    "MoveRequest",
    "MoveResult",
    "PointerContext",
    "Rect",
    "RectKit",
    "ResizeHandle",
    "Territory",
    "TerritoryRegistry",
    "TerritorySettings",
    "classify_move",
    "load_territory_settings",
    "plan_spawn_rect",
]
