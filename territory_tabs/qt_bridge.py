"""PyQt6 adapters for a widget layer that renders territories and captures gestures.

Qt rects are screen-frame (origin top-left, +y down), so every conversion
here goes through the screen frame of ``RectKit``.
"""
from __future__ import annotations

from typing import Tuple, Union

from PyQt6.QtCore import QRect, QRectF, QSize, QSizeF

from territory_tabs.move_request import MoveKind, MoveRequest
from territory_tabs.rect_kit import Rect
from territory_tabs.registry import Territory


def rect_to_qrectf(rect: Rect) -> QRectF:
    return QRectF(rect.min_x, rect.min_y, rect.width, rect.height)


def qrectf_to_rect(qrect: Union[QRect, QRectF]) -> Rect:
    if isinstance(qrect, QRect):
        qrect = QRectF(qrect)
    return Rect.from_corners(qrect.left(), qrect.top(), qrect.left() + qrect.width(), qrect.top() + qrect.height())


def territory_qrectf(territory: Territory) -> QRectF:
    return rect_to_qrectf(territory.expanse.screen)


def container_size(size: Union[QSize, QSizeF]) -> Tuple[float, float]:
    return float(size.width()), float(size.height())


def request_from_qrectf(
    region_id: int,
    qrect: Union[QRect, QRectF],
    kind: MoveKind = MoveKind.UNKNOWN,
) -> MoveRequest:
    return MoveRequest.from_screen(region_id, qrectf_to_rect(qrect), kind)
