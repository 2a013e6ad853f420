"""Spatial overlay model for annotation bounding boxes."""

from heirloom.overlay.geometry import (
    ContainerSize,
    OverlayBox,
    Point,
    ScreenRect,
    clamp_zoom,
    hit_test,
    overlay_boxes,
    to_screen_rect,
    visible_categories,
)

__all__ = [
    "ContainerSize",
    "OverlayBox",
    "Point",
    "ScreenRect",
    "clamp_zoom",
    "hit_test",
    "overlay_boxes",
    "to_screen_rect",
    "visible_categories",
]
