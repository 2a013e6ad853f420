"""Bounding-box geometry: normalized boxes to screen rects, and hit testing.

Normalized boxes live in the unscaled media frame. Zoom is a display-only,
uniform scale supplied by the render layer on every call; nothing here keeps
state between calls.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Sequence

from heirloom.config import OverlaySettings, get_config
from heirloom.core.exceptions import ValidationError
from heirloom.core.models import TagCategory, TagState
from heirloom.tagging.models import AnnotationTag, NormalizedBox


@dataclass(frozen=True)
class ContainerSize:
    """Pixel size of the unzoomed media container."""

    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValidationError("Container size cannot be negative")


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class ScreenRect:
    """Axis-aligned rectangle in screen pixels."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains(self, point: Point) -> bool:
        """Edges are inclusive."""
        return self.x <= point.x <= self.right and self.y <= point.y <= self.bottom


@dataclass(frozen=True)
class OverlayBox:
    """One drawable box: the tag it belongs to plus render hints."""

    id: str
    box: NormalizedBox
    category: TagCategory
    label: str
    state: TagState


def _check_zoom(zoom: float) -> None:
    if zoom < 1.0:
        raise ValidationError(f"Zoom must be >= 1 (got {zoom})")


def to_screen_rect(box: NormalizedBox, container: ContainerSize, zoom: float = 1.0) -> ScreenRect:
    """
    Map a normalized box to screen pixels.

    Args:
        box: Box relative to the media frame
        container: Unzoomed container size in pixels
        zoom: Uniform scale >= 1, applied identically to every box

    Raises:
        ValidationError: If zoom < 1
    """
    _check_zoom(zoom)
    return ScreenRect(
        x=box.x * container.width * zoom,
        y=box.y * container.height * zoom,
        width=box.width * container.width * zoom,
        height=box.height * container.height * zoom,
    )


def hit_test(
    point: Point,
    boxes: Sequence[OverlayBox],
    container: ContainerSize,
    zoom: float = 1.0,
) -> Optional[str]:
    """
    Find the topmost box under a pointer.

    Boxes are drawn in sequence order, so the last match wins.

    Returns:
        ID of the hit box, or None
    """
    _check_zoom(zoom)
    for overlay in reversed(boxes):
        if to_screen_rect(overlay.box, container, zoom).contains(point):
            return overlay.id
    return None


def clamp_zoom(zoom: float, max_zoom: Optional[float] = None) -> float:
    """Keep a requested zoom level within [1, max_zoom], defaulting to overlay.max_zoom."""
    if max_zoom is None:
        max_zoom = get_config().overlay.max_zoom
    return min(max(zoom, 1.0), max_zoom)


def visible_categories(settings: OverlaySettings) -> FrozenSet[TagCategory]:
    """Categories whose overlay layer is switched on."""
    layers = {
        TagCategory.PEOPLE: settings.show_faces,
        TagCategory.OBJECTS: settings.show_objects,
        TagCategory.TEXT: settings.show_text,
    }
    return frozenset(category for category, shown in layers.items() if shown)


def overlay_boxes(
    tags: Iterable[AnnotationTag], visible: Iterable[TagCategory]
) -> List[OverlayBox]:
    """
    Build the draw list for a set of annotation tags.

    Only tags with a bounding box in a visible layer are drawn; input order is
    kept, which is also the stacking order used by hit_test.
    """
    shown = set(visible)
    return [
        OverlayBox(
            id=tag.id,
            box=tag.bounding_box,
            category=tag.category,
            label=tag.name,
            state=tag.state,
        )
        for tag in tags
        if tag.bounding_box is not None and tag.category in shown
    ]
