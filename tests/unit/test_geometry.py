"""Unit tests for the spatial overlay model."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from heirloom.config import OverlaySettings, TaggingConfig, set_config
from heirloom.core.exceptions import ValidationError
from heirloom.core.models import TagCategory, TagState
from heirloom.overlay import (
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
from heirloom.tagging.models import AnnotationTag, NormalizedBox


@pytest.fixture
def container():
    return ContainerSize(width=800, height=600)


def _overlay(box_id, x, y, w, h):
    return OverlayBox(
        id=box_id,
        box=NormalizedBox(x=x, y=y, width=w, height=h),
        category=TagCategory.PEOPLE,
        label=box_id,
        state=TagState.PENDING,
    )


@pytest.mark.parametrize(
    "zoom,expected",
    [
        (1.0, ScreenRect(x=80, y=120, width=200, height=150)),
        (2.0, ScreenRect(x=160, y=240, width=400, height=300)),
        (1.5, ScreenRect(x=120, y=180, width=300, height=225)),
    ],
    ids=["unzoomed", "double", "one_and_half"],
)
def test_to_screen_rect(container, zoom, expected):
    box = NormalizedBox(x=0.1, y=0.2, width=0.25, height=0.25)
    rect = to_screen_rect(box, container, zoom)
    assert rect.x == pytest.approx(expected.x)
    assert rect.y == pytest.approx(expected.y)
    assert rect.width == pytest.approx(expected.width)
    assert rect.height == pytest.approx(expected.height)


def test_zoom_preserves_relative_layout(container):
    a = NormalizedBox(x=0.1, y=0.1, width=0.1, height=0.1)
    b = NormalizedBox(x=0.5, y=0.3, width=0.2, height=0.2)

    at_1 = (to_screen_rect(a, container), to_screen_rect(b, container))
    at_3 = (to_screen_rect(a, container, 3.0), to_screen_rect(b, container, 3.0))

    assert at_3[1].x - at_3[0].x == pytest.approx(3 * (at_1[1].x - at_1[0].x))
    assert at_3[1].width / at_3[0].width == pytest.approx(at_1[1].width / at_1[0].width)


def test_zoom_below_one_rejected(container):
    box = NormalizedBox(x=0, y=0, width=1, height=1)
    with pytest.raises(ValidationError, match="Zoom"):
        to_screen_rect(box, container, 0.5)
    with pytest.raises(ValidationError):
        hit_test(Point(1, 1), [], container, zoom=0.9)


def test_normalized_box_bounds():
    with pytest.raises(PydanticValidationError):
        NormalizedBox(x=1.2, y=0, width=0.1, height=0.1)
    with pytest.raises(PydanticValidationError, match="past the media frame"):
        NormalizedBox(x=0.8, y=0, width=0.5, height=0.1)


def test_negative_container_rejected():
    with pytest.raises(ValidationError):
        ContainerSize(width=-1, height=10)


def test_hit_test_miss(container):
    boxes = [_overlay("a", 0.0, 0.0, 0.1, 0.1)]
    assert hit_test(Point(700, 500), boxes, container) is None
    assert hit_test(Point(10, 10), [], container) is None


def test_hit_test_last_drawn_wins(container):
    boxes = [
        _overlay("bottom", 0.0, 0.0, 0.5, 0.5),
        _overlay("top", 0.25, 0.25, 0.5, 0.5),
    ]
    # Overlap region
    assert hit_test(Point(300, 200), boxes, container) == "top"
    # Only the bottom box
    assert hit_test(Point(50, 50), boxes, container) == "bottom"


def test_hit_test_edges_inclusive(container):
    boxes = [_overlay("a", 0.0, 0.0, 0.5, 0.5)]
    assert hit_test(Point(400, 300), boxes, container) == "a"
    assert hit_test(Point(400.01, 300), boxes, container) is None


def test_hit_test_respects_zoom(container):
    boxes = [_overlay("a", 0.5, 0.5, 0.1, 0.1)]
    assert hit_test(Point(420, 320), boxes, container) == "a"
    assert hit_test(Point(420, 320), boxes, container, zoom=2.0) is None
    assert hit_test(Point(840, 640), boxes, container, zoom=2.0) == "a"


def test_hit_test_deterministic(container):
    boxes = [_overlay(str(i), 0.1 * i, 0.1 * i, 0.3, 0.3) for i in range(5)]
    results = {hit_test(Point(200, 150), boxes, container) for _ in range(20)}
    assert len(results) == 1


@pytest.mark.parametrize(
    "requested,expected",
    [(0.5, 1.0), (1.0, 1.0), (2.5, 2.5), (10.0, 4.0)],
)
def test_clamp_zoom(requested, expected):
    assert clamp_zoom(requested, 4.0) == expected


def test_clamp_zoom_defaults_to_configured_max():
    set_config(TaggingConfig(overlay=OverlaySettings(max_zoom=2.0)))
    assert clamp_zoom(3.0) == 2.0
    assert clamp_zoom(1.5) == 1.5


def test_visible_categories_defaults():
    assert visible_categories(OverlaySettings()) == frozenset({TagCategory.PEOPLE})

    all_on = OverlaySettings(show_faces=True, show_objects=True, show_text=True)
    assert visible_categories(all_on) == frozenset(
        {TagCategory.PEOPLE, TagCategory.OBJECTS, TagCategory.TEXT}
    )


def test_overlay_boxes_filters_and_keeps_order():
    box = NormalizedBox(x=0.1, y=0.1, width=0.2, height=0.2)
    tags = [
        AnnotationTag(id="f1", category=TagCategory.PEOPLE, name="Grandma", bounding_box=box),
        AnnotationTag(id="o1", category=TagCategory.OBJECTS, name="Cake", bounding_box=box),
        AnnotationTag(id="f2", category=TagCategory.PEOPLE, name="No box"),
        AnnotationTag(id="f3", category=TagCategory.PEOPLE, name="Grandpa", bounding_box=box),
    ]

    drawn = overlay_boxes(tags, {TagCategory.PEOPLE})

    assert [b.id for b in drawn] == ["f1", "f3"]
    assert drawn[0].label == "Grandma"
    assert drawn[0].state == TagState.PENDING
