"""Unit test fixtures.

Scope Guidelines:
- Function scope for anything mutable (trees, sessions, operators)
- Module scope only for immutable sample data
"""

from datetime import datetime

import pytest

from heirloom.core.models import MediaItem, MediaType, TagCategory
from heirloom.tagging.models import AnnotationTag, NormalizedBox
from heirloom.tagging.tag_tree import TagTreeStore


@pytest.fixture
def tree(isolated_config):
    """Empty tag tree."""
    return TagTreeStore(isolated_config)


@pytest.fixture
def family_tree(tree):
    """Small taxonomy.

    Family
      Cousins
        Smith cousins
      Grandparents
    Places
      Lake house
    """
    family = tree.add_tag(None, "Family")
    cousins = tree.add_tag(family.id, "Cousins")
    tree.add_tag(cousins.id, "Smith cousins")
    tree.add_tag(family.id, "Grandparents")
    places = tree.add_tag(None, "Places")
    tree.add_tag(places.id, "Lake house")
    return tree


@pytest.fixture
def media_items():
    """Three memories with different dates, titles and types."""
    return [
        MediaItem(
            id="m1",
            title="Beach day",
            media_type=MediaType.PHOTO,
            tags=["Family"],
            date=datetime(1998, 7, 4),
        ),
        MediaItem(
            id="m2",
            title="Grandma's recipe",
            media_type=MediaType.STORY,
            tags=[],
            date=datetime(1985, 12, 24),
        ),
        MediaItem(
            id="m3",
            title="Wedding toast",
            media_type=MediaType.VIDEO,
            tags=["Wedding", "Family"],
            date=None,
        ),
    ]


@pytest.fixture
def face_suggestions():
    """Two detected faces, one with a box."""
    return [
        AnnotationTag(
            id="u1",
            category=TagCategory.PEOPLE,
            name="Unknown person",
            confidence=0.82,
            bounding_box=NormalizedBox(x=0.1, y=0.1, width=0.2, height=0.3),
        ),
        AnnotationTag(
            id="u2",
            category=TagCategory.PEOPLE,
            name="Unknown person",
            confidence=0.95,
            bounding_box=NormalizedBox(x=0.6, y=0.2, width=0.2, height=0.3),
        ),
    ]
