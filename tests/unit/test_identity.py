"""Tests for the in-memory identity registry."""

import pytest

from heirloom.core.exceptions import ValidationError
from heirloom.tagging.identity import Identity, InMemoryIdentityRegistry


@pytest.fixture
def registry():
    return InMemoryIdentityRegistry(
        [Identity(id="u1", name="Grandma Rose", relationship="grandmother")]
    )


def test_get_and_resolve(registry):
    assert registry.get("u1").relationship == "grandmother"
    assert registry.resolve_name("u1") == "Grandma Rose"
    assert registry.get("nobody") is None
    assert registry.resolve_name("nobody") is None


def test_create(registry):
    identity = registry.create("  Uncle Bob ", relationship="uncle")

    assert identity.name == "Uncle Bob"
    assert registry.resolve_name(identity.id) == "Uncle Bob"
    assert [i.id for i in registry.list()] == ["u1", identity.id]


@pytest.mark.parametrize("name", ["", "   "])
def test_create_rejects_empty_name(registry, name):
    with pytest.raises(ValidationError, match="cannot be empty"):
        registry.create(name)
    assert len(registry.list()) == 1
