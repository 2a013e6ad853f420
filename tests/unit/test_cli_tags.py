"""Tests for the tags CLI command."""

import asyncio

import pytest
from click.testing import CliRunner

from heirloom.core.models import MediaItem
from heirloom.cli.tags_command import tags_cli
from heirloom.store.sqlite_store import SqliteItemStore
from heirloom.tagging.models import TagTreeSnapshot
from heirloom.tagging.tag_tree import TagTreeStore


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def snapshot(tmp_path):
    return tmp_path / "tags.json"


def invoke(runner, snapshot, *args, **kwargs):
    return runner.invoke(tags_cli, ["--snapshot", str(snapshot), *args], **kwargs)


def load(snapshot) -> TagTreeStore:
    return TagTreeStore.from_snapshot(
        TagTreeSnapshot.model_validate_json(snapshot.read_text(encoding="utf-8"))
    )


@pytest.fixture
def populated(runner, snapshot):
    invoke(runner, snapshot, "add", "Family")
    invoke(runner, snapshot, "add", "Cousins", "--parent", "Family")
    invoke(runner, snapshot, "add", "Places")
    return snapshot


def test_list_empty(runner, snapshot):
    result = invoke(runner, snapshot, "list")
    assert result.exit_code == 0
    assert "No tags found" in result.output


def test_add_and_list(runner, populated):
    result = invoke(runner, populated, "list")

    assert result.exit_code == 0
    assert "Family" in result.output
    assert "Cousins" in result.output
    assert "Total: 3 tags" in result.output

    tree = load(populated)
    assert tree.find_by_path("Family/Cousins") is not None


def test_add_with_category_color(runner, snapshot):
    result = invoke(runner, snapshot, "add", "People", "--category", "people")
    assert result.exit_code == 0

    invoke(runner, snapshot, "add", "Cousins", "--parent", "People")
    tree = load(snapshot)
    assert tree.find_by_path("People").color == "#3b82f6"
    assert tree.find_by_path("People/Cousins").color == "#3b82f6"


def test_add_duplicate_fails(runner, populated):
    result = invoke(runner, populated, "add", "Family")
    assert result.exit_code == 1
    assert "E001" in result.output


def test_add_unknown_parent(runner, snapshot):
    result = invoke(runner, snapshot, "add", "Cousins", "--parent", "Nowhere")
    assert result.exit_code == 1
    assert "Tag not found" in result.output
    assert not snapshot.exists()


def test_rename(runner, populated):
    result = invoke(runner, populated, "rename", "Family/Cousins", "First cousins")

    assert result.exit_code == 0
    assert load(populated).find_by_path("Family/First cousins") is not None


def test_move(runner, populated):
    result = invoke(runner, populated, "move", "Places", "--to", "Family")

    assert result.exit_code == 0
    assert load(populated).find_by_path("Family/Places") is not None

    result = invoke(runner, populated, "move", "Family/Places")
    assert result.exit_code == 0
    assert load(populated).find_by_path("Places") is not None


def test_move_cycle_refused(runner, populated):
    result = invoke(runner, populated, "move", "Family", "--to", "Family/Cousins")

    assert result.exit_code == 1
    assert "E002" in result.output
    assert load(populated).find_by_path("Family/Cousins") is not None


def test_delete_with_confirmation(runner, populated):
    result = invoke(runner, populated, "delete", "Family", input="y\n")

    assert result.exit_code == 0
    assert "also delete 1 descendants" in result.output
    assert "Removed 2 tags" in result.output
    assert [n.name for n in load(populated).roots()] == ["Places"]


def test_delete_cancelled(runner, populated):
    result = invoke(runner, populated, "delete", "Family", input="n\n")

    assert result.exit_code == 0
    assert "Cancelled" in result.output
    assert len(load(populated)) == 3


def test_delete_yes_flag(runner, populated):
    result = invoke(runner, populated, "delete", "Places", "--yes")
    assert result.exit_code == 0
    assert len(load(populated)) == 2


def test_search(runner, populated):
    result = invoke(runner, populated, "search", "cous")
    assert result.exit_code == 0
    assert "Cousins" in result.output
    assert "Places" not in result.output

    result = invoke(runner, populated, "search", "zzz")
    assert "No tags found" in result.output


def test_apply_updates_store(runner, populated, isolated_config):
    async def seed():
        store = SqliteItemStore(isolated_config)
        await store.initialize()
        await store.save_item(MediaItem(id="m1", tags=["Holiday"]))
        await store.save_item(MediaItem(id="m2"))
        await store.close()

    async def read_tags():
        store = SqliteItemStore(isolated_config)
        await store.initialize()
        items = {item.id: item.tags for item in await store.list_items()}
        await store.close()
        return items

    asyncio.run(seed())

    result = invoke(runner, populated, "apply", "Holiday", "Family", "--items", "m1,m2,ghost")

    assert result.exit_code == 0
    assert "Item not found: ghost" in result.output
    assert "Updated 2 items" in result.output
    assert asyncio.run(read_tags()) == {
        "m1": ["Holiday", "Family"],
        "m2": ["Holiday", "Family"],
    }
    assert load(populated).find_by_path("Family").usage_count == 2


def test_apply_dry_run(runner, populated, isolated_config):
    async def seed():
        store = SqliteItemStore(isolated_config)
        await store.initialize()
        await store.save_item(MediaItem(id="m1"))
        await store.close()

    asyncio.run(seed())

    result = invoke(runner, populated, "apply", "Holiday", "--items", "m1", "--dry-run")

    assert result.exit_code == 0
    assert "1 items would change" in result.output
