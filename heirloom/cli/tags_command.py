"""CLI command for tag hierarchy management."""

import asyncio
import sys
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.tree import Tree

from heirloom.config import get_config
from heirloom.core.exceptions import HeirloomError
from heirloom.core.models import TagCategory
from heirloom.tagging.models import TagNode, TagTreeSnapshot
from heirloom.tagging.tag_tree import TagTreeStore

console = Console()


def _snapshot_path(snapshot: Optional[str]) -> Path:
    if snapshot:
        return Path(snapshot).expanduser()
    return get_config().snapshot_path_expanded


def _load_tree(path: Path) -> TagTreeStore:
    """Read the tree from a JSON snapshot. A missing file is an empty tree."""
    if not path.exists():
        return TagTreeStore()
    snapshot = TagTreeSnapshot.model_validate_json(path.read_text(encoding="utf-8"))
    return TagTreeStore.from_snapshot(snapshot)


def _save_tree(tree: TagTreeStore, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(tree.to_snapshot().model_dump_json(indent=2), encoding="utf-8")


def _resolve(tree: TagTreeStore, ref: str) -> TagNode:
    node = tree.resolve(ref)
    if node is None:
        console.print(f"[red]Tag not found: {escape(ref)}[/red]")
        sys.exit(1)
    return node


def _fail(error: HeirloomError) -> None:
    console.print(f"[red]{escape(str(error))}[/red]")
    sys.exit(1)


@click.group(name="tags")
@click.option(
    "--snapshot",
    default=None,
    help="Tag tree JSON file (defaults to HEIRLOOM_SNAPSHOT_PATH)",
)
@click.pass_context
def tags_cli(ctx: click.Context, snapshot: Optional[str]):
    """Manage the family tag hierarchy."""
    ctx.ensure_object(dict)
    ctx.obj["snapshot"] = _snapshot_path(snapshot)


@tags_cli.command(name="list")
@click.pass_context
def list_tags(ctx: click.Context):
    """Show the tag tree with usage counts."""
    tree = _load_tree(ctx.obj["snapshot"])

    if not len(tree):
        console.print("[yellow]No tags found[/yellow]")
        return

    root = Tree("[bold]Tags[/bold]")
    branches = {}
    for node, _ in tree.walk():
        parent = branches.get(node.parent_id, root)
        label = f"[cyan]{escape(node.name)}[/cyan] [dim]({node.usage_count})[/dim]"
        branches[node.id] = parent.add(label)

    console.print(root)
    console.print(f"\n[green]Total: {len(tree)} tags[/green]")


@tags_cli.command(name="add")
@click.argument("name")
@click.option("--parent", default=None, help="Parent tag ID or path")
@click.option("--color", default=None, help="Display color, e.g. #3b82f6")
@click.option(
    "--category",
    type=click.Choice([c.value for c in TagCategory]),
    default=None,
    help="Annotation category; picks its configured color",
)
@click.pass_context
def add_tag(
    ctx: click.Context,
    name: str,
    parent: Optional[str],
    color: Optional[str],
    category: Optional[str],
):
    """Create a new tag."""
    path = ctx.obj["snapshot"]
    tree = _load_tree(path)
    parent_id = _resolve(tree, parent).id if parent else None

    try:
        tag = tree.add_tag(
            parent_id,
            name,
            color=color,
            category=TagCategory(category) if category else None,
        )
    except HeirloomError as e:
        _fail(e)

    _save_tree(tree, path)
    console.print(f"[green]✓ Created tag: {escape(tree.path(tag.id))}[/green]")
    console.print(f"  ID: {tag.id}")


@tags_cli.command(name="rename")
@click.argument("tag")
@click.argument("new_name")
@click.pass_context
def rename_tag(ctx: click.Context, tag: str, new_name: str):
    """Rename a tag in place."""
    path = ctx.obj["snapshot"]
    tree = _load_tree(path)
    node = _resolve(tree, tag)

    try:
        tree.rename_tag(node.id, new_name)
    except HeirloomError as e:
        _fail(e)

    _save_tree(tree, path)
    console.print(f"[green]✓ Renamed to {escape(tree.path(node.id))}[/green]")


@tags_cli.command(name="move")
@click.argument("tag")
@click.option("--to", "target", default=None, help="New parent ID or path (omit for root)")
@click.pass_context
def move_tag(ctx: click.Context, tag: str, target: Optional[str]):
    """Move a tag under another parent."""
    path = ctx.obj["snapshot"]
    tree = _load_tree(path)
    node = _resolve(tree, tag)
    new_parent_id = _resolve(tree, target).id if target else None

    try:
        tree.move_tag(node.id, new_parent_id)
    except HeirloomError as e:
        _fail(e)

    _save_tree(tree, path)
    console.print(f"[green]✓ Moved to {escape(tree.path(node.id))}[/green]")


@tags_cli.command(name="delete")
@click.argument("tag")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
@click.pass_context
def delete_tag(ctx: click.Context, tag: str, yes: bool):
    """Delete a tag and all of its descendants."""
    path = ctx.obj["snapshot"]
    tree = _load_tree(path)
    node = _resolve(tree, tag)

    descendants = tree.descendants(node.id)
    console.print(f"Deleting [yellow]{escape(tree.path(node.id))}[/yellow]")
    if descendants:
        console.print(f"  [red]This will also delete {len(descendants)} descendants[/red]")

    if not yes and not click.confirm("Are you sure?"):
        console.print("Cancelled")
        return

    removed = tree.delete_tag(node.id)
    _save_tree(tree, path)
    console.print(f"[green]✓ Removed {removed} tags[/green]")


@tags_cli.command(name="search")
@click.argument("query")
@click.pass_context
def search_tags(ctx: click.Context, query: str):
    """Find tags whose name contains QUERY."""
    tree = _load_tree(ctx.obj["snapshot"])
    matches = list(tree.search(query))

    if not matches:
        console.print("[yellow]No tags found[/yellow]")
        return

    table = Table(title="Tags")
    table.add_column("Name", style="cyan")
    table.add_column("Path", style="green")
    table.add_column("Uses", style="magenta")
    table.add_column("ID", style="dim")

    for node in matches:
        table.add_row(escape(node.name), escape(tree.path(node.id)), str(node.usage_count), node.id)

    console.print(table)


@tags_cli.command(name="apply")
@click.argument("tag_names", nargs=-1, required=True)
@click.option("--items", "item_ids", required=True, help="Comma-separated media item IDs")
@click.option("--dry-run", is_flag=True, help="Show what would change without saving")
@click.pass_context
def apply_tags(ctx: click.Context, tag_names: Tuple[str, ...], item_ids: str, dry_run: bool):
    """Add TAG_NAMES to several media items in the SQLite store."""
    try:
        asyncio.run(_apply(ctx.obj["snapshot"], list(tag_names), item_ids, dry_run))
    except HeirloomError as e:
        _fail(e)


async def _apply(snapshot: Path, tag_names, item_ids_str: str, dry_run: bool):
    """Async implementation of bulk apply."""
    from heirloom.store import create_item_store
    from heirloom.tagging.bulk_operations import BulkTagOperator

    config = get_config()
    store = create_item_store("sqlite", config)
    await store.initialize()

    try:
        tree = _load_tree(snapshot)
        operator = BulkTagOperator(tree, await store.list_items(), config)
        memory_ids = [mid.strip() for mid in item_ids_str.split(",") if mid.strip()]

        if dry_run:
            result = operator.preview(memory_ids, tag_names)
        else:
            result = operator.apply_tags(memory_ids, tag_names)

        for memory_id in result.failed:
            console.print(f"[red]Item not found: {escape(memory_id)}[/red]")
        for update in result.updated:
            added = ", ".join(update.added)
            console.print(f"  {update.memory_id}: [green]+ {escape(added)}[/green]")

        if dry_run:
            console.print(f"[yellow]Dry run: {result.total_updated} items would change[/yellow]")
            return

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Committing...", total=result.total_updated)

            def on_progress(done: int, total: int, message: str) -> None:
                progress.update(task, completed=done, description=message)

            commit = await operator.commit(result, store, progress_callback=on_progress)

        _save_tree(tree, snapshot)
        for error in commit.errors:
            console.print(f"[red]{escape(error)}[/red]")
        console.print(f"[green]✓ Updated {commit.total_committed} items[/green]")
        if result.unchanged:
            console.print(f"  {len(result.unchanged)} items already had these tags")
    finally:
        await store.close()


if __name__ == "__main__":
    tags_cli()
