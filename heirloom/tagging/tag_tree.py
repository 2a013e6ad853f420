"""Tag hierarchy management and CRUD operations."""

from typing import Dict, Iterator, List, Optional, Tuple

from heirloom.config import TaggingConfig, get_config
from heirloom.core.exceptions import CycleError, NotFoundError, ValidationError
from heirloom.core.models import TagCategory
from heirloom.log_utils import get_logger
from heirloom.tagging.models import TagNode, TagTreeSnapshot

logger = get_logger(__name__)

PATH_SEPARATOR = "/"


class TagTreeStore:
    """
    In-memory owner of the tag taxonomy.

    Features:
    - Add, rename, delete (cascading) and move (reparent) tags
    - Sibling name uniqueness and cycle validation
    - Children derived from a parent_id index, never stored on nodes
    - Lazy case-insensitive search
    - Snapshot export/import for an external persistence layer

    Nodes are replaced, not mutated, on every change, so a TagNode handed to a
    caller is a stable value even after later edits.
    """

    def __init__(self, config: Optional[TaggingConfig] = None):
        """
        Initialize an empty tree.

        Args:
            config: Tagging configuration (defaults to the global config)
        """
        self.config = config or get_config()
        self._nodes: Dict[str, TagNode] = {}
        self._children: Dict[Optional[str], List[str]] = {None: []}

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, tag_id: object) -> bool:
        return tag_id in self._nodes

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_tag(self, tag_id: str) -> Optional[TagNode]:
        """Get tag by ID, or None if it does not exist."""
        return self._nodes.get(tag_id)

    def require_tag(self, tag_id: str) -> TagNode:
        """
        Get tag by ID.

        Raises:
            NotFoundError: If the tag does not exist
        """
        node = self._nodes.get(tag_id)
        if node is None:
            raise NotFoundError("Tag", tag_id)
        return node

    def children(self, parent_id: Optional[str]) -> List[TagNode]:
        """Direct children of a tag (or the roots for None), in insertion order."""
        return [self._nodes[child_id] for child_id in self._children.get(parent_id, [])]

    def roots(self) -> List[TagNode]:
        return self.children(None)

    def ancestors(self, tag_id: str) -> List[TagNode]:
        """
        Get all ancestor tags.

        Returns:
            List of ancestor tags, ordered from root to parent
        """
        ancestors: List[TagNode] = []
        current = self.require_tag(tag_id)
        while current.parent_id is not None:
            current = self._nodes[current.parent_id]
            ancestors.insert(0, current)
        return ancestors

    def descendants(self, tag_id: str) -> List[TagNode]:
        """All descendants of a tag in post-order (deepest first, node's children last)."""
        self.require_tag(tag_id)
        return [self._nodes[i] for i in self._post_order(tag_id)]

    def path(self, tag_id: str) -> str:
        """Slash-joined names from the root, e.g. "Family/Cousins"."""
        names = [a.name for a in self.ancestors(tag_id)]
        names.append(self.require_tag(tag_id).name)
        return PATH_SEPARATOR.join(names)

    def find_by_name(self, name: str) -> Optional[TagNode]:
        """First tag (in insertion order) whose name matches exactly."""
        for node in self._nodes.values():
            if node.name == name:
                return node
        return None

    def find_by_path(self, path: str) -> Optional[TagNode]:
        """Resolve a slash-joined path of names starting at the roots."""
        parent_id: Optional[str] = None
        node: Optional[TagNode] = None
        for part in path.split(PATH_SEPARATOR):
            node = self._child_named(parent_id, part.strip())
            if node is None:
                return None
            parent_id = node.id
        return node

    def resolve(self, ref: str) -> Optional[TagNode]:
        """Look a tag up by ID first, then by path."""
        return self.get_tag(ref) or self.find_by_path(ref)

    def walk(self) -> Iterator[Tuple[TagNode, int]]:
        """Depth-first pre-order traversal yielding (node, depth)."""
        stack: List[Tuple[str, int]] = [
            (child_id, 0) for child_id in reversed(self._children[None])
        ]
        while stack:
            tag_id, depth = stack.pop()
            yield self._nodes[tag_id], depth
            for child_id in reversed(self._children.get(tag_id, [])):
                stack.append((child_id, depth + 1))

    def search(self, query: str) -> Iterator[TagNode]:
        """
        Lazily yield tags whose name contains the query, case-insensitively.

        Each call starts a fresh scan over the tags present when iteration
        begins, in insertion order.
        """
        needle = query.casefold()
        for node in list(self._nodes.values()):
            if needle in node.name.casefold():
                yield node

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_tag(
        self,
        parent_id: Optional[str],
        name: str,
        color: Optional[str] = None,
        category: Optional[TagCategory] = None,
    ) -> TagNode:
        """
        Create a new tag under a parent (or at the root).

        Without an explicit color the tag takes its category's configured
        color, then its parent's color, then the tree default.

        Args:
            parent_id: Parent tag ID, or None for a root tag
            name: Tag name, unique among its siblings
            color: Optional display color
            category: Optional annotation category the tag belongs to

        Returns:
            Created tag

        Raises:
            ValidationError: If the name is empty, too long, contains "/" or
                is taken by a sibling
            NotFoundError: If the parent does not exist
        """
        parent = self.require_tag(parent_id) if parent_id is not None else None
        clean_name = self._validate_name(name, parent_id)

        if color is None and category is not None:
            color = self.config.color_for(category)
        if color is None and parent is not None:
            color = parent.color

        node = TagNode(
            name=clean_name,
            parent_id=parent_id,
            color=color or self.config.tree.default_color,
        )
        self._nodes[node.id] = node
        self._children.setdefault(parent_id, []).append(node.id)

        logger.info_ctx("Tag added", tag_id=node.id, name=node.name, parent_id=parent_id)
        return node

    def rename_tag(self, tag_id: str, new_name: str) -> None:
        """
        Rename a tag in place.

        Raises:
            NotFoundError: If the tag does not exist
            ValidationError: If the name is empty, too long or taken by a sibling
        """
        node = self.require_tag(tag_id)
        if new_name.strip() == node.name:
            return

        clean_name = self._validate_name(new_name, node.parent_id, exclude_id=tag_id)
        self._nodes[tag_id] = node.model_copy(update={"name": clean_name})

        logger.info_ctx("Tag renamed", tag_id=tag_id, old_name=node.name, new_name=clean_name)

    def delete_tag(self, tag_id: str) -> int:
        """
        Delete a tag and every descendant.

        Descendants are removed post-order, then the tag itself.

        Returns:
            Number of removed tags (1 + number of descendants)

        Raises:
            NotFoundError: If the tag does not exist
        """
        node = self.require_tag(tag_id)
        doomed = self._post_order(tag_id)
        doomed.append(tag_id)

        for doomed_id in doomed:
            self._children.pop(doomed_id, None)
            del self._nodes[doomed_id]
        self._children[node.parent_id].remove(tag_id)

        logger.info_ctx("Tag deleted", tag_id=tag_id, name=node.name, removed=len(doomed))
        return len(doomed)

    def move_tag(self, tag_id: str, new_parent_id: Optional[str]) -> None:
        """
        Reparent a tag. None moves it to the root.

        Raises:
            NotFoundError: If the tag or the new parent does not exist
            CycleError: If the new parent is the tag itself or one of its descendants
            ValidationError: If the new parent already has a child with the same name
        """
        node = self.require_tag(tag_id)
        if new_parent_id is not None:
            self.require_tag(new_parent_id)
            if self._is_self_or_descendant(new_parent_id, tag_id):
                raise CycleError(tag_id, new_parent_id)

        if node.parent_id == new_parent_id:
            return

        if self._child_named(new_parent_id, node.name) is not None:
            raise ValidationError(
                f"A tag named '{node.name}' already exists under the target parent",
                solution="Rename one of the tags before moving.",
            )

        self._children[node.parent_id].remove(tag_id)
        self._children.setdefault(new_parent_id, []).append(tag_id)
        self._nodes[tag_id] = node.model_copy(update={"parent_id": new_parent_id})

        logger.info_ctx(
            "Tag moved",
            tag_id=tag_id,
            old_parent_id=node.parent_id,
            new_parent_id=new_parent_id,
        )

    def record_usage(self, tag_id: str, delta: int = 1) -> TagNode:
        """
        Adjust a tag's usage count, never going below zero.

        Raises:
            NotFoundError: If the tag does not exist
        """
        node = self.require_tag(tag_id)
        updated = node.model_copy(update={"usage_count": max(0, node.usage_count + delta)})
        self._nodes[tag_id] = updated
        return updated

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def to_snapshot(self) -> TagTreeSnapshot:
        """Copy of every tag, in insertion order."""
        return TagTreeSnapshot(tags=list(self._nodes.values()))

    @classmethod
    def from_snapshot(
        cls, snapshot: TagTreeSnapshot, config: Optional[TaggingConfig] = None
    ) -> "TagTreeStore":
        """
        Rebuild a tree from a snapshot.

        Raises:
            ValidationError: On duplicate IDs, dangling parents, duplicate
                sibling names or cycles
        """
        store = cls(config)

        for node in snapshot.tags:
            if node.id in store._nodes:
                raise ValidationError(f"Duplicate tag ID in snapshot: {node.id}")
            store._nodes[node.id] = node

        for node in snapshot.tags:
            if node.parent_id is not None and node.parent_id not in store._nodes:
                raise ValidationError(
                    f"Tag '{node.id}' references missing parent '{node.parent_id}'"
                )
            siblings = store._children.setdefault(node.parent_id, [])
            if any(store._nodes[s].name == node.name for s in siblings):
                raise ValidationError(
                    f"Duplicate sibling name in snapshot: '{node.name}'"
                )
            siblings.append(node.id)

        for node in snapshot.tags:
            seen = {node.id}
            parent_id = node.parent_id
            while parent_id is not None:
                if parent_id in seen:
                    raise ValidationError(f"Snapshot contains a cycle through '{node.id}'")
                seen.add(parent_id)
                parent_id = store._nodes[parent_id].parent_id

        logger.debug_ctx("Tag tree loaded from snapshot", tags=len(store))
        return store

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validate_name(
        self, name: str, parent_id: Optional[str], exclude_id: Optional[str] = None
    ) -> str:
        clean_name = name.strip() if name else ""
        if not clean_name:
            raise ValidationError("Tag name cannot be empty")

        max_length = self.config.tree.max_name_length
        if len(clean_name) > max_length:
            raise ValidationError(f"Tag name cannot exceed {max_length} characters")

        if PATH_SEPARATOR in clean_name:
            raise ValidationError(
                f"Tag name cannot contain '{PATH_SEPARATOR}'",
                solution="Tag paths use '/' between names; pick another separator.",
            )

        existing = self._child_named(parent_id, clean_name)
        if existing is not None and existing.id != exclude_id:
            raise ValidationError(
                f"Tag name '{clean_name}' already exists at this level",
                solution="Pick a different name or reuse the existing tag.",
            )
        return clean_name

    def _child_named(self, parent_id: Optional[str], name: str) -> Optional[TagNode]:
        for child_id in self._children.get(parent_id, []):
            child = self._nodes[child_id]
            if child.name == name:
                return child
        return None

    def _is_self_or_descendant(self, candidate_id: str, ancestor_id: str) -> bool:
        current: Optional[str] = candidate_id
        while current is not None:
            if current == ancestor_id:
                return True
            current = self._nodes[current].parent_id
        return False

    def _post_order(self, tag_id: str) -> List[str]:
        """Descendant IDs of tag_id in post-order, excluding tag_id."""
        order: List[str] = []
        stack: List[Tuple[str, bool]] = [
            (child_id, False) for child_id in reversed(self._children.get(tag_id, []))
        ]
        while stack:
            current, expanded = stack.pop()
            if expanded:
                order.append(current)
                continue
            stack.append((current, True))
            for child_id in reversed(self._children.get(current, [])):
                stack.append((child_id, False))
        return order
