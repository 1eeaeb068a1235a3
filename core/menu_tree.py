# core/menu_tree.py

"""Flat menu list <-> nested menu tree conversion."""

from typing import Dict, List, Optional, Any


class MenuNode:
    """One menu item. ``children`` is only populated by build_tree()."""

    FIELDS = ("id", "title", "path", "icon", "is_active", "order_index",
              "parent_id", "created_at", "updated_at")

    def __init__(self, id, title="", path="", icon="", is_active=True,
                 order_index=0, parent_id=None, created_at="", updated_at=""):
        self.id = id
        self.title = title
        self.path = path
        self.icon = icon
        self.is_active = is_active
        self.order_index = order_index
        self.parent_id = parent_id
        self.created_at = created_at
        self.updated_at = updated_at
        self.children: List["MenuNode"] = []

    @staticmethod
    def from_dict(data: dict) -> "MenuNode":
        """Build a node from a wire/file dictionary, ignoring any nested children."""
        return MenuNode(
            id=data["id"],
            title=data.get("title", ""),
            path=data.get("path", ""),
            icon=data.get("icon", ""),
            is_active=bool(data.get("is_active", True)),
            order_index=int(data.get("order_index") or 0),
            parent_id=data.get("parent_id"),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
        )

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in self.FIELDS}

    def copy(self) -> "MenuNode":
        """Detached copy without children."""
        return MenuNode.from_dict(self.to_dict())

    def __eq__(self, other):
        if not isinstance(other, MenuNode):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"MenuNode(id={self.id!r}, title={self.title!r}, "
                f"parent_id={self.parent_id!r}, order_index={self.order_index!r})")


def _sort_key(node: MenuNode):
    return node.order_index


def build_tree(nodes: List[MenuNode]) -> List[MenuNode]:
    """
    Builds the nested tree from a flat node list and returns the root nodes.

    Each sibling group is sorted by order_index (stable, so ties keep input order).
    A node whose parent_id points to a node that does not exist is promoted
    to the root level instead of failing the whole build.
    The input nodes are never modified; the tree is made of copies.
    """
    copies = [node.copy() for node in nodes]
    by_id: Dict[Any, MenuNode] = {}
    for node in copies:
        if node.id in by_id:
            print(f"[TREE] ⚠️ Duplicate menu id {node.id!r}, keeping first occurrence")
            continue
        by_id[node.id] = node

    roots: List[MenuNode] = []
    children_by_parent: Dict[Any, List[MenuNode]] = {}
    for node in by_id.values():
        if node.parent_id is None:
            roots.append(node)
        elif node.parent_id not in by_id:
            print(f"[TREE] ⚠️ Orphan menu {node.id!r}: parent {node.parent_id!r} not found, showing it at root level")
            roots.append(node)
        else:
            children_by_parent.setdefault(node.parent_id, []).append(node)

    attached = set()

    def attach(parent: MenuNode):
        # Iterative so that very deep menus do not hit the recursion limit
        stack = [parent]
        while stack:
            current = stack.pop()
            attached.add(current.id)
            current.children = sorted(
                (child for child in children_by_parent.get(current.id, []) if child.id not in attached),
                key=_sort_key,
            )
            stack.extend(current.children)

    for root in roots:
        attach(root)

    # Nodes stuck in a stored parent cycle are unreachable from any root.
    if len(attached) < len(by_id):
        for node in by_id.values():
            if node.id not in attached:
                print(f"[TREE] ⚠️ Menu {node.id!r} is part of a parent cycle, showing it at root level")
                roots.append(node)
                attach(node)

    roots.sort(key=_sort_key)
    return roots


def flatten(tree: List[MenuNode]) -> List[MenuNode]:
    """Pre-order traversal of the tree; every node appears exactly once."""
    result = []
    stack = list(reversed(tree))
    while stack:
        node = stack.pop()
        result.append(node)
        stack.extend(reversed(node.children))
    return result


def find_by_id(tree: List[MenuNode], node_id) -> Optional[MenuNode]:
    """Depth-first search for a node by id."""
    for node in tree:
        if node.id == node_id:
            return node
        found = find_by_id(node.children, node_id)
        if found is not None:
            return found
    return None


def collect_ids(tree: List[MenuNode]) -> list:
    return [node.id for node in flatten(tree)]


def siblings_of(nodes: List[MenuNode], parent_id, exclude_id=None) -> List[MenuNode]:
    """
    Returns the flat-list nodes sharing parent_id, ordered by order_index.

    Nodes pointing at a missing parent count as root-level siblings, matching
    what build_tree() shows.
    """
    known_ids = {node.id for node in nodes}
    siblings = []
    for node in nodes:
        if node.id == exclude_id:
            continue
        effective_parent = node.parent_id if node.parent_id in known_ids else None
        if effective_parent == parent_id:
            siblings.append(node)
    return sorted(siblings, key=_sort_key)


def available_parents(tree: List[MenuNode], exclude_id=None) -> List[MenuNode]:
    """
    Nodes that may become the parent of ``exclude_id``, in pre-order.

    The excluded node and all of its descendants are skipped, so picking any
    returned node can never create a cycle.
    """
    result = []
    for node in tree:
        if exclude_id is not None and node.id == exclude_id:
            continue
        result.append(node)
        result.extend(available_parents(node.children, exclude_id))
    return result

