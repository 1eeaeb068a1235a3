# core/expand_state.py

"""Which menus are shown expanded. Independent of the tree shape; survives rebuilds."""

from typing import Iterable, List

from core.menu_tree import MenuNode, collect_ids


class ExpandedSet:
    def __init__(self, ids: Iterable = ()):
        self._ids = set(ids)

    def toggle(self, node_id) -> bool:
        """Flips membership and returns the new expanded state."""
        if node_id in self._ids:
            self._ids.discard(node_id)
            return False
        self._ids.add(node_id)
        return True

    def set_expanded(self, node_id, expanded: bool) -> None:
        if expanded:
            self._ids.add(node_id)
        else:
            self._ids.discard(node_id)

    def is_expanded(self, node_id) -> bool:
        return node_id in self._ids

    def expand_all(self, tree: List[MenuNode]) -> None:
        """Replaces the set with every id in the tree (recomputed from scratch each call)."""
        self._ids = set(collect_ids(tree))
        print(f"[EXPAND] ➕ Expanded all {len(self._ids)} menus")

    def collapse_all(self) -> None:
        self._ids = set()
        print("[EXPAND] ➖ Collapsed all menus")

    def ids(self) -> set:
        return set(self._ids)

    def __contains__(self, node_id):
        return node_id in self._ids

    def __len__(self):
        return len(self._ids)

    def __iter__(self):
        return iter(set(self._ids))
