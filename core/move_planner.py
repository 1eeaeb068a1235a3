# core/move_planner.py

"""
Reparent/reorder planning for drag-and-drop moves.

The planner works on the persisted flat representation (parent_id +
order_index per node) and never mutates it. It answers one question: if the
dragged menu is dropped at ``position`` relative to ``target_id``, which
parent does it end up under and at which 0-based index among its new
siblings? Invalid gestures (self-drop, dropping into the own subtree,
references to menus that no longer exist) produce no plan at all.
"""

from typing import List, Optional

from core.drop_resolver import BEFORE, INSIDE, POSITIONS
from core.menu_tree import MenuNode, siblings_of


class MovePlan:
    """Intent handed to the mutation applier."""

    def __init__(self, new_parent_id, new_index: int, parent_changed: bool, previous_index: Optional[int]):
        self.new_parent_id = new_parent_id
        self.new_index = new_index
        self.parent_changed = parent_changed
        self.previous_index = previous_index

    def is_identity(self, dragged: MenuNode, nodes: List[MenuNode]) -> bool:
        """True when applying the plan would leave ``dragged`` exactly where it is."""
        if self.parent_changed:
            return False
        current_siblings = siblings_of(nodes, self.new_parent_id)
        current_ids = [node.id for node in current_siblings]
        if dragged.id not in current_ids:
            return False
        return current_ids.index(dragged.id) == self.new_index

    def to_dict(self) -> dict:
        return {
            "new_parent_id": self.new_parent_id,
            "new_index": self.new_index,
            "parent_changed": self.parent_changed,
            "previous_index": self.previous_index,
        }

    def __eq__(self, other):
        if not isinstance(other, MovePlan):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"MovePlan(new_parent_id={self.new_parent_id!r}, new_index={self.new_index}, "
                f"parent_changed={self.parent_changed}, previous_index={self.previous_index!r})")


def ancestor_ids(nodes: List[MenuNode], node_id) -> list:
    """
    Walks parent_id links upwards from node_id and returns the ancestor ids,
    nearest first.

    The walk stops after len(nodes) steps so it terminates even when the
    stored data already contains a cycle.
    """
    by_id = {node.id: node for node in nodes}
    ancestors = []
    current = by_id.get(node_id)
    steps = 0
    while current is not None and current.parent_id is not None and steps < len(by_id):
        ancestors.append(current.parent_id)
        current = by_id.get(current.parent_id)
        steps += 1
    return ancestors


def is_descendant(nodes: List[MenuNode], ancestor_id, node_id) -> bool:
    """True if node_id sits somewhere below ancestor_id."""
    if ancestor_id is None or node_id is None:
        return False
    return ancestor_id in ancestor_ids(nodes, node_id)


def plan_move(dragged_id, target_id, position: str, nodes: List[MenuNode]) -> Optional[MovePlan]:
    """
    Computes where the dragged menu lands, or None when the move must be ignored.

    Args:
        dragged_id: id of the menu being dragged
        target_id: id of the hovered menu, or None for "end of the root level"
        position: one of BEFORE, AFTER, INSIDE
        nodes: current flat node list

    Raises:
        ValueError: position is not a known drop position
    """
    if position not in POSITIONS:
        raise ValueError(f"Unknown drop position: {position!r}")

    by_id = {node.id: node for node in nodes}
    dragged = by_id.get(dragged_id)
    if dragged is None:
        print(f"[PLANNER] ⚠️ Dragged menu {dragged_id!r} no longer exists, ignoring drop")
        return None

    if target_id is not None and target_id == dragged_id:
        print(f"[PLANNER] 🚫 Menu {dragged_id!r} dropped onto itself, ignoring")
        return None

    target = None
    if target_id is not None:
        target = by_id.get(target_id)
        if target is None:
            print(f"[PLANNER] ⚠️ Drop target {target_id!r} no longer exists, ignoring drop")
            return None
        if is_descendant(nodes, dragged_id, target_id):
            print(f"[PLANNER] 🚫 Cannot move menu {dragged_id!r} into its own subtree ({target_id!r})")
            return None

    # --- New parent ---
    if target is None:
        new_parent_id = None
    elif position == INSIDE:
        new_parent_id = target.id
    else:
        new_parent_id = target.parent_id if target.parent_id in by_id else None

    if new_parent_id is not None and (new_parent_id == dragged_id or is_descendant(nodes, dragged_id, new_parent_id)):
        print(f"[PLANNER] 🚫 Parent {new_parent_id!r} is inside menu {dragged_id!r}, ignoring")
        return None

    # --- New index among the new siblings, dragged menu excluded ---
    siblings = siblings_of(nodes, new_parent_id, exclude_id=dragged_id)
    if target is None or position == INSIDE:
        new_index = len(siblings)
    else:
        sibling_ids = [node.id for node in siblings]
        target_index = sibling_ids.index(target.id)
        new_index = target_index if position == BEFORE else target_index + 1

    # Compared against the stored parent_id so that dropping an orphan at the
    # root level also repairs its dangling parent reference.
    plan = MovePlan(
        new_parent_id=new_parent_id,
        new_index=new_index,
        parent_changed=new_parent_id != dragged.parent_id,
        previous_index=dragged.order_index,
    )
    print(f"[PLANNER] 🧭 Planned move of {dragged_id!r} ({position} {target_id!r}): {plan}")
    return plan
