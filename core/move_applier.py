# core/move_applier.py

"""Persists a MovePlan through a MenuApi backend."""

from core.menu_api import MenuApi
from core.menu_tree import MenuNode
from core.move_planner import MovePlan


def apply_move(api: MenuApi, dragged_id, plan: MovePlan) -> MenuNode:
    """
    Issues the parent update (only when the parent changes) and then the
    order update.

    The reorder is sent strictly after the reparent has returned because its
    index is relative to the new parent's children. A failing reparent raises
    before the reorder is attempted; MenuApiError propagates to the caller.
    """
    if plan.parent_changed:
        print(f"[APPLIER] 🔀 Reparenting menu {dragged_id} -> {plan.new_parent_id}")
        api.apply_reparent(dragged_id, plan.new_parent_id)

    print(f"[APPLIER] ↕️ Reordering menu {dragged_id} -> index {plan.new_index}")
    updated = api.apply_reorder(dragged_id, plan.new_index, plan.previous_index)
    print(f"[APPLIER] ✅ Move of menu {dragged_id} persisted")
    return updated
