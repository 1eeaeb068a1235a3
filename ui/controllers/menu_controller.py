"""
Fetch/commit orchestration between the menu backend and the tree view.

The controller owns the last known-good flat list. A drop is planned on the
main thread and committed by a MoveCommitWorker; only one commit may be in
flight, and refreshes requested meanwhile are replayed once it finishes.
"""

from typing import List, Optional
from PySide6.QtCore import QObject, QThread, Signal, Slot

from core.menu_api import MenuApi, MenuApiError
from core.menu_tree import MenuNode, build_tree
from core.move_planner import MovePlan, plan_move
from core.move_applier import apply_move
from core.expand_state import ExpandedSet


class MoveCommitWorker(QThread):
    """Runs the reparent/reorder calls of one move off the UI thread."""
    finished_signal = Signal(bool, str)  # success, message

    def __init__(self, api: MenuApi, dragged_id, plan: MovePlan, parent=None):
        super().__init__(parent)
        self.api = api
        self.dragged_id = dragged_id
        self.plan = plan

    def run(self):
        try:
            apply_move(self.api, self.dragged_id, self.plan)
            msg = f"Menu {self.dragged_id} moved"
            print(f"[COMMIT_WORKER] ✅ {msg}")
            self.finished_signal.emit(True, msg)
        except MenuApiError as e:
            print(f"[COMMIT_WORKER] ❌ Move of menu {self.dragged_id} failed: {e}")
            self.finished_signal.emit(False, str(e))
        except Exception as e:
            print(f"[COMMIT_WORKER] ❌ Unexpected error moving menu {self.dragged_id}: {e}")
            self.finished_signal.emit(False, f"Unexpected error: {e}")


class MenuController(QObject):
    nodes_changed = Signal(list)  # flat list of MenuNode
    fetch_failed = Signal(str)
    move_committed = Signal(str)
    move_failed = Signal(str)
    move_rejected = Signal(str)
    busy_changed = Signal(bool)
    operation_succeeded = Signal(str)
    operation_failed = Signal(str)
    expansion_changed = Signal()

    def __init__(self, api: MenuApi, expanded: Optional[ExpandedSet] = None,
                 use_threads=True, expand_all_on_load=False, parent=None):
        super().__init__(parent)
        self.api = api
        self.expanded = expanded if expanded is not None else ExpandedSet()
        self.use_threads = use_threads
        self.expand_all_on_load = expand_all_on_load
        self.nodes: List[MenuNode] = []
        self._loaded_once = False
        self._busy = False
        self._refresh_pending = False
        self._worker = None

    @property
    def is_busy(self) -> bool:
        return self._busy

    def _set_busy(self, busy: bool):
        if self._busy != busy:
            self._busy = busy
            self.busy_changed.emit(busy)

    def tree(self) -> List[MenuNode]:
        return build_tree(self.nodes)

    def get_node(self, node_id) -> Optional[MenuNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    # ---------------- fetching ----------------
    @Slot()
    def refresh(self) -> bool:
        """Re-fetches the flat list; deferred while a move is being saved."""
        if self._busy:
            print("[MENU_CTRL] ⏳ Refresh deferred until the current move is saved")
            self._refresh_pending = True
            return False

        self._refresh_pending = False
        try:
            nodes = self.api.fetch_all()
        except MenuApiError as e:
            print(f"[MENU_CTRL] ❌ Fetch failed, keeping last good menus: {e}")
            self.fetch_failed.emit(str(e))
            return False

        self.nodes = nodes
        if not self._loaded_once:
            self._loaded_once = True
            if self.expand_all_on_load:
                self.expanded.expand_all(build_tree(nodes))
        print(f"[MENU_CTRL] 🔄 Loaded {len(nodes)} menus")
        self.nodes_changed.emit(list(self.nodes))
        return True

    # ---------------- moving ----------------
    @Slot(object, object, str)
    def request_move(self, dragged_id, target_id, position: str) -> bool:
        """Plans a drop and starts committing it. Returns True when a commit was started."""
        if self._busy:
            msg = "A move is already being saved"
            print(f"[MENU_CTRL] 🚫 Drop of menu {dragged_id} rejected: {msg}")
            self.move_rejected.emit(msg)
            return False

        if self.get_node(dragged_id) is None or (target_id is not None and self.get_node(target_id) is None):
            print("[MENU_CTRL] 🔄 Drop referenced a menu that no longer exists, re-fetching")
            self.refresh()
            return False

        plan = plan_move(dragged_id, target_id, position, self.nodes)
        if plan is None:
            return False
        if plan.is_identity(self.get_node(dragged_id), self.nodes):
            print(f"[MENU_CTRL] ⏭️ Menu {dragged_id} already at {plan}, nothing to save")
            return False

        print(f"[MENU_CTRL] 🚀 Committing move of menu {dragged_id}: {plan}")
        self._set_busy(True)
        if self.use_threads:
            self._worker = MoveCommitWorker(self.api, dragged_id, plan, self)
            self._worker.finished_signal.connect(self._on_commit_finished)
            self._worker.start()
        else:
            try:
                apply_move(self.api, dragged_id, plan)
            except MenuApiError as e:
                self._on_commit_finished(False, str(e))
            except Exception as e:
                print(f"[MENU_CTRL] ❌ Unexpected error moving menu {dragged_id}: {e}")
                self._on_commit_finished(False, f"Unexpected error: {e}")
            else:
                self._on_commit_finished(True, f"Menu {dragged_id} moved")
        return True

    @Slot(bool, str)
    def _on_commit_finished(self, success: bool, message: str):
        if self._worker is not None:
            self._worker.wait()
            self._worker.deleteLater()
            self._worker = None
        self._set_busy(False)

        if success:
            self.move_committed.emit(message)
            self.refresh()
            return

        print(f"[MENU_CTRL] ↩️ Reverting tree to the last good menus: {message}")
        self.move_failed.emit(message)
        self.nodes_changed.emit(list(self.nodes))
        if self._refresh_pending:
            self.refresh()

    def wait_for_commit(self, timeout_ms=5000) -> bool:
        """Blocks until the running commit thread ends (used on shutdown)."""
        if self._worker is not None and self._worker.isRunning():
            return self._worker.wait(timeout_ms)
        return True

    # ---------------- CRUD ----------------
    def _run_operation(self, description: str, call):
        if self._busy:
            msg = f"Cannot {description} while a move is being saved"
            print(f"[MENU_CTRL] 🚫 {msg}")
            self.operation_failed.emit(msg)
            return None
        try:
            result = call()
        except MenuApiError as e:
            print(f"[MENU_CTRL] ❌ Failed to {description}: {e}")
            self.operation_failed.emit(str(e))
            return None
        print(f"[MENU_CTRL] ✅ {description.capitalize()} succeeded")
        self.operation_succeeded.emit(description.capitalize())
        self.refresh()
        return result

    def create_menu(self, draft: dict) -> Optional[MenuNode]:
        node = self._run_operation("create menu", lambda: self.api.create(draft))
        if node is not None and node.parent_id is not None:
            self.expanded.set_expanded(node.parent_id, True)
            self.expansion_changed.emit()
        return node

    def update_menu(self, node_id, fields: dict) -> Optional[MenuNode]:
        return self._run_operation(f"update menu {node_id}", lambda: self.api.update(node_id, fields))

    def delete_menu(self, node_id) -> bool:
        return bool(self._run_operation(f"delete menu {node_id}", lambda: self.api.delete(node_id)))

    # ---------------- expansion ----------------
    def toggle_expand(self, node_id) -> bool:
        expanded = self.expanded.toggle(node_id)
        self.expansion_changed.emit()
        return expanded

    def expand_all(self):
        self.expanded.expand_all(self.tree())
        self.expansion_changed.emit()

    def collapse_all(self):
        self.expanded.collapse_all()
        self.expansion_changed.emit()
