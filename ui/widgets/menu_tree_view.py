"""
Menu tree view with drag-and-drop reordering and reparenting.

The view only classifies gestures: hover geometry goes through the drop
resolver and the drag state machine, and a drop is emitted as a move
request. Nothing in the tree changes until the controller has persisted the
move and re-fetched the menus.
"""

from typing import List, Optional
from PySide6.QtCore import Qt, Signal, QModelIndex, QRect
from PySide6.QtWidgets import QTreeView, QWidget, QVBoxLayout, QLabel, QHeaderView, QAbstractItemView, QSizePolicy
from PySide6.QtGui import QPainter, QPen, QColor

from core import drag_state
from core.drop_resolver import DropResolver, BEFORE, AFTER, INSIDE
from core.expand_state import ExpandedSet
from core.menu_tree import MenuNode
from core.move_planner import is_descendant
from ..models.menu_tree_model import MenuTreeModel

INDICATOR_COLOR = QColor("#0051AF")


class DragDropTreeView(QTreeView):
    """QTreeView that turns drag gestures into (dragged, target, position) intents."""

    drop_intent = Signal(object)  # DragIntent

    def __init__(self, parent=None):
        super().__init__(parent)
        self.state = drag_state.IDLE_STATE
        self.resolver = DropResolver()
        self.setDragEnabled(True)
        self.setAcceptDrops(True)
        self.setDropIndicatorShown(False)  # We paint our own indicator
        self.setDragDropMode(QAbstractItemView.DragDropMode.DragDrop)
        self.setDefaultDropAction(Qt.DropAction.MoveAction)

    # ---------------- gesture logic (usable without real mouse events) ----------------
    def begin_drag(self, dragged_id):
        self.state = drag_state.start_drag(self.state, dragged_id)
        self.resolver.reset()

    def hover_index(self, index: QModelIndex, offset_y: float, row_height: float) -> Optional[str]:
        """Classify the hover over ``index`` (invalid index: empty area) and update the state."""
        if self.state.is_idle:
            return None

        model = self.model()
        target = model.node_for_index(index) if index.isValid() else None
        if target is None:
            # Below the last row: append at the end of the root level
            position = AFTER
            self.resolver.reset()
            self.state = drag_state.hover(self.state, None, position)
        else:
            position = self.resolver.resolve(self.state.dragged_id, target.id, offset_y, row_height)
            if position is not None and is_descendant(model.nodes(), self.state.dragged_id, target.id):
                position = None
            self.state = drag_state.hover(self.state, target.id, position)

        if self.resolver.changed or target is None:
            self.viewport().update()
        return position if self.state.kind == drag_state.HOVERING else None

    def leave_drag(self):
        self.state = drag_state.leave(self.state)
        self.resolver.reset()
        self.viewport().update()

    def finish_drop(self):
        """End the gesture; emits and returns the intent when there was a valid target."""
        self.state, intent = drag_state.drop(self.state)
        self.resolver.reset()
        self.viewport().update()
        if intent is not None:
            print(f"[TREE_VIEW] 🎯 Drop: {intent}")
            self.drop_intent.emit(intent)
        return intent

    def cancel_drag(self):
        self.state = drag_state.cancel(self.state)
        self.resolver.reset()
        self.viewport().update()

    # ---------------- Qt drag and drop events ----------------
    def startDrag(self, supported_actions):
        index = self.currentIndex()
        node = self.model().node_for_index(index) if index.isValid() else None
        if node is None:
            return
        self.begin_drag(node.id)
        super().startDrag(supported_actions)
        # QDrag.exec() has returned: the gesture is over whether or not it was dropped here
        if not self.state.is_idle:
            self.cancel_drag()

    def dragEnterEvent(self, event):
        dragged_id = MenuTreeModel.dragged_id_from_mime(event.mimeData())
        if dragged_id is None:
            event.ignore()
            return
        if self.state.is_idle:
            self.begin_drag(dragged_id)
        event.acceptProposedAction()

    def dragMoveEvent(self, event):
        if self.state.is_idle:
            event.ignore()
            return
        pos = event.position().toPoint()
        index = self.indexAt(pos)
        if index.isValid():
            index = index.siblingAtColumn(0)
            rect = self.visualRect(index)
            position = self.hover_index(index, pos.y() - rect.top(), rect.height())
        else:
            position = self.hover_index(QModelIndex(), 0, 0)

        if position is None:
            event.ignore()
        else:
            event.setDropAction(Qt.DropAction.MoveAction)
            event.accept()

    def dragLeaveEvent(self, event):
        self.leave_drag()
        event.accept()

    def dropEvent(self, event):
        intent = self.finish_drop()
        # The model must not remove the source row; the controller re-fetches instead
        event.setDropAction(Qt.DropAction.IgnoreAction)
        if intent is None:
            event.ignore()
        else:
            event.accept()

    # ---------------- drop indicator ----------------
    def paintEvent(self, event):
        super().paintEvent(event)
        if self.state.kind != drag_state.HOVERING or self.state.target_id is None:
            return

        index = self.model().index_for_id(self.state.target_id)
        if not index.isValid():
            return
        rect = self.visualRect(index)
        full = QRect(rect.left(), rect.top(), self.viewport().width() - rect.left() - 8, rect.height())

        painter = QPainter(self.viewport())
        try:
            pen = QPen(INDICATOR_COLOR)
            pen.setWidth(3)
            painter.setPen(pen)
            if self.state.position == BEFORE:
                painter.drawLine(full.left(), full.top() + 1, full.right(), full.top() + 1)
            elif self.state.position == AFTER:
                painter.drawLine(full.left(), full.bottom() - 1, full.right(), full.bottom() - 1)
            elif self.state.position == INSIDE:
                fill = QColor(INDICATOR_COLOR)
                fill.setAlpha(40)
                painter.fillRect(full, fill)
        finally:
            painter.end()


class MenuTreeView(QWidget):
    """
    Menu tree panel: the drag-and-drop tree plus an empty-state label.
    Expansion is driven by an ExpandedSet so it survives tree rebuilds.
    """

    # Signals
    move_requested = Signal(object, object, str)  # dragged_id, target_id, position
    menu_selected = Signal(object)  # id or None
    menu_activated = Signal(object)  # id (double click)

    def __init__(self, expanded: Optional[ExpandedSet] = None, parent=None):
        super().__init__(parent)
        self.expanded = expanded if expanded is not None else ExpandedSet()
        self._syncing_expansion = False
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

        self._setup_ui()
        self._setup_model()

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.tree_view = DragDropTreeView()
        self.tree_view.setAlternatingRowColors(True)
        self.tree_view.setSelectionBehavior(QTreeView.SelectionBehavior.SelectRows)
        self.tree_view.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        self.tree_view.setUniformRowHeights(True)
        self.tree_view.setRootIsDecorated(True)
        self.tree_view.setItemsExpandable(True)
        self.tree_view.setExpandsOnDoubleClick(False)  # Double-click edits

        self.empty_label = QLabel("No menus found")
        self.empty_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.empty_label.setStyleSheet("color: gray; font-style: italic;")
        self.empty_label.hide()

        layout.addWidget(self.tree_view)
        layout.addWidget(self.empty_label)

    def _setup_model(self):
        self.model = MenuTreeModel(self)
        self.tree_view.setModel(self.model)

        header = self.tree_view.header()
        header.setStretchLastSection(True)
        header.setSectionResizeMode(0, QHeaderView.ResizeMode.Stretch)
        header.setSectionResizeMode(1, QHeaderView.ResizeMode.ResizeToContents)

        self.tree_view.selectionModel().selectionChanged.connect(self._on_selection_changed)
        self.tree_view.expanded.connect(lambda index: self._on_expansion_changed(index, True))
        self.tree_view.collapsed.connect(lambda index: self._on_expansion_changed(index, False))
        self.tree_view.doubleClicked.connect(self._on_double_clicked)
        self.tree_view.drop_intent.connect(
            lambda intent: self.move_requested.emit(intent.dragged_id, intent.target_id, intent.position))

    # ---------------- population ----------------
    def populate(self, nodes: List[MenuNode]):
        """Rebuild from the flat list, keeping expansion and selection by id."""
        selected_id = self.selected_id()
        self.model.populate(nodes)
        self.apply_expansion()

        has_menus = bool(nodes)
        self.tree_view.setVisible(has_menus)
        self.empty_label.setVisible(not has_menus)

        if selected_id is not None:
            self.select_id(selected_id)

    def apply_expansion(self):
        """Make the view's expanded rows match the ExpandedSet."""
        self._syncing_expansion = True
        try:
            for node_id, item in self.model.id_to_item.items():
                if not item.children:
                    continue
                index = self.model.index_for_id(node_id)
                self.tree_view.setExpanded(index, node_id in self.expanded)
        finally:
            self._syncing_expansion = False

    def _on_expansion_changed(self, index: QModelIndex, expanded: bool):
        if self._syncing_expansion:
            return
        node = self.model.node_for_index(index)
        if node is not None:
            self.expanded.set_expanded(node.id, expanded)

    # ---------------- selection ----------------
    def selected_id(self):
        indexes = self.tree_view.selectionModel().selectedRows(0)
        if not indexes:
            return None
        node = self.model.node_for_index(indexes[0])
        return node.id if node else None

    def select_id(self, node_id) -> bool:
        index = self.model.index_for_id(node_id)
        if not index.isValid():
            self.tree_view.clearSelection()
            return False
        self.tree_view.setCurrentIndex(index)
        self.tree_view.scrollTo(index)
        return True

    def _on_selection_changed(self, selected, deselected):
        self.menu_selected.emit(self.selected_id())

    def _on_double_clicked(self, index: QModelIndex):
        node = self.model.node_for_index(index.siblingAtColumn(0))
        if node is not None:
            self.menu_activated.emit(node.id)

    # ---------------- commit guard ----------------
    def set_interaction_enabled(self, enabled: bool):
        """Disable dragging while a move is being saved."""
        if not enabled:
            self.tree_view.cancel_drag()
        self.tree_view.setDragEnabled(enabled)
        self.tree_view.setAcceptDrops(enabled)
