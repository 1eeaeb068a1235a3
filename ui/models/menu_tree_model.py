"""
Menu tree model using Qt's Model/View architecture.
The nested structure is rebuilt from the flat menu list on every populate().
"""

import json
from typing import Dict, List, Optional, Any
from PySide6.QtCore import QAbstractItemModel, QModelIndex, Qt, QMimeData
from PySide6.QtGui import QBrush, QColor

from core.menu_tree import MenuNode, build_tree

MENU_MIME_TYPE = "application/x-menu-item-id"


class MenuTreeItem:
    """Lightweight view wrapper around a MenuNode with a parent pointer for Qt."""

    def __init__(self, node: Optional[MenuNode], parent=None):
        self.node = node
        self.parent = parent
        self.children = []

    def add_child(self, child):
        child.parent = self
        self.children.append(child)

    def row(self):
        """Get the row index of this item in its parent's children list."""
        if self.parent:
            return self.parent.children.index(self)
        return 0

    def child_count(self):
        return len(self.children)

    def child_at(self, index):
        if 0 <= index < len(self.children):
            return self.children[index]
        return None


class MenuTreeModel(QAbstractItemModel):
    """Two columns (Title, Path) over the menu tree; supports dragging menus by id."""

    # Custom roles for data access
    IdRole = Qt.ItemDataRole.UserRole + 1
    ParentIdRole = Qt.ItemDataRole.UserRole + 2
    OrderIndexRole = Qt.ItemDataRole.UserRole + 3
    IsActiveRole = Qt.ItemDataRole.UserRole + 4
    IconNameRole = Qt.ItemDataRole.UserRole + 5

    def __init__(self, parent=None):
        super().__init__(parent)
        self.root_item = MenuTreeItem(None)  # Invisible root
        self.id_to_item: Dict[Any, MenuTreeItem] = {}
        self._nodes: List[MenuNode] = []
        self.tree: List[MenuNode] = []

    def populate(self, nodes: List[MenuNode]) -> None:
        """Rebuild the whole tree from the flat menu list."""
        self.beginResetModel()
        self._nodes = [node.copy() for node in nodes]
        self.tree = build_tree(self._nodes)
        self.root_item = MenuTreeItem(None)
        self.id_to_item = {}

        stack = [(node, self.root_item) for node in reversed(self.tree)]
        while stack:
            node, parent_item = stack.pop()
            item = MenuTreeItem(node)
            parent_item.add_child(item)
            self.id_to_item[node.id] = item
            stack.extend((child, item) for child in reversed(node.children))

        self.endResetModel()
        print(f"[MENU_MODEL] 🌳 Populated model with {len(self.id_to_item)} menus ({len(self.tree)} roots)")

    def nodes(self) -> List[MenuNode]:
        """The flat list the current tree was built from."""
        return list(self._nodes)

    # QAbstractItemModel interface implementation

    def index(self, row: int, column: int, parent: QModelIndex = QModelIndex()) -> QModelIndex:
        if not self.hasIndex(row, column, parent):
            return QModelIndex()

        parent_item = parent.internalPointer() if parent.isValid() else self.root_item
        child_item = parent_item.child_at(row)
        if child_item:
            return self.createIndex(row, column, child_item)
        return QModelIndex()

    def parent(self, index: QModelIndex) -> QModelIndex:
        if not index.isValid():
            return QModelIndex()

        parent_item = index.internalPointer().parent
        if parent_item is None or parent_item is self.root_item:
            return QModelIndex()
        return self.createIndex(parent_item.row(), 0, parent_item)

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:
        if parent.column() > 0:
            return 0
        parent_item = parent.internalPointer() if parent.isValid() else self.root_item
        return parent_item.child_count()

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:
        return 2  # Title, Path

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole) -> Any:
        if not index.isValid():
            return None

        node = index.internalPointer().node
        column = index.column()

        if role == Qt.ItemDataRole.DisplayRole:
            if column == 0:
                return node.title
            elif column == 1:
                return node.path
        elif role == Qt.ItemDataRole.ToolTipRole:
            state = "active" if node.is_active else "inactive"
            return f"{node.title} ({node.path}) - icon: {node.icon or 'none'}, {state}"
        elif role == Qt.ItemDataRole.ForegroundRole and not node.is_active:
            return QBrush(QColor("gray"))
        elif role == self.IdRole:
            return node.id
        elif role == self.ParentIdRole:
            return node.parent_id
        elif role == self.OrderIndexRole:
            return node.order_index
        elif role == self.IsActiveRole:
            return node.is_active
        elif role == self.IconNameRole:
            return node.icon

        return None

    def flags(self, index: QModelIndex) -> Qt.ItemFlag:
        if not index.isValid():
            # Dropping on the empty area means "end of the root level"
            return Qt.ItemFlag.ItemIsDropEnabled

        return (Qt.ItemFlag.ItemIsEnabled | Qt.ItemFlag.ItemIsSelectable
                | Qt.ItemFlag.ItemIsDragEnabled | Qt.ItemFlag.ItemIsDropEnabled)

    def headerData(self, section: int, orientation: Qt.Orientation, role: int = Qt.ItemDataRole.DisplayRole) -> Any:
        if orientation == Qt.Orientation.Horizontal and role == Qt.ItemDataRole.DisplayRole:
            if section == 0:
                return "Title"
            elif section == 1:
                return "Path"
        return None

    # Drag and drop. The model never moves rows itself: the view turns a drop
    # into a move request and the tree is rebuilt from the re-fetched list.

    def supportedDragActions(self) -> Qt.DropAction:
        return Qt.DropAction.MoveAction

    def supportedDropActions(self) -> Qt.DropAction:
        return Qt.DropAction.MoveAction

    def mimeTypes(self) -> List[str]:
        return [MENU_MIME_TYPE]

    def mimeData(self, indexes) -> QMimeData:
        mime = QMimeData()
        ids = []
        for index in indexes:
            if index.isValid() and index.column() == 0:
                ids.append(index.internalPointer().node.id)
        if ids:
            mime.setData(MENU_MIME_TYPE, json.dumps(ids[0]).encode("utf-8"))
        return mime

    def canDropMimeData(self, data, action, row, column, parent) -> bool:
        return data is not None and data.hasFormat(MENU_MIME_TYPE)

    @staticmethod
    def dragged_id_from_mime(mime: QMimeData):
        """Menu id carried by a drag, or None for foreign drags."""
        if mime is None or not mime.hasFormat(MENU_MIME_TYPE):
            return None
        try:
            return json.loads(bytes(mime.data(MENU_MIME_TYPE)).decode("utf-8"))
        except (ValueError, UnicodeDecodeError):
            return None

    # Lookups

    def node_for_index(self, index: QModelIndex) -> Optional[MenuNode]:
        if not index.isValid():
            return None
        return index.internalPointer().node

    def index_for_id(self, node_id, column: int = 0) -> QModelIndex:
        item = self.id_to_item.get(node_id)
        if item is None:
            return QModelIndex()
        return self.createIndex(item.row(), column, item)

    def get_node_by_id(self, node_id) -> Optional[MenuNode]:
        item = self.id_to_item.get(node_id)
        return item.node if item else None
