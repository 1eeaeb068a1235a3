# ui/dialogs/menu_form_dialog.py

"""Modal dialog for creating or editing a menu."""

from typing import Dict, List, Optional

from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QFormLayout, QLineEdit, QComboBox, QCheckBox,
    QSpinBox, QLabel, QDialogButtonBox
)

from core.menu_tree import MenuNode, available_parents

TOP_LEVEL_LABEL = "None (Top Level)"


def validate_menu_fields(fields: dict) -> Dict[str, str]:
    """Returns {field: message} for every invalid field; empty when the form can be saved."""
    errors = {}
    title = str(fields.get("title") or "").strip()
    path = str(fields.get("path") or "").strip()
    icon = str(fields.get("icon") or "").strip()

    if not title:
        errors["title"] = "Title is required"
    if not path:
        errors["path"] = "Path is required"
    elif not path.startswith("/"):
        errors["path"] = "Path must start with /"
    if not icon:
        errors["icon"] = "Icon is required"
    return errors


def _depths(tree: List[MenuNode]) -> dict:
    depths = {}
    stack = [(node, 0) for node in tree]
    while stack:
        node, depth = stack.pop()
        depths[node.id] = depth
        stack.extend((child, depth + 1) for child in node.children)
    return depths


class MenuFormDialog(QDialog):
    """
    Create/edit form for a single menu.

    ``tree`` is the current nested tree; the parent combo only offers menus
    that would not create a cycle. Pass ``menu`` to edit, or ``parent_id`` to
    pre-select the parent when adding a child.
    """
    def __init__(self, tree: List[MenuNode], menu: Optional[MenuNode] = None, parent_id=None, parent=None):
        super().__init__(parent)
        self.menu = menu
        self.setWindowTitle(f"Edit Menu – {menu.title}" if menu else "New Menu")

        # --- Widgets ---
        self.title_edit = QLineEdit(menu.title if menu else "")
        self.path_edit = QLineEdit(menu.path if menu else "")
        self.path_edit.setPlaceholderText("/dashboard")
        self.icon_edit = QLineEdit(menu.icon if menu else "")
        self.icon_edit.setPlaceholderText("home")

        self.parent_combo = QComboBox()
        self.parent_combo.addItem(TOP_LEVEL_LABEL, None)
        depths = _depths(tree)
        for node in available_parents(tree, menu.id if menu else None):
            indent = "    " * depths.get(node.id, 0)
            self.parent_combo.addItem(f"{indent}{node.title}", node.id)

        selected_parent = menu.parent_id if menu else parent_id
        combo_index = self.parent_combo.findData(selected_parent) if selected_parent is not None else 0
        self.parent_combo.setCurrentIndex(combo_index if combo_index >= 0 else 0)

        self.active_check = QCheckBox("Active")
        self.active_check.setChecked(menu.is_active if menu else True)

        self.order_spin = QSpinBox()
        self.order_spin.setRange(0, 9999)
        self.order_spin.setValue(menu.order_index if menu else 0)

        self.error_label = QLabel()
        self.error_label.setStyleSheet("color: #c0392b;")
        self.error_label.setWordWrap(True)

        # --- Buttons ---
        self.button_box = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)

        # --- Layout ---
        layout = QVBoxLayout(self)
        form_layout = QFormLayout()
        form_layout.addRow("Title:", self.title_edit)
        form_layout.addRow("Path:", self.path_edit)
        form_layout.addRow("Icon:", self.icon_edit)
        form_layout.addRow("Parent:", self.parent_combo)
        form_layout.addRow("Order:", self.order_spin)
        form_layout.addRow("", self.active_check)
        layout.addLayout(form_layout)
        layout.addWidget(self.error_label)
        layout.addWidget(self.button_box)

        # --- Connections ---
        self.button_box.accepted.connect(self.accept)
        self.button_box.rejected.connect(self.reject)
        self.title_edit.textChanged.connect(self._validate)
        self.path_edit.textChanged.connect(self._validate)
        self.icon_edit.textChanged.connect(self._validate)

        self._validate()  # Initial validation check

    def _validate(self) -> bool:
        errors = validate_menu_fields(self.get_result())
        self.error_label.setText("\n".join(errors.values()))
        self.button_box.button(QDialogButtonBox.Ok).setEnabled(not errors)
        return not errors

    def get_result(self) -> dict:
        """Returns the form as a menu draft."""
        return {
            "title": self.title_edit.text().strip(),
            "path": self.path_edit.text().strip(),
            "icon": self.icon_edit.text().strip(),
            "parent_id": self.parent_combo.currentData(),
            "is_active": self.active_check.isChecked(),
            "order_index": self.order_spin.value(),
        }
