from PySide6.QtWidgets import (
    QMainWindow, QWidget, QPushButton, QVBoxLayout, QHBoxLayout,
    QLabel, QStyle, QMessageBox, QDialog
)
from PySide6.QtCore import Slot

# Core components
from core import config
from core.expand_state import ExpandedSet
from core.store_watcher import StoreWatcher

# UI components
from .widgets.menu_tree_view import MenuTreeView
from .dialogs.menu_form_dialog import MenuFormDialog

# Controllers
from .controllers.menu_controller import MenuController


class MainWindow(QMainWindow):
    def __init__(self, test_mode=False, testing_path=None, api=None):
        super().__init__()
        print("[WINDOW] 🪟 MainWindow.__init__ started")
        self.setWindowTitle("Menu Editor")
        self.setGeometry(100, 100, 900, 700)

        self.test_mode = test_mode
        self.testing_path = testing_path

        # Settings and backend FIRST
        self.settings = config.load_settings(base_path=testing_path)
        self.api = api if api is not None else config.create_api(self.settings, base_path=testing_path)
        self.expanded = ExpandedSet()
        self.store_watcher = None

        self.menu_ctl = MenuController(
            self.api,
            expanded=self.expanded,
            use_threads=not test_mode,
            expand_all_on_load=self.settings["expand_all_on_load"],
            parent=self,
        )

        self._setup_ui()
        self._connect_signals()
        self._update_buttons(None)

        # In test mode the test decides when to load and whether to watch.
        if not test_mode:
            self.menu_ctl.refresh()
            if self.settings["backend"] == "local" and self.settings["watch_store"]:
                self._start_store_watcher()
        print("[WINDOW] ✅ MainWindow ready")

    def _setup_ui(self):
        main_widget = QWidget()
        self.setCentralWidget(main_widget)
        main_layout = QVBoxLayout(main_widget)

        # Top Controls
        top_controls_layout = QHBoxLayout()
        self.new_button = QPushButton("New Menu")
        self.new_button.setIcon(self.style().standardIcon(QStyle.StandardPixmap.SP_FileIcon))
        self.add_child_button = QPushButton("Add Child")
        self.edit_button = QPushButton("Edit")
        self.delete_button = QPushButton("Delete")
        self.delete_button.setIcon(self.style().standardIcon(QStyle.StandardPixmap.SP_TrashIcon))
        self.expand_all_button = QPushButton("Expand All")
        self.collapse_all_button = QPushButton("Collapse All")
        self.refresh_button = QPushButton()
        self.refresh_button.setIcon(self.style().standardIcon(QStyle.StandardPixmap.SP_BrowserReload))
        self.refresh_button.setToolTip("Re-fetch menus")

        top_controls_layout.addWidget(self.new_button)
        top_controls_layout.addWidget(self.add_child_button)
        top_controls_layout.addWidget(self.edit_button)
        top_controls_layout.addWidget(self.delete_button)
        top_controls_layout.addStretch(1)
        top_controls_layout.addWidget(self.expand_all_button)
        top_controls_layout.addWidget(self.collapse_all_button)
        top_controls_layout.addWidget(self.refresh_button)

        self.source_label = QLabel(self._source_description())
        self.source_label.setStyleSheet("color: gray;")

        self.tree_view = MenuTreeView(self.expanded)

        main_layout.addLayout(top_controls_layout)
        main_layout.addWidget(self.source_label)
        main_layout.addWidget(self.tree_view, 1)
        self.statusBar().showMessage("Ready")

    def _source_description(self):
        if self.settings["backend"] == "http":
            return f"Menu service: {self.settings['api_base_url']}"
        return f"Local store: {config.get_store_path(self.settings, self.testing_path)}"

    def _connect_signals(self):
        # Toolbar
        self.new_button.clicked.connect(self.create_menu)
        self.add_child_button.clicked.connect(self.add_child_menu)
        self.edit_button.clicked.connect(self.edit_selected_menu)
        self.delete_button.clicked.connect(self.delete_selected_menu)
        self.expand_all_button.clicked.connect(self.menu_ctl.expand_all)
        self.collapse_all_button.clicked.connect(self.menu_ctl.collapse_all)
        self.refresh_button.clicked.connect(self.menu_ctl.refresh)

        # Tree -> controller
        self.tree_view.move_requested.connect(self.menu_ctl.request_move)
        self.tree_view.menu_selected.connect(self._update_buttons)
        self.tree_view.menu_activated.connect(self.edit_menu)

        # Controller -> UI
        self.menu_ctl.nodes_changed.connect(self.tree_view.populate)
        self.menu_ctl.expansion_changed.connect(self.tree_view.apply_expansion)
        self.menu_ctl.busy_changed.connect(self._on_busy_changed)
        self.menu_ctl.fetch_failed.connect(self._on_fetch_failed)
        self.menu_ctl.move_committed.connect(self._on_own_write)
        self.menu_ctl.move_failed.connect(self._on_move_failed)
        self.menu_ctl.move_rejected.connect(lambda msg: self.statusBar().showMessage(msg, 3000))
        self.menu_ctl.operation_succeeded.connect(self._on_own_write)
        self.menu_ctl.operation_failed.connect(self._on_operation_failed)

    # ---------------- store watcher ----------------
    def _start_store_watcher(self):
        store_path = config.get_store_path(self.settings, self.testing_path)
        self.store_watcher = StoreWatcher(
            store_path, own_digest=lambda: getattr(self.api, 'last_write_digest', None))
        self.store_watcher.store_changed.connect(self._on_store_changed)
        self.store_watcher.start()

    def _stop_store_watcher(self):
        if self.store_watcher:
            self.store_watcher.stop()
            self.store_watcher = None

    @Slot()
    def _on_store_changed(self):
        print("[WINDOW] 🔔 Menu store changed on disk, re-fetching")
        self.statusBar().showMessage("Menus changed on disk, reloading...", 2000)
        self.menu_ctl.refresh()

    @Slot(str)
    def _on_own_write(self, message):
        self.statusBar().showMessage(message, 3000)

    # ---------------- controller feedback ----------------
    @Slot(bool)
    def _on_busy_changed(self, busy):
        self.tree_view.set_interaction_enabled(not busy)
        for button in (self.new_button, self.refresh_button):
            button.setEnabled(not busy)
        self._update_buttons(None if busy else self.tree_view.selected_id())
        if busy:
            self.statusBar().showMessage("Saving move...")

    @Slot(str)
    def _on_fetch_failed(self, message):
        self.statusBar().showMessage(f"Could not load menus: {message}", 5000)

    @Slot(str)
    def _on_move_failed(self, message):
        self.statusBar().showMessage(f"Move failed: {message}", 5000)
        if not self.test_mode:
            QMessageBox.warning(self, "Move Failed", f"The menu could not be moved:\n\n{message}")

    @Slot(str)
    def _on_operation_failed(self, message):
        self.statusBar().showMessage(f"Error: {message}", 5000)
        if not self.test_mode:
            QMessageBox.warning(self, "Menu Editor", message)

    @Slot(object)
    def _update_buttons(self, selected_id):
        has_selection = selected_id is not None and not self.menu_ctl.is_busy
        for button in (self.add_child_button, self.edit_button, self.delete_button):
            button.setEnabled(has_selection)

    # ---------------- CRUD ----------------
    def _open_form(self, menu=None, parent_id=None):
        """Runs the menu form; returns the draft or None when cancelled."""
        dlg = MenuFormDialog(self.menu_ctl.tree(), menu=menu, parent_id=parent_id, parent=self)
        if dlg.exec() == QDialog.DialogCode.Accepted:
            return dlg.get_result()
        return None

    @Slot()
    def create_menu(self, parent_id=None):
        draft = self._open_form(parent_id=parent_id)
        if draft is None:
            return None
        node = self.menu_ctl.create_menu(draft)
        if node is not None:
            self.tree_view.select_id(node.id)
        return node

    @Slot()
    def add_child_menu(self):
        selected_id = self.tree_view.selected_id()
        if selected_id is None:
            return None
        return self.create_menu(parent_id=selected_id)

    @Slot()
    def edit_selected_menu(self):
        selected_id = self.tree_view.selected_id()
        if selected_id is not None:
            return self.edit_menu(selected_id)
        return None

    @Slot(object)
    def edit_menu(self, node_id):
        menu = self.menu_ctl.get_node(node_id)
        if menu is None:
            return None
        draft = self._open_form(menu=menu)
        if draft is None:
            return None
        return self.menu_ctl.update_menu(node_id, draft)

    @Slot()
    def delete_selected_menu(self):
        selected_id = self.tree_view.selected_id()
        menu = self.menu_ctl.get_node(selected_id) if selected_id is not None else None
        if menu is None:
            return False

        reply = QMessageBox.question(
            self, "Delete Menu",
            f"Delete '{menu.title}' and all of its sub-menus?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        if reply != QMessageBox.StandardButton.Yes:
            return False
        return self.menu_ctl.delete_menu(selected_id)

    def closeEvent(self, event):
        """Waits for an in-flight move and stops the store watcher."""
        print("[WINDOW] 🚪 Application closing...")
        self.menu_ctl.wait_for_commit()
        self._stop_store_watcher()
        event.accept()
