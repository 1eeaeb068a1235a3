import pytest
import os
from unittest.mock import patch, MagicMock

# Adjust path to import from root
import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from PySide6.QtCore import QModelIndex
from PySide6.QtWidgets import QDialog, QMessageBox

from core import config
from core.drop_resolver import BEFORE, AFTER, INSIDE
from core.menu_api import MenuApiError
from core.menu_store import JsonMenuStore
from core.menu_tree import siblings_of
from ui.main_window import MainWindow
from tests.fixtures.menu_gen import sample_menu_nodes, write_store


@pytest.fixture
def main_window(qtbot, tmp_path):
    write_store(tmp_path / config.DEFAULT_STORE_FILE, sample_menu_nodes())

    # test_mode: no auto-load, no watcher, commits run synchronously
    window = MainWindow(test_mode=True, testing_path=tmp_path)
    window.menu_ctl.refresh()
    window.show()
    qtbot.addWidget(window)
    qtbot.wait(50)

    try:
        yield window
    finally:
        window.close()
        qtbot.wait(50)


def drag(window, dragged_id, target_id, offset, height=40):
    tree = window.tree_view.tree_view
    tree.begin_drag(dragged_id)
    index = window.tree_view.model.index_for_id(target_id) if target_id is not None else QModelIndex()
    tree.hover_index(index, offset, height)
    return tree.finish_drop()


def stored(tmp_path):
    return JsonMenuStore(tmp_path / config.DEFAULT_STORE_FILE).fetch_all()


def test_loads_local_store(main_window):
    model = main_window.tree_view.model
    assert model.rowCount() == 3
    assert isinstance(main_window.api, JsonMenuStore)


def test_drop_inside_reparents_and_rebuilds(main_window, qtbot, tmp_path):
    with qtbot.waitSignal(main_window.menu_ctl.move_committed):
        intent = drag(main_window, 1, 5, 20)
    assert intent.position == INSIDE

    model = main_window.tree_view.model
    assert model.rowCount() == 2
    assert model.get_node_by_id(1).parent_id == 5
    assert [n.id for n in siblings_of(stored(tmp_path), 5)] == [6, 1]


def test_drop_before_reorders_siblings(main_window, qtbot, tmp_path):
    with qtbot.waitSignal(main_window.menu_ctl.move_committed):
        drag(main_window, 4, 3, 5)

    assert [n.id for n in siblings_of(stored(tmp_path), 2)] == [4, 3]
    settings = main_window.tree_view.model.index_for_id(2)
    first_child = main_window.tree_view.model.index(0, 0, settings)
    assert main_window.tree_view.model.node_for_index(first_child).id == 4


def test_drop_on_empty_area_moves_to_end_of_root(main_window, qtbot, tmp_path):
    with qtbot.waitSignal(main_window.menu_ctl.move_committed):
        drag(main_window, 3, None, 0, 0)

    assert [n.id for n in siblings_of(stored(tmp_path), None)] == [1, 2, 5, 3]


def test_drop_into_own_subtree_does_nothing(main_window, qtbot, tmp_path):
    with qtbot.assertNotEmitted(main_window.menu_ctl.busy_changed):
        assert drag(main_window, 2, 3, 20) is None

    assert [n.to_dict() for n in stored(tmp_path)] == [n.to_dict() for n in main_window.menu_ctl.nodes]


def test_failed_move_shows_error_and_keeps_tree(main_window, qtbot):
    before = [n.to_dict() for n in main_window.tree_view.model.nodes()]
    with patch.object(main_window.api, "apply_reorder", side_effect=MenuApiError("write failed")):
        with qtbot.waitSignal(main_window.menu_ctl.move_failed):
            drag(main_window, 4, 3, 5)

    assert "Move failed" in main_window.statusBar().currentMessage()
    assert [n.to_dict() for n in main_window.tree_view.model.nodes()] == before
    assert main_window.tree_view.tree_view.dragEnabled()


def test_expand_and_collapse_buttons(main_window, qtbot):
    tree = main_window.tree_view.tree_view
    model = main_window.tree_view.model

    main_window.expand_all_button.click()
    assert tree.isExpanded(model.index_for_id(2))
    assert tree.isExpanded(model.index_for_id(5))

    main_window.collapse_all_button.click()
    assert not tree.isExpanded(model.index_for_id(2))


def test_create_child_through_form(main_window, qtbot):
    main_window.tree_view.select_id(5)
    assert main_window.add_child_button.isEnabled()

    dialog = MagicMock()
    dialog.exec.return_value = QDialog.DialogCode.Accepted
    dialog.get_result.return_value = {"title": "Yearly", "path": "/yearly", "icon": "calendar",
                                      "parent_id": 5, "is_active": True, "order_index": 1}
    with patch('ui.main_window.MenuFormDialog', return_value=dialog) as form_cls:
        node = main_window.add_child_menu()

    assert form_cls.call_args.kwargs["parent_id"] == 5
    assert node.parent_id == 5
    assert main_window.tree_view.model.get_node_by_id(node.id).title == "Yearly"
    assert main_window.tree_view.tree_view.isExpanded(main_window.tree_view.model.index_for_id(5))


def test_delete_asks_for_confirmation(main_window, qtbot):
    main_window.tree_view.select_id(2)

    with patch.object(QMessageBox, 'question', return_value=QMessageBox.StandardButton.No):
        assert main_window.delete_selected_menu() is False
    assert main_window.menu_ctl.get_node(2) is not None

    with patch.object(QMessageBox, 'question', return_value=QMessageBox.StandardButton.Yes):
        assert main_window.delete_selected_menu() is True
    assert main_window.menu_ctl.get_node(2) is None
    assert main_window.menu_ctl.get_node(3) is None


def test_watcher_skips_own_moves_but_reports_outside_edits(main_window, qtbot, tmp_path):
    main_window._start_store_watcher()
    watcher = main_window.store_watcher
    store_file = tmp_path / config.DEFAULT_STORE_FILE
    event = {'action': 'modified', 'src_path': watcher.store_path, 'dst_path': None}

    with qtbot.waitSignal(main_window.menu_ctl.move_committed):
        drag(main_window, 1, 5, 20)
    watcher.event_queue.put(event)
    with qtbot.assertNotEmitted(watcher.store_changed):
        watcher._process_queue()

    # Someone else edits the file right after our save
    nodes = stored(tmp_path)
    for node in nodes:
        if node.id == 2:
            node.title = "Preferences"
    write_store(store_file, nodes)
    watcher.event_queue.put(event)
    with qtbot.waitSignal(main_window.menu_ctl.nodes_changed):
        watcher._process_queue()
    assert main_window.menu_ctl.get_node(2).title == "Preferences"
