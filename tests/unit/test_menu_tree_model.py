import os
import sys
import pytest
from unittest.mock import patch

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from PySide6.QtCore import Qt, QModelIndex

from ui.models import MenuTreeModel, MENU_MIME_TYPE
from tests.fixtures.menu_gen import sample_menu_nodes, make_nodes


@pytest.fixture
def model(qapp):
    with patch('builtins.print'):
        model = MenuTreeModel()
        model.populate(sample_menu_nodes())
    return model


def test_structure_matches_tree(model):
    assert model.rowCount() == 3
    assert model.columnCount() == 2

    settings = model.index(1, 0)
    assert model.data(settings) == "Settings"
    assert model.rowCount(settings) == 2
    assert model.data(model.index(1, 0, settings)) == "Security"
    assert model.data(model.index(1, 1, settings)) == "/security"
    assert model.parent(model.index(0, 0, settings)) == settings
    assert not model.parent(settings).isValid()


def test_custom_roles(model):
    index = model.index_for_id(4)

    assert model.data(index, MenuTreeModel.IdRole) == 4
    assert model.data(index, MenuTreeModel.ParentIdRole) == 2
    assert model.data(index, MenuTreeModel.OrderIndexRole) == 1
    assert model.data(index, MenuTreeModel.IsActiveRole) is True


def test_inactive_menus_are_grayed(qapp):
    nodes = make_nodes([(1, None, 0)])
    nodes[0].is_active = False
    with patch('builtins.print'):
        model = MenuTreeModel()
        model.populate(nodes)

    assert model.data(model.index(0, 0), Qt.ItemDataRole.ForegroundRole) is not None


def test_lookups(model):
    assert model.get_node_by_id(6).title == "Monthly"
    assert model.get_node_by_id(99) is None
    assert not model.index_for_id(99).isValid()
    assert model.node_for_index(model.index_for_id(3)).id == 3
    assert model.node_for_index(QModelIndex()) is None


def test_nodes_returns_the_flat_list(model):
    assert sorted(n.id for n in model.nodes()) == [1, 2, 3, 4, 5, 6]


def test_mime_roundtrip_carries_dragged_id(model):
    mime = model.mimeData([model.index_for_id(3), model.index_for_id(3, column=1)])

    assert mime.hasFormat(MENU_MIME_TYPE)
    assert MenuTreeModel.dragged_id_from_mime(mime) == 3
    assert model.canDropMimeData(mime, Qt.DropAction.MoveAction, -1, -1, QModelIndex())


def test_foreign_mime_is_ignored(model):
    from PySide6.QtCore import QMimeData
    mime = QMimeData()
    mime.setText("hello")

    assert MenuTreeModel.dragged_id_from_mime(mime) is None
    assert not model.canDropMimeData(mime, Qt.DropAction.MoveAction, -1, -1, QModelIndex())


def test_flags_allow_drag_and_drop(model):
    flags = model.flags(model.index_for_id(1))
    assert flags & Qt.ItemFlag.ItemIsDragEnabled
    assert flags & Qt.ItemFlag.ItemIsDropEnabled
    assert model.flags(QModelIndex()) & Qt.ItemFlag.ItemIsDropEnabled

