import os
import sys
import copy
import pytest
from unittest.mock import patch

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from core.move_planner import MovePlan, plan_move, is_descendant, ancestor_ids
from core.drop_resolver import BEFORE, AFTER, INSIDE
from tests.fixtures.menu_gen import make_nodes, sample_menu_nodes


@pytest.fixture(autouse=True)
def quiet():
    with patch('builtins.print'):
        yield


@pytest.fixture
def three_nodes():
    # Root(1), ChildA(2, parent 1, order 0), ChildB(3, parent 1, order 1)
    return make_nodes([(1, None, 0), (2, 1, 0), (3, 1, 1)])


def test_before_sibling(three_nodes):
    plan = plan_move(3, 2, BEFORE, three_nodes)
    assert (plan.new_parent_id, plan.new_index, plan.parent_changed) == (1, 0, False)
    assert plan.previous_index == 1


def test_inside_own_parent_excludes_dragged_from_count(three_nodes):
    plan = plan_move(2, 1, INSIDE, three_nodes)
    assert (plan.new_parent_id, plan.new_index, plan.parent_changed) == (1, 1, False)


def test_after_target_moves_to_targets_parent():
    nodes = sample_menu_nodes()
    plan = plan_move(6, 3, AFTER, nodes)

    assert plan == MovePlan(new_parent_id=2, new_index=1, parent_changed=True, previous_index=0)


def test_before_root_promotes_child_to_root():
    nodes = sample_menu_nodes()
    plan = plan_move(4, 1, BEFORE, nodes)

    assert (plan.new_parent_id, plan.new_index, plan.parent_changed) == (None, 0, True)


def test_inside_leaf_gets_index_zero():
    nodes = sample_menu_nodes()
    plan = plan_move(1, 3, INSIDE, nodes)

    assert (plan.new_parent_id, plan.new_index, plan.parent_changed) == (3, 0, True)


def test_null_target_appends_to_root_level():
    nodes = sample_menu_nodes()
    plan = plan_move(3, None, AFTER, nodes)

    assert (plan.new_parent_id, plan.new_index, plan.parent_changed) == (None, 3, True)


def test_null_target_in_single_node_list():
    nodes = make_nodes([(1, None, 0)])
    plan = plan_move(1, None, BEFORE, nodes)

    assert (plan.new_parent_id, plan.new_index, plan.parent_changed) == (None, 0, False)


@pytest.mark.parametrize("position", [BEFORE, AFTER, INSIDE])
def test_self_drop_is_no_op(three_nodes, position):
    assert plan_move(2, 2, position, three_nodes) is None


@pytest.mark.parametrize("position", [BEFORE, AFTER, INSIDE])
def test_drop_into_own_subtree_is_no_op(position):
    nodes = make_nodes([(1, None, 0), (2, 1, 0), (3, 2, 0), (4, 3, 0)])
    assert plan_move(1, 4, position, nodes) is None
    assert plan_move(2, 3, position, nodes) is None


def test_unknown_ids_are_no_op(three_nodes):
    assert plan_move(42, 2, BEFORE, three_nodes) is None
    assert plan_move(2, 42, BEFORE, three_nodes) is None


def test_unknown_position_raises(three_nodes):
    with pytest.raises(ValueError):
        plan_move(2, 3, "beside", three_nodes)


def test_planner_does_not_mutate_nodes():
    nodes = sample_menu_nodes()
    before = copy.deepcopy([n.to_dict() for n in nodes])

    plan_move(6, 1, INSIDE, nodes)
    plan_move(3, None, AFTER, nodes)

    assert [n.to_dict() for n in nodes] == before


def test_orphan_dropped_at_root_repairs_parent():
    nodes = make_nodes([(1, None, 0), (2, 99, 1)])
    plan = plan_move(2, 1, AFTER, nodes)

    assert plan.new_parent_id is None
    assert plan.parent_changed is True


def test_is_identity(three_nodes):
    dragged = three_nodes[2]  # node 3 at index 1
    assert plan_move(3, 2, AFTER, three_nodes).is_identity(dragged, three_nodes)
    assert not plan_move(3, 2, BEFORE, three_nodes).is_identity(dragged, three_nodes)


def test_ancestor_walk_terminates_on_cycle():
    nodes = make_nodes([(1, 2, 0), (2, 1, 0)])

    ancestors = ancestor_ids(nodes, 1)

    assert len(ancestors) <= len(nodes)
    assert is_descendant(nodes, 2, 1)
    assert not is_descendant(nodes, 5, 1)
    assert not is_descendant(nodes, None, 1)
