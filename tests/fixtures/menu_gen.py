import json

from core.menu_tree import MenuNode
from core.menu_store import _checksum, SCHEMA_VERSION


def make_node(node_id, parent_id=None, order_index=0, title=None, is_active=True):
    """Creates a MenuNode with sensible defaults for tests."""
    title = title or f"Menu {node_id}"
    return MenuNode(
        id=node_id,
        title=title,
        path=f"/{title.lower().replace(' ', '-')}",
        icon="folder",
        is_active=is_active,
        order_index=order_index,
        parent_id=parent_id,
    )


def make_nodes(rows):
    """
    Builds a flat node list from (id, parent_id, order_index) tuples.

    Example: [(1, None, 0), (2, 1, 0), (3, 1, 1)]
    """
    return [make_node(node_id, parent_id, order_index) for node_id, parent_id, order_index in rows]


def sample_menu_nodes():
    """
    A small two-level menu:

        1 Dashboard
        2 Settings
            3 Profile
            4 Security
        5 Reports
            6 Monthly
    """
    return [
        make_node(1, None, 0, "Dashboard"),
        make_node(2, None, 1, "Settings"),
        make_node(3, 2, 0, "Profile"),
        make_node(4, 2, 1, "Security"),
        make_node(5, None, 2, "Reports"),
        make_node(6, 5, 0, "Monthly"),
    ]


def write_store(path, nodes, next_id=None):
    """Writes a valid, checksummed menu store file."""
    data = {
        "schema_version": SCHEMA_VERSION,
        "next_id": next_id or (max((n.id for n in nodes), default=0) + 1),
        "menus": [node.to_dict() for node in nodes],
    }
    data["checksum"] = _checksum(dict(data))
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=4)
    return path
