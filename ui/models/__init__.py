"""
UI Models package for the menu editor.
Contains the Qt Model/View data model for the menu tree.
"""

from .menu_tree_model import MenuTreeModel, MenuTreeItem, MENU_MIME_TYPE

__all__ = ['MenuTreeModel', 'MenuTreeItem', 'MENU_MIME_TYPE']
