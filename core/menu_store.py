"""
Local JSON-file menu backend.

Implements the same MenuApi contract as the REST client, including the
order shifting a server would do, so the editor can run without a service.
The file carries a SHA-256 checksum; every save is an atomic replace and
keeps a few timestamped backups to recover from a corrupt file.
"""

import os
import copy
import json
import hashlib
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from core.menu_api import MenuApi, MenuApiError, clean_draft
from core.menu_tree import MenuNode, siblings_of
from core.move_planner import is_descendant

SCHEMA_VERSION = 1
BACKUP_DIR = "backups"
MAX_BACKUPS = 5


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _checksum(data: dict) -> str:
    # Same dump settings on save and load, otherwise the digest differs.
    json_bytes = json.dumps(data, indent=4).encode('utf-8')
    return hashlib.sha256(json_bytes).hexdigest()


def file_digest(path) -> Optional[str]:
    """SHA-256 of the file bytes, None when the file does not exist."""
    try:
        with open(path, 'rb') as f:
            return hashlib.sha256(f.read()).hexdigest()
    except FileNotFoundError:
        return None


def _load_and_verify(filepath: Path) -> dict:
    """Loads the store file, verifies its checksum and returns the data without it."""
    with open(filepath, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError("Store file is not a JSON object.")

    checksum = data.pop("checksum", None)
    if not checksum:
        raise ValueError("Missing checksum.")
    if checksum != _checksum(data):
        raise ValueError("Checksum mismatch.")
    if not isinstance(data.get("menus"), list):
        raise ValueError("Missing menu list.")
    return data


class JsonMenuStore(MenuApi):
    def __init__(self, file_path):
        self.file_path = Path(file_path).resolve()
        self._menus: List[MenuNode] = []
        self._next_id = 1
        # Digest of the bytes last written by this store
        self.last_write_digest: Optional[str] = None
        self._load()

    # ---------------- persistence ----------------
    def _backup_dir(self) -> Path:
        return self.file_path.parent / BACKUP_DIR

    def _backups(self) -> List[Path]:
        backup_dir = self._backup_dir()
        if not backup_dir.exists():
            return []
        pattern = f"{self.file_path.stem}_*.bak"
        return sorted(backup_dir.glob(pattern), key=os.path.getmtime, reverse=True)

    def _apply_loaded(self, data: dict) -> None:
        self._menus = [MenuNode.from_dict(item) for item in data["menus"]]
        highest = max((node.id for node in self._menus if isinstance(node.id, int)), default=0)
        self._next_id = max(int(data.get("next_id", 1)), highest + 1)

    def _load(self) -> None:
        if not self.file_path.exists():
            print(f"[STORE] 📄 Menu store not found at {self.file_path}, starting empty")
            self._menus = []
            self._next_id = 1
            return

        try:
            self._apply_loaded(_load_and_verify(self.file_path))
            print(f"[STORE] 📂 Loaded {len(self._menus)} menus from {self.file_path}")
            return
        except (json.JSONDecodeError, ValueError, KeyError, TypeError, IOError) as e:
            print(f"[STORE] ⚠️ Could not load menu store '{self.file_path}': {e}")

        for backup_file in self._backups():
            try:
                print(f"[STORE] 🔄 Attempting to restore from backup: {backup_file}")
                self._apply_loaded(_load_and_verify(backup_file))
                shutil.copy(backup_file, self.file_path)
                print(f"[STORE] ✅ Restored {len(self._menus)} menus from backup: {backup_file}")
                return
            except (json.JSONDecodeError, ValueError, KeyError, TypeError, IOError) as backup_e:
                print(f"[STORE] ⚠️ Could not restore from backup '{backup_file}': {backup_e}")
                continue

        raise MenuApiError(f"Menu store '{self.file_path}' is corrupt and no valid backup exists")

    def _manage_backups(self) -> None:
        if not self.file_path.exists():
            return
        backup_dir = self._backup_dir()
        backup_dir.mkdir(exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        shutil.copy(self.file_path, backup_dir / f"{self.file_path.stem}_{timestamp}.bak")
        try:
            for old_backup in self._backups()[MAX_BACKUPS:]:
                old_backup.unlink()
        except OSError as e:
            print(f"[STORE] ⚠️ Error pruning backups: {e}")

    def _save(self) -> None:
        data = {
            "schema_version": SCHEMA_VERSION,
            "next_id": self._next_id,
            "menus": [node.to_dict() for node in self._menus],
        }
        final_data = dict(data, checksum=_checksum(data))

        temp_file_path = self.file_path.with_suffix(self.file_path.suffix + '.tmp')
        try:
            payload = json.dumps(final_data, indent=4)
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_file_path, 'w', encoding='utf-8', newline='') as f:
                f.write(payload)
            self._manage_backups()
            shutil.move(str(temp_file_path), str(self.file_path))
            self.last_write_digest = hashlib.sha256(payload.encode('utf-8')).hexdigest()
        except (IOError, TypeError) as e:
            print(f"[STORE] ❌ Error saving menus: {e}")
            raise MenuApiError(f"Could not save menus: {e}") from e
        print(f"[STORE] 💾 Saved {len(self._menus)} menus to {self.file_path}")

    def _find(self, node_id) -> MenuNode:
        for node in self._menus:
            if node.id == node_id:
                return node
        raise MenuApiError(f"Menu {node_id} not found", status=404)

    def _check_parent(self, node_id, parent_id) -> None:
        if parent_id is None:
            return
        self._find(parent_id)
        if parent_id == node_id or is_descendant(self._menus, node_id, parent_id):
            raise MenuApiError(f"Menu {node_id} cannot be moved under its own descendant {parent_id}", status=400)

    def _transaction(self, change):
        """Re-reads the file, runs change() on the list and saves; restores the list if anything fails."""
        self._load()
        snapshot = copy.deepcopy(self._menus)
        next_id = self._next_id
        try:
            result = change()
            self._save()
            return result
        except Exception:
            self._menus = snapshot
            self._next_id = next_id
            raise

    # ---------------- MenuApi ----------------
    def fetch_all(self) -> List[MenuNode]:
        # Always from disk so edits made by another process show up
        self._load()
        return [node.copy() for node in self._menus]

    def get(self, node_id) -> Optional[MenuNode]:
        self._load()
        try:
            return self._find(node_id).copy()
        except MenuApiError:
            return None

    def apply_reparent(self, node_id, new_parent_id) -> MenuNode:
        self._load()
        current = self._find(node_id)
        if current.parent_id == new_parent_id:
            # Nothing to write
            return current.copy()

        def change():
            node = self._find(node_id)
            self._check_parent(node_id, new_parent_id)
            if node.parent_id == new_parent_id:
                return node.copy()
            new_siblings = siblings_of(self._menus, new_parent_id, exclude_id=node_id)
            node.parent_id = new_parent_id
            node.order_index = (new_siblings[-1].order_index + 1) if new_siblings else 0
            node.updated_at = _now()
            print(f"[STORE] 🔀 Menu {node_id} moved under {new_parent_id}")
            return node.copy()

        return self._transaction(change)

    def apply_reorder(self, node_id, new_index: int, previous_index: Optional[int] = None) -> MenuNode:
        """
        Places the menu at new_index among its siblings.

        The sibling group is renumbered 0..n-1 but only menus whose
        order_index actually changes are touched, which for a move from
        old to new position means the ones in between.
        """
        def change():
            node = self._find(node_id)
            known_ids = {menu.id for menu in self._menus}
            parent_id = node.parent_id if node.parent_id in known_ids else None
            siblings = siblings_of(self._menus, parent_id, exclude_id=node_id)
            index = max(0, min(int(new_index), len(siblings)))
            siblings.insert(index, node)

            touched = 0
            stamp = _now()
            for position, sibling in enumerate(siblings):
                if sibling.order_index != position:
                    sibling.order_index = position
                    sibling.updated_at = stamp
                    touched += 1
            print(f"[STORE] ↕️ Menu {node_id} reordered {previous_index} -> {index}, {touched} menus updated")
            return node.copy()

        return self._transaction(change)

    def create(self, draft: dict) -> MenuNode:
        fields = clean_draft(draft)
        if not str(fields.get("title", "")).strip():
            raise MenuApiError("Title is required", status=400)

        def change():
            parent_id = fields.get("parent_id")
            self._check_parent(None, parent_id)
            stamp = _now()
            node = MenuNode.from_dict(dict(fields, id=self._next_id, created_at=stamp, updated_at=stamp))
            self._next_id += 1
            self._menus.append(node)
            print(f"[STORE] ➕ Created menu {node.id} '{node.title}'")
            return node.copy()

        return self._transaction(change)

    def update(self, node_id, fields: dict) -> MenuNode:
        fields = clean_draft(fields)

        def change():
            node = self._find(node_id)
            if "parent_id" in fields:
                self._check_parent(node_id, fields["parent_id"])
            for key, value in fields.items():
                if key == "order_index":
                    value = int(value or 0)
                elif key == "is_active":
                    value = bool(value)
                setattr(node, key, value)
            node.updated_at = _now()
            print(f"[STORE] ✏️ Updated menu {node_id}: {sorted(fields)}")
            return node.copy()

        return self._transaction(change)

    def delete(self, node_id) -> bool:
        """Deletes the menu together with its whole subtree."""
        def change():
            self._find(node_id)
            doomed = {node_id}
            doomed.update(node.id for node in self._menus if is_descendant(self._menus, node_id, node.id))
            self._menus = [node for node in self._menus if node.id not in doomed]
            print(f"[STORE] 🗑️ Deleted menu {node_id} and {len(doomed) - 1} descendants")
            return True

        return self._transaction(change)
