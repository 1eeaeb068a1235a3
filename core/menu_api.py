# core/menu_api.py

"""
Data-access contract for menus, plus the REST client implementation.

Every backend returns MenuNode objects and reports persistence problems by
raising MenuApiError, so callers only ever handle one exception type.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

import requests

from core.menu_tree import MenuNode

DRAFT_FIELDS = ("title", "path", "icon", "is_active", "order_index", "parent_id")


class MenuApiError(Exception):
    """A menu could not be fetched or persisted."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class MenuApi(ABC):
    """What the editor needs from a menu backend."""

    @abstractmethod
    def fetch_all(self) -> List[MenuNode]:
        """Flat list of every menu, inactive ones included."""

    @abstractmethod
    def get(self, node_id) -> Optional[MenuNode]:
        """Single menu, or None when it does not exist."""

    @abstractmethod
    def apply_reparent(self, node_id, new_parent_id) -> MenuNode:
        """Changes only the parent reference."""

    @abstractmethod
    def apply_reorder(self, node_id, new_index: int, previous_index: Optional[int] = None) -> MenuNode:
        """Changes only the sibling order; previous_index is an optimisation hint."""

    @abstractmethod
    def create(self, draft: dict) -> MenuNode:
        pass

    @abstractmethod
    def update(self, node_id, fields: dict) -> MenuNode:
        pass

    @abstractmethod
    def delete(self, node_id) -> bool:
        pass


def clean_draft(fields: dict) -> dict:
    """Keeps only the user-editable fields."""
    return {key: value for key, value in fields.items() if key in DRAFT_FIELDS}


def _flatten_payload(items: list) -> List[dict]:
    # The server may answer with a nested tree; the editor works on the flat list.
    flat = []
    stack = list(reversed(items or []))
    while stack:
        item = stack.pop()
        flat.append(item)
        stack.extend(reversed(item.get("children") or []))
    return flat


class HttpMenuApi(MenuApi):
    """
    Client for the menu REST service.

    Endpoints (relative to base_url):
        GET    /api/menus                 all menus
        GET    /api/menus/{id}            one menu
        POST   /api/menus                 create
        PUT    /api/menus/{id}            update fields
        DELETE /api/menus/{id}            delete
        PATCH  /api/menus/{id}/move       {"parent_id": ...}
        PATCH  /api/menus/{id}/reorder    {"new_index": ..., "old_index": ...}

    Responses are wrapped as {"status", "message", "data", "error"?}.
    """

    def __init__(self, base_url: str, timeout: float = 10, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url(self, suffix: str = "") -> str:
        return f"{self.base_url}/api/menus{suffix}"

    def _request(self, method: str, suffix: str = "", payload: Optional[dict] = None, expect_data: bool = True):
        url = self._url(suffix)
        try:
            response = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            print(f"[API] ❌ {method} {url} timed out after {self.timeout}s")
            raise MenuApiError(f"Request to {url} timed out") from e
        except requests.exceptions.RequestException as e:
            print(f"[API] ❌ {method} {url} failed: {e}")
            raise MenuApiError(f"Could not reach menu service: {e}") from e

        if not response.ok:
            detail = response.reason or ""
            try:
                body = response.json()
                if isinstance(body, dict):
                    detail = body.get("error") or body.get("message") or detail
            except ValueError:
                pass
            print(f"[API] ❌ {method} {url} -> {response.status_code} {detail}")
            raise MenuApiError(f"{method} {url} failed: {response.status_code} {detail}".strip(),
                               status=response.status_code)

        if not expect_data:
            return None

        try:
            body = response.json()
        except ValueError as e:
            raise MenuApiError(f"Malformed response from {url}", status=response.status_code) from e
        if not isinstance(body, dict) or "data" not in body:
            raise MenuApiError(f"Malformed response from {url}: missing 'data'", status=response.status_code)
        return body["data"]

    def _node(self, data) -> MenuNode:
        if not isinstance(data, dict) or "id" not in data:
            raise MenuApiError("Malformed menu in response")
        return MenuNode.from_dict(data)

    # ---------------- MenuApi ----------------
    def fetch_all(self) -> List[MenuNode]:
        data = self._request("GET")
        if not isinstance(data, list):
            raise MenuApiError("Malformed response: expected a list of menus")
        nodes = [self._node(item) for item in _flatten_payload(data)]
        print(f"[API] 📥 Fetched {len(nodes)} menus from {self.base_url}")
        return nodes

    def get(self, node_id) -> Optional[MenuNode]:
        try:
            return self._node(self._request("GET", f"/{node_id}"))
        except MenuApiError as e:
            if e.status == 404:
                return None
            raise

    def apply_reparent(self, node_id, new_parent_id) -> MenuNode:
        print(f"[API] 🔀 Moving menu {node_id} under {new_parent_id}")
        return self._node(self._request("PATCH", f"/{node_id}/move", {"parent_id": new_parent_id}))

    def apply_reorder(self, node_id, new_index: int, previous_index: Optional[int] = None) -> MenuNode:
        payload = {"new_index": new_index}
        if previous_index is not None:
            payload["old_index"] = previous_index
        print(f"[API] ↕️ Reordering menu {node_id} to index {new_index}")
        return self._node(self._request("PATCH", f"/{node_id}/reorder", payload))

    def create(self, draft: dict) -> MenuNode:
        return self._node(self._request("POST", "", clean_draft(draft)))

    def update(self, node_id, fields: dict) -> MenuNode:
        return self._node(self._request("PUT", f"/{node_id}", clean_draft(fields)))

    def delete(self, node_id) -> bool:
        self._request("DELETE", f"/{node_id}", expect_data=False)
        print(f"[API] 🗑️ Deleted menu {node_id}")
        return True
