"""
client_state.py
---------------
Small JSON-backed holder for viewer preferences that belong to this user only:
the active Pinecone index name and per-view state such as the namespace sort mode.

Instances are created explicitly and passed around; nothing here is global.
"""
import json
import os
from typing import Any, Dict, Optional

from utils.logger import get_logger

log = get_logger("client_state")

DEFAULT_STORAGE_KEY = "pineconeIndex"

def view_key(index_name: Optional[str], namespace: Optional[str], sort_mode: str) -> str:
    return f"pinecone:vectorList:{index_name or '_'}:{namespace or '__none__'}:{sort_mode}"


class ClientState:
    def __init__(self, path: str, storage_key: str = DEFAULT_STORAGE_KEY):
        self.path = path
        self.storage_key = storage_key
        self._index_name = ""
        self._views: Dict[str, Any] = {}

    def load(self) -> "ClientState":
        """Read saved state; a missing or unreadable file leaves the defaults."""
        if not os.path.exists(self.path):
            return self
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            log.warning("Ignoring unreadable client state at %s", self.path)
            return self
        if not isinstance(data, dict):
            return self
        name = data.get(self.storage_key)
        if isinstance(name, str):
            self._index_name = name
        views = data.get("views")
        if isinstance(views, dict):
            self._views = views
        return self

    def save(self) -> None:
        payload = {self.storage_key: self._index_name, "views": self._views}
        try:
            folder = os.path.dirname(self.path)
            if folder:
                os.makedirs(folder, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
        except OSError as e:
            log.warning("Could not save client state to %s: %s", self.path, e)

    @property
    def index_name(self) -> str:
        return self._index_name

    def set_index_name(self, name: str) -> None:
        self._index_name = (name or "").strip()
        self.save()

    def get_view(self, key: str, default: Any = None) -> Any:
        return self._views.get(key, default)

    def set_view(self, key: str, value: Any) -> None:
        self._views[key] = value
        self.save()
