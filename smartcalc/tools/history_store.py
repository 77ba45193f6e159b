# smartcalc/tools/history_store.py  (local storage for calculation history)
import json
import os
from typing import Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from smartcalc.config import HISTORY_KEY
from smartcalc.errors import PersistenceError
from smartcalc.observability import log_trace
from smartcalc.state import HistoryEntry

_entries = TypeAdapter(List[HistoryEntry])


class MemoryStore:
    def __init__(self, data: Optional[Dict[str, str]] = None):
        self.data = dict(data or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str):
        self.data[key] = value


class JsonFileStore:
    """String key-value store kept as a single JSON object on disk."""

    def __init__(self, path: str):
        self.path = path

    def _read(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"{self.path} does not hold a JSON object")
        return data

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str):
        try:
            data = self._read()
        except PersistenceError:
            data = {}
        data[key] = value
        try:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            tmp = self.path + ".tmp"
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, self.path)
        except OSError as e:
            raise PersistenceError(f"Cannot write {self.path}: {e}") from e


class HistoryStore:
    def __init__(self, kv, key: str = HISTORY_KEY):
        self.kv = kv
        self.key = key
        self.entries: List[HistoryEntry] = []

    def load(self) -> List[HistoryEntry]:
        """
        Return stored entries, newest first. Missing or unreadable data
        yields an empty history.
        """
        try:
            raw = self.kv.get(self.key)
            if raw is None:
                self.entries = []
            else:
                self.entries = _entries.validate_json(raw)
        except (PersistenceError, ValidationError, ValueError) as e:
            log_trace("history.load_error", {"key": self.key, "error": str(e)})
            self.entries = []
        return list(self.entries)

    def save(self, entries: List[HistoryEntry]) -> bool:
        try:
            self.kv.set(self.key, _entries.dump_json(list(entries)).decode("utf-8"))
        except (PersistenceError, OSError, TypeError, ValueError) as e:
            log_trace("history.save_error", {"key": self.key, "error": str(e)})
            return False
        self.entries = list(entries)
        log_trace("history.saved", {"count": len(self.entries)})
        return True

    def append(self, entry: HistoryEntry) -> bool:
        return self.save([entry] + self.entries)
