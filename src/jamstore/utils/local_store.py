import json
import os
from typing import Any, Dict, Optional

from jamstore.utils.logger import get_logger

_logger = get_logger(__name__)

LOCAL_STORE_PATH = os.getenv("JAMSTORE_LOCAL_STORE", "data/local_store.json")


class LocalStore:
    """
    Small key-value store kept in one JSON file, scoped to this machine.

    The file is read once when the store is created. Every set/remove
    rewrites it. Write failures are logged and swallowed: the in-memory
    values stay correct for the rest of the run.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or LOCAL_STORE_PATH
        self._data: Dict[str, Any] = self._read()

    def _read(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            _logger.warning(f"Ignoring unreadable local store {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            _logger.warning(f"Ignoring local store {self.path}: not a JSON object")
            return {}
        return data

    def _write(self) -> bool:
        tmp = self.path + ".tmp"
        try:
            folder = os.path.dirname(self.path)
            if folder:
                os.makedirs(folder, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(self._data, f)
            os.replace(tmp, self.path)
        except (OSError, TypeError, ValueError) as e:
            _logger.error(f"Local store write failed ({self.path}): {e}")
            return False
        return True

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> bool:
        """Store value under key. Returns False if it could not be persisted."""
        self._data[key] = value
        return self._write()

    def remove(self, key: str) -> bool:
        if key not in self._data:
            return True
        del self._data[key]
        return self._write()
