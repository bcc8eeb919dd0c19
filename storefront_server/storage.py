"""JSON file backed key/value store standing in for browser local storage."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

CART_KEY = "shopifyCart"
RECENT_SEARCHES_KEY = "recentProductSearches"


class LocalStorage:
    """Persists string keys to JSON values in a single file."""

    def __init__(self, storage_file: Optional[str] = None) -> None:
        """
        Initialize the storage.

        Args:
            storage_file: Path of the backing file. Defaults to ~/.storefront_storage.json
        """
        if storage_file is None:
            storage_file = str(Path.home() / ".storefront_storage.json")
        self.storage_file = storage_file
        self._data: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        """Load stored values from file if it exists."""
        if os.path.exists(self.storage_file):
            try:
                with open(self.storage_file, "r") as f:
                    data = json.load(f)
                    if isinstance(data, dict):
                        return data
                    logger.warning(f"Ignoring malformed storage file {self.storage_file}")
            except (json.JSONDecodeError, ValueError) as e:
                # If file is corrupted, start fresh
                logger.warning(f"Storage file {self.storage_file} is corrupted: {e}")
        return {}

    def _save(self) -> None:
        """Write all values back to file."""
        with open(self.storage_file, "w") as f:
            json.dump(self._data, f, default=str)
        os.chmod(self.storage_file, 0o600)

    def get_item(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def set_item(self, key: str, value: Any) -> None:
        # Round-trip through JSON so stored values match what a reload returns
        self._data[key] = json.loads(json.dumps(value, default=str))
        self._save()

    def remove_item(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._save()

    def clear(self) -> None:
        self._data = {}
        if os.path.exists(self.storage_file):
            os.remove(self.storage_file)
