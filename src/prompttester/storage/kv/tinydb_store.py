"""
TinyDB-backed KeyValueStore: one document per key, {"key": ..., "value": ...}.
"""

from __future__ import annotations
from tinydb import TinyDB, Query
from pathlib import Path
from typing import Any
import logging

logger = logging.getLogger(__name__)


class TinyDBStore:
    def __init__(self, path: str | Path):
        path = Path(path)
        # Ensure .json extension for TinyDB
        if path.suffix != ".json":
            path = path.with_suffix(".json")
        path.parent.mkdir(parents=True, exist_ok=True)
        self.path: Path = path
        self.db: TinyDB = TinyDB(self.path)
        logger.debug(f"Opened key/value store at {self.path}")

    def get(self, key: str, default: Any = None) -> Any:
        Entry = Query()
        doc = self.db.get(Entry.key == key)
        if doc is None:
            return default
        return doc["value"]

    def set(self, key: str, value: Any) -> None:
        Entry = Query()
        self.db.upsert({"key": key, "value": value}, Entry.key == key)
        logger.debug(f"Wrote key '{key}' to {self.path}")

    def delete(self, key: str) -> None:
        Entry = Query()
        self.db.remove(Entry.key == key)

    def close(self) -> None:
        self.db.close()
