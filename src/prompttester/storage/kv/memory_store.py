from __future__ import annotations
from typing import Any
import copy


class MemoryStore:
    """
    Dict-backed KeyValueStore for tests and ephemeral runs.
    Values are deep-copied in and out so callers can't alias stored state.
    """

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)
