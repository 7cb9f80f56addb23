from __future__ import annotations
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """
    Whole-value persistence: every `set` replaces the stored value for that key.
    Values must be JSON-compatible.
    """

    def get(self, key: str, default: Any = None) -> Any:
        """Returns the stored value, or `default` if the key is absent."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Stores `value` under `key`, replacing anything already there."""
        ...

    def delete(self, key: str) -> None:
        """Removes `key`; missing keys are ignored."""
        ...
