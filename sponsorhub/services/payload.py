"""Stop-list payload filtering for writes against a drifting schema."""

from collections.abc import Iterable, Mapping
from typing import Any


class _Unset:
    """Marker for "not provided"; None is a real value (e.g. a global tenant_id)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def pick(obj: Mapping[str, Any], allowed_keys: Iterable[str]) -> dict[str, Any]:
    """Keep only whitelisted keys that are present on obj and not UNSET."""
    out: dict[str, Any] = {}
    for k in allowed_keys:
        if k in obj and obj[k] is not UNSET:
            out[k] = obj[k]
    return out
