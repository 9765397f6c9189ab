"""Finalizer handling for Client resources."""

from __future__ import annotations

from typing import Any, Protocol

from ..constants import FINALIZER


class ObjectStore(Protocol):
    """Persistence needed by FinalizerGuard."""

    def update(self, obj: dict[str, Any]) -> dict[str, Any]:
        ...


def has_finalizer(obj: dict[str, Any], finalizer: str = FINALIZER) -> bool:
    """Return True if the object carries the finalizer."""
    return finalizer in (obj.get("metadata", {}).get("finalizers") or [])


def is_being_deleted(obj: dict[str, Any]) -> bool:
    """Return True if deletion of the object has been requested."""
    return bool(obj.get("metadata", {}).get("deletionTimestamp"))


class FinalizerGuard:
    """Idempotent add/remove of the controller finalizer, persisted through the store."""

    def __init__(self, store: ObjectStore, finalizer: str = FINALIZER):
        self.store = store
        self.finalizer = finalizer

    def has(self, obj: dict[str, Any]) -> bool:
        return has_finalizer(obj, self.finalizer)

    def add(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Add the finalizer if missing and persist. Returns the stored object."""
        if self.has(obj):
            return obj
        meta = obj.setdefault("metadata", {})
        meta["finalizers"] = list(meta.get("finalizers") or []) + [self.finalizer]
        return self.store.update(obj)

    def remove(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Remove the finalizer if present and persist. Returns the stored object."""
        if not self.has(obj):
            return obj
        meta = obj["metadata"]
        meta["finalizers"] = [f for f in meta["finalizers"] if f != self.finalizer]
        return self.store.update(obj)
