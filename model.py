# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional

FINALIZER = "finalizer.network.harvester.io/dummy"


class Phase(str, Enum):
    INVALID_SPEC = "InvalidSpec"
    ERROR_ENSURING_DEPENDENT = "ErrorEnsuringDependent"
    READY = "Ready"
    DELETION_BLOCKED = "DeletionBlocked"
    DELETED = "Deleted"


def _meta(obj: dict) -> dict:
    return (obj or {}).get("metadata", {}) or {}


def obj_name(obj: dict) -> str:
    return _meta(obj).get("name", "")


def obj_namespace(obj: dict) -> str:
    return _meta(obj).get("namespace", "")


def deletion_requested(obj: dict) -> bool:
    return bool(_meta(obj).get("deletionTimestamp"))


@dataclass
class NetworkSpec:
    bridge_name: Optional[str] = None
    nad_name: Optional[str] = None
    nad_namespace: Optional[str] = None

    @classmethod
    def from_object(cls, obj: dict) -> "NetworkSpec":
        spec = (obj or {}).get("spec", {}) or {}
        return cls(
            bridge_name=spec.get("bridgeName") or None,
            nad_name=spec.get("nadName") or None,
            nad_namespace=spec.get("nadNamespace") or None,
        )

    def missing_fields(self) -> List[str]:
        missing = []
        if not self.bridge_name:
            missing.append("bridgeName")
        if not self.nad_name:
            missing.append("nadName")
        if not self.nad_namespace:
            missing.append("nadNamespace")
        return missing

    @property
    def valid(self) -> bool:
        return not self.missing_fields()

    @property
    def full_nad_name(self) -> str:
        return f"{self.nad_namespace}/{self.nad_name}"


REQUIRED_MESSAGE = "bridgeName, nadName and nadNamespace are required"


@dataclass
class NetworkStatus:
    phase: Phase
    reason: str = ""

    def to_dict(self) -> dict:
        return {"phase": self.phase.value, "reason": self.reason}


class Finalizers:
    """Finalizer list treated as a set; order of unrelated entries is kept."""

    def __init__(self, items: Optional[Iterable[str]] = None):
        self._items: List[str] = []
        for item in items or []:
            self.add(item)

    @classmethod
    def of(cls, obj: dict) -> "Finalizers":
        return cls(_meta(obj).get("finalizers") or [])

    def __contains__(self, item: str) -> bool:
        return item in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def add(self, item: str) -> bool:
        if item in self._items:
            return False
        self._items.append(item)
        return True

    def remove(self, item: str) -> bool:
        if item not in self._items:
            return False
        self._items = [f for f in self._items if f != item]
        return True

    def to_list(self) -> List[str]:
        return list(self._items)

    def apply(self, obj: dict) -> dict:
        """Return a copy of obj carrying this finalizer list."""
        out = dict(obj)
        meta = dict(_meta(obj))
        meta["finalizers"] = self.to_list()
        out["metadata"] = meta
        return out


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation. Fatal outcomes are raised instead."""

    requeue_after: Optional[float] = None

    @property
    def complete(self) -> bool:
        return self.requeue_after is None


class ReconcilePlan(dict):
    """A small, json-serializable planning object."""

    # kept as dict subclass for easy printing/JSON dumping


@dataclass
class UsageReport:
    users: List[str] = field(default_factory=list)

    @property
    def in_use(self) -> bool:
        return bool(self.users)

    def message(self) -> str:
        return f"Network in use by {len(self.users)} objects: {','.join(self.users)}"
