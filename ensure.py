# ensure.py
from __future__ import annotations

import logging
from typing import Callable, Optional

from k8s import is_conflict, is_not_found

logger = logging.getLogger("ensure")


def exists(store, kind: str, name: str, namespace: Optional[str] = None) -> bool:
    """True if the object is present. Errors other than 404 propagate."""
    try:
        store.get(kind, name, namespace)
    except Exception as e:
        if is_not_found(e):
            return False
        raise
    return True


def ensure_exists(
    store,
    kind: str,
    name: str,
    namespace: Optional[str],
    build: Callable[[], dict],
) -> bool:
    """
    Create-once upsert. An existing object is left untouched, whatever its
    content; only a 404 leads to `build()` + create. A 409 on create means
    another writer got there first and counts as present.

    Returns True if the object was created by this call.
    """
    if exists(store, kind, name, namespace):
        return False
    try:
        store.create(kind, build())
    except Exception as e:
        if is_conflict(e):
            logger.info("%s %s already exists", kind, _ident(name, namespace))
            return False
        raise
    logger.info("created %s %s", kind, _ident(name, namespace))
    return True


def ensure_absent(store, kind: str, name: str, namespace: Optional[str] = None) -> bool:
    """Delete if present. Returns True if a delete was issued; absence is success."""
    if not exists(store, kind, name, namespace):
        return False
    try:
        store.delete(kind, name, namespace)
    except Exception as e:
        # gone between get and delete
        if is_not_found(e):
            return False
        raise
    logger.info("deleted %s %s", kind, _ident(name, namespace))
    return True


def _ident(name: str, namespace: Optional[str]) -> str:
    return f"{namespace}/{name}" if namespace else name
