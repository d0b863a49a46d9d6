from __future__ import annotations

import copy
from typing import Dict, List, Optional, Tuple

import pytest
from kubernetes.client.rest import ApiException

from config import Settings
from reconcile import Reconciler
from registry import NETWORK, default_registry

Key = Tuple[str, str, str]  # (kind, namespace, name)


class FakeStore:
    """In-memory store with the KubeStore interface. Records every call."""

    def __init__(self):
        self.objects: Dict[Key, dict] = {}
        self.calls: List[Tuple[str, str, str, str]] = []
        self.fail: Dict[Tuple[str, str], Exception] = {}
        self._rv = 0

    # test helpers
    def put(self, kind: str, obj: dict) -> dict:
        obj = copy.deepcopy(obj)
        meta = obj.setdefault("metadata", {})
        self._rv += 1
        meta["resourceVersion"] = str(self._rv)
        self.objects[(kind, meta.get("namespace", "") or "", meta["name"])] = obj
        return obj

    def peek(self, kind: str, name: str, namespace: Optional[str] = None) -> Optional[dict]:
        return self.objects.get((kind, namespace or "", name))

    def ops(self, op: str, kind: Optional[str] = None) -> List[Tuple[str, str, str, str]]:
        return [c for c in self.calls if c[0] == op and (kind is None or c[1] == kind)]

    def _maybe_fail(self, op: str, kind: str) -> None:
        err = self.fail.get((op, kind))
        if err is not None:
            raise err

    # store interface
    def get(self, kind, name, namespace=None):
        self.calls.append(("get", kind, namespace or "", name))
        self._maybe_fail("get", kind)
        obj = self.peek(kind, name, namespace)
        if obj is None:
            raise ApiException(status=404, reason="Not Found")
        return copy.deepcopy(obj)

    def list(self, kind, namespace=None):
        self.calls.append(("list", kind, namespace or "", ""))
        self._maybe_fail("list", kind)
        return [
            copy.deepcopy(o)
            for (k, ns, _), o in sorted(self.objects.items())
            if k == kind and (namespace is None or ns == namespace)
        ]

    def create(self, kind, body):
        meta = body.get("metadata", {})
        self.calls.append(("create", kind, meta.get("namespace", ""), meta.get("name", "")))
        self._maybe_fail("create", kind)
        if self.peek(kind, meta["name"], meta.get("namespace")) is not None:
            raise ApiException(status=409, reason="AlreadyExists")
        return copy.deepcopy(self.put(kind, body))

    def update(self, kind, body):
        meta = body.get("metadata", {})
        self.calls.append(("update", kind, meta.get("namespace", ""), meta.get("name", "")))
        self._maybe_fail("update", kind)
        current = self.peek(kind, meta["name"], meta.get("namespace"))
        if current is None:
            raise ApiException(status=404, reason="Not Found")
        if meta.get("resourceVersion") and meta["resourceVersion"] != current["metadata"]["resourceVersion"]:
            raise ApiException(status=409, reason="Conflict")
        new = copy.deepcopy(body)
        if "status" in current:
            new["status"] = current["status"]
        return copy.deepcopy(self.put(kind, new))

    def update_status(self, kind, body):
        meta = body.get("metadata", {})
        self.calls.append(("update_status", kind, meta.get("namespace", ""), meta.get("name", "")))
        self._maybe_fail("update_status", kind)
        current = self.peek(kind, meta["name"], meta.get("namespace"))
        if current is None:
            raise ApiException(status=404, reason="Not Found")
        current["status"] = copy.deepcopy(body.get("status"))
        return copy.deepcopy(current)

    def delete(self, kind, name, namespace=None):
        self.calls.append(("delete", kind, namespace or "", name))
        self._maybe_fail("delete", kind)
        if self.objects.pop((kind, namespace or "", name), None) is None:
            raise ApiException(status=404, reason="Not Found")


def network(name="dcn", bridge="br0", nad="net1", nad_ns="default", finalizers=None, deleting=False) -> dict:
    meta = {"name": name}
    if finalizers is not None:
        meta["finalizers"] = list(finalizers)
    if deleting:
        meta["deletionTimestamp"] = "2026-10-19T10:00:00Z"
    spec = {}
    if bridge is not None:
        spec["bridgeName"] = bridge
    if nad is not None:
        spec["nadName"] = nad
    if nad_ns is not None:
        spec["nadNamespace"] = nad_ns
    return {
        "apiVersion": "network.harvester.io/v1alpha1",
        "kind": "DummyClusterNetwork",
        "metadata": meta,
        "spec": spec,
    }


def vmi(ns: str, name: str, annotation: Optional[str] = None, networks: Optional[list] = None) -> dict:
    tmpl_meta = {}
    if annotation is not None:
        tmpl_meta["annotations"] = {"k8s.v1.cni.cncf.io/networks": annotation}
    return {
        "metadata": {"namespace": ns, "name": name},
        "spec": {"template": {"metadata": tmpl_meta, "spec": {"networks": networks or []}}},
    }


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def reconciler(store, settings) -> Reconciler:
    return Reconciler(store, default_registry(), settings)


@pytest.fixture
def put_network(store):
    def _put(**kw) -> dict:
        return store.put(NETWORK, network(**kw))

    return _put
