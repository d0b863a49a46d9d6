# k8s.py
from __future__ import annotations

from typing import List, Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from model import FINALIZER, Finalizers, obj_name, obj_namespace
from registry import Kind, KindRegistry


def load_kube() -> str:
    try:
        config.load_incluster_config()
        return "in-cluster"
    except Exception:
        config.load_kube_config()
        return "kubeconfig"


def is_not_found(err: BaseException) -> bool:
    return isinstance(err, ApiException) and err.status == 404


def is_conflict(err: BaseException) -> bool:
    return isinstance(err, ApiException) and err.status == 409


class KubeStore:
    """
    Dict-in/dict-out access to any registered kind via CustomObjectsApi.

    Built-in group kinds (apps/v1 daemonsets) share the /apis/{group}/{version}
    URL layout, so one code path covers every kind the controller touches.
    Missing objects surface as ApiException(status=404).
    """

    def __init__(self, registry: KindRegistry, api: Optional[client.CustomObjectsApi] = None):
        self.registry = registry
        self.api = api or client.CustomObjectsApi()

    def _kind(self, kind: str) -> Kind:
        return self.registry.lookup(kind)

    def get(self, kind: str, name: str, namespace: Optional[str] = None) -> dict:
        k = self._kind(kind)
        if k.namespaced:
            return self.api.get_namespaced_custom_object(
                group=k.group, version=k.version, namespace=namespace, plural=k.plural, name=name
            )
        return self.api.get_cluster_custom_object(
            group=k.group, version=k.version, plural=k.plural, name=name
        )

    def list(self, kind: str, namespace: Optional[str] = None) -> List[dict]:
        k = self._kind(kind)
        if k.namespaced and namespace:
            res = self.api.list_namespaced_custom_object(
                group=k.group, version=k.version, namespace=namespace, plural=k.plural
            )
        else:
            # cluster-wide listing also spans every namespace for namespaced kinds
            res = self.api.list_cluster_custom_object(
                group=k.group, version=k.version, plural=k.plural
            )
        return res.get("items", [])

    def create(self, kind: str, body: dict) -> dict:
        k = self._kind(kind)
        if k.namespaced:
            return self.api.create_namespaced_custom_object(
                group=k.group, version=k.version, namespace=obj_namespace(body), plural=k.plural, body=body
            )
        return self.api.create_cluster_custom_object(
            group=k.group, version=k.version, plural=k.plural, body=body
        )

    def update(self, kind: str, body: dict) -> dict:
        # replace carries metadata.resourceVersion, so a stale body fails with 409
        k = self._kind(kind)
        if k.namespaced:
            return self.api.replace_namespaced_custom_object(
                group=k.group, version=k.version, namespace=obj_namespace(body),
                plural=k.plural, name=obj_name(body), body=body,
            )
        return self.api.replace_cluster_custom_object(
            group=k.group, version=k.version, plural=k.plural, name=obj_name(body), body=body
        )

    def update_status(self, kind: str, body: dict) -> dict:
        k = self._kind(kind)
        if k.namespaced:
            return self.api.replace_namespaced_custom_object_status(
                group=k.group, version=k.version, namespace=obj_namespace(body),
                plural=k.plural, name=obj_name(body), body=body,
            )
        return self.api.replace_cluster_custom_object_status(
            group=k.group, version=k.version, plural=k.plural, name=obj_name(body), body=body
        )

    def delete(self, kind: str, name: str, namespace: Optional[str] = None) -> None:
        k = self._kind(kind)
        if k.namespaced:
            self.api.delete_namespaced_custom_object(
                group=k.group, version=k.version, namespace=namespace, plural=k.plural, name=name
            )
        else:
            self.api.delete_cluster_custom_object(
                group=k.group, version=k.version, plural=k.plural, name=name
            )


def ensure_finalizer(store, kind: str, obj: dict, finalizer: str = FINALIZER) -> dict:
    """Add `finalizer` and persist. Returns the stored object (unchanged if already present)."""
    fins = Finalizers.of(obj)
    if not fins.add(finalizer):
        return obj
    body = fins.apply(obj)
    return store.update(kind, body) or body


def remove_finalizer(store, kind: str, obj: dict, finalizer: str = FINALIZER) -> dict:
    fins = Finalizers.of(obj)
    if not fins.remove(finalizer):
        return obj
    body = fins.apply(obj)
    return store.update(kind, body) or body
