# usage.py
from __future__ import annotations

from typing import Iterable, List

from model import UsageReport, obj_name, obj_namespace
from registry import VM, VMI

NETWORKS_ANNOTATION = "k8s.v1.cni.cncf.io/networks"

# (kind, prefix used in the usage report)
WORKLOAD_KINDS = ((VM, "VM"), (VMI, "VMI"))


def network_ref_matches(ref: str, full_name: str, short_name: str) -> bool:
    """namespace/name, bare name, or any '<prefix>/<short_name>'."""
    if not ref:
        return False
    return ref == full_name or ref == short_name or ref.endswith("/" + short_name)


def _pod_template(obj: dict) -> dict:
    """
    spec.template for VirtualMachines. VirtualMachineInstances carry no
    template; their own metadata/spec play that role.
    """
    spec = (obj or {}).get("spec", {}) or {}
    template = spec.get("template")
    if template:
        return template
    return {"metadata": (obj or {}).get("metadata", {}) or {}, "spec": spec}


def _multus_network_names(template: dict) -> Iterable[str]:
    for n in ((template.get("spec", {}) or {}).get("networks", []) or []):
        if not isinstance(n, dict):
            continue
        multus = n.get("multus")
        if not isinstance(multus, dict):
            continue
        name = multus.get("networkName")
        if isinstance(name, str):
            yield name


def _annotation_network_names(template: dict) -> Iterable[str]:
    ann = ((template.get("metadata", {}) or {}).get("annotations", {}) or {}).get(NETWORKS_ANNOTATION)
    if not isinstance(ann, str) or not ann:
        return
    for part in ann.split(","):
        yield part.strip()


def object_uses_network(obj: dict, full_name: str, short_name: str) -> bool:
    template = _pod_template(obj)
    for ref in _multus_network_names(template):
        if network_ref_matches(ref, full_name, short_name):
            return True
    for ref in _annotation_network_names(template):
        if network_ref_matches(ref, full_name, short_name):
            return True
    return False


def find_network_users(store, full_name: str, short_name: str) -> UsageReport:
    """
    Scan every VM and VMI in the cluster. List errors propagate: a partial
    view must never read as "not in use".
    """
    users: List[str] = []
    for kind, prefix in WORKLOAD_KINDS:
        for obj in store.list(kind):
            if object_uses_network(obj, full_name, short_name):
                users.append(f"{prefix}/{obj_namespace(obj)}/{obj_name(obj)}")
    return UsageReport(users=users)
