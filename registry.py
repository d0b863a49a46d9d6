# registry.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class Kind:
    group: str
    version: str
    plural: str
    kind: str
    namespaced: bool = True

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version


NETWORK = "DummyClusterNetwork"
NAD = "NetworkAttachmentDefinition"
DAEMONSET = "DaemonSet"
VM = "VirtualMachine"
VMI = "VirtualMachineInstance"


class KindRegistry(dict):
    """Kind name -> Kind. Built once at startup and handed to the store/engine."""

    def lookup(self, name: str) -> Kind:
        try:
            return self[name]
        except KeyError:
            raise KeyError(f"kind {name!r} is not registered") from None


def default_registry() -> KindRegistry:
    kinds: Dict[str, Kind] = {
        NETWORK: Kind("network.harvester.io", "v1alpha1", "dummyclusternetworks", NETWORK, namespaced=False),
        NAD: Kind("k8s.cni.cncf.io", "v1", "network-attachment-definitions", NAD),
        DAEMONSET: Kind("apps", "v1", "daemonsets", DAEMONSET),
        VM: Kind("kubevirt.io", "v1", "virtualmachines", VM),
        VMI: Kind("kubevirt.io", "v1", "virtualmachineinstances", VMI),
    }
    return KindRegistry(kinds)
