# dependents/nad.py
from __future__ import annotations

import json
from typing import Any, Dict

DEFAULT_SUBNET = "10.10.0.0/24"


def bridge_cni_config(bridge: str, subnet: str = DEFAULT_SUBNET) -> str:
    """
    CNI bridge plugin config for the dummy network.
    The bridge acts as gateway and masquerades; addresses come from a
    host-local pool.
    """
    return json.dumps(
        {
            "cniVersion": "0.3.1",
            "type": "bridge",
            "bridge": bridge,
            "isGateway": True,
            "ipMasq": True,
            "ipam": {
                "type": "host-local",
                "subnet": subnet,
            },
        },
        indent=2,
    )


def network_attachment_definition(
    namespace: str, name: str, bridge: str, subnet: str = DEFAULT_SUBNET
) -> Dict[str, Any]:
    return {
        "apiVersion": "k8s.cni.cncf.io/v1",
        "kind": "NetworkAttachmentDefinition",
        "metadata": {
            "name": name,
            "namespace": namespace,
        },
        "spec": {
            "config": bridge_cni_config(bridge, subnet),
        },
    }
