# dependents/agent.py
from __future__ import annotations

from typing import Any, Dict

AGENT_LABEL = {"app": "dummy-bridge-ensure"}


def ensure_bridge_script(bridge: str, interval: int = 30) -> str:
    # Runs forever on every node; the DaemonSet is only ever created or deleted.
    return f"""BRIDGE="{bridge}"
while true; do
  if ip link show "$BRIDGE" >/dev/null 2>&1; then
    ip link set "$BRIDGE" up || true
  else
    ip link add name "$BRIDGE" type bridge || true
    ip link set "$BRIDGE" up || true
  fi
  sleep {int(interval)}
done"""


def bridge_agent_daemonset(
    namespace: str,
    name: str,
    bridge: str,
    image: str = "alpine:3.18",
    interval: int = 30,
) -> Dict[str, Any]:
    """
    Privileged host-network DaemonSet that keeps `bridge` present and up on
    every node, including tainted ones.
    """
    return {
        "apiVersion": "apps/v1",
        "kind": "DaemonSet",
        "metadata": {
            "name": name,
            "namespace": namespace,
            "labels": dict(AGENT_LABEL),
        },
        "spec": {
            "selector": {"matchLabels": dict(AGENT_LABEL)},
            "template": {
                "metadata": {"labels": dict(AGENT_LABEL)},
                "spec": {
                    "hostNetwork": True,
                    "hostPID": True,
                    "containers": [
                        {
                            "name": "ensure-bridge",
                            "image": image,
                            "securityContext": {"privileged": True},
                            "command": ["/bin/sh", "-c"],
                            "args": [ensure_bridge_script(bridge, interval)],
                            "volumeMounts": [
                                {
                                    "name": "lib-modules",
                                    "mountPath": "/lib/modules",
                                    "readOnly": True,
                                }
                            ],
                        }
                    ],
                    "volumes": [
                        {
                            "name": "lib-modules",
                            "hostPath": {"path": "/lib/modules", "type": "Directory"},
                        }
                    ],
                    # tolerate every taint so the bridge exists on all nodes
                    "tolerations": [{"operator": "Exists"}],
                },
            },
        },
    }
