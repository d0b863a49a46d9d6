#!/usr/bin/env python3
"""tools/render.py

Render the dependent resources the controller would create for a bridge as
multi-document YAML (NetworkAttachmentDefinition + bridge DaemonSet).

Usage examples:
  python3 tools/render.py br0 net1 default > /tmp/dummy-net.yaml

  # Pair it with a server-side dry run:
  python3 tools/render.py br0 net1 default | kubectl apply --dry-run=server -f -

Notes:
- This does NOT apply anything and never talks to the cluster.
- AGENT_NAMESPACE / AGENT_NAME / AGENT_IMAGE / NAD_SUBNET are honoured, as in the controller.
"""

from __future__ import annotations

import os
import sys

import yaml

# Allow executing from tools/ without installing as a package
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from config import load_settings  # noqa: E402
from dependents.agent import bridge_agent_daemonset  # noqa: E402
from dependents.nad import network_attachment_definition  # noqa: E402


def render(bridge: str, nad_name: str, nad_namespace: str, settings=None) -> list[dict]:
    s = settings or load_settings()
    return [
        network_attachment_definition(nad_namespace, nad_name, bridge, s.nad_subnet),
        bridge_agent_daemonset(s.agent_namespace, s.agent_name, bridge, s.agent_image, s.bridge_poll_seconds),
    ]


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 3:
        print("usage: render.py <bridgeName> <nadName> <nadNamespace>", file=sys.stderr)
        return 2

    try:
        for doc in render(*argv):
            yaml.safe_dump(doc, sys.stdout, sort_keys=False)
            sys.stdout.write("---\n")
    except BrokenPipeError:
        # Common when piping to `head`; exit cleanly
        return 0

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
