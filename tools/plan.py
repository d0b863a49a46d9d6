#!/usr/bin/env python3
"""Plan-only runner: prints what the controller would reconcile without applying changes.

Usage:
  python3 tools/plan.py my-network
  python3 tools/plan.py            # every DummyClusterNetwork

Notes:
- Uses in-cluster config, falling back to your local kubeconfig (same behavior as app.py).
- Does not create/update/delete any objects.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import load_settings  # noqa: E402
from k8s import KubeStore, load_kube  # noqa: E402
from model import obj_name  # noqa: E402
from reconcile import Reconciler, print_plan  # noqa: E402
from registry import NETWORK, default_registry  # noqa: E402


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    print(f"[plan] using {load_kube()} config")

    registry = default_registry()
    store = KubeStore(registry)
    reconciler = Reconciler(store, registry, load_settings())

    names = argv or sorted(obj_name(o) for o in store.list(NETWORK))
    for name in names:
        print_plan(reconciler.plan(name))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
