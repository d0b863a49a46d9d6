# reconcile.py
from __future__ import annotations

import logging
from typing import Optional

from config import Settings
from dependents.agent import bridge_agent_daemonset
from dependents.nad import network_attachment_definition
from ensure import ensure_absent, ensure_exists, exists
from k8s import ensure_finalizer, is_not_found, remove_finalizer
from model import (
    FINALIZER,
    Finalizers,
    NetworkSpec,
    NetworkStatus,
    Phase,
    ReconcilePlan,
    REQUIRED_MESSAGE,
    ReconcileResult,
    deletion_requested,
)
from registry import DAEMONSET, NAD, NETWORK, KindRegistry
from usage import find_network_users

logger = logging.getLogger("reconcile")


class Reconciler:
    """
    Drives one DummyClusterNetwork towards its desired state per call.

    Provisioning: finalizer, then NetworkAttachmentDefinition, then the
    bridge DaemonSet. Teardown waits until no VM/VMI references the network,
    then deletes both dependents and releases the finalizer.

    Fatal outcomes are raised; the caller owns retry/backoff.
    """

    def __init__(self, store, registry: KindRegistry, settings: Optional[Settings] = None):
        # fail at construction if the kinds this engine needs are not registered
        for kind in (NETWORK, NAD, DAEMONSET):
            registry.lookup(kind)
        self.store = store
        self.registry = registry
        self.settings = settings or Settings()

    # ─────────────────────────────────────────────
    # Entry points
    # ─────────────────────────────────────────────
    def reconcile(self, name: str) -> ReconcileResult:
        obj = self._fetch(name)
        if obj is None:
            return ReconcileResult()

        spec = NetworkSpec.from_object(obj)
        missing = spec.missing_fields()
        if missing:
            logger.info("%s: invalid spec, missing %s", name, ", ".join(missing))
            self._write_status(obj, Phase.INVALID_SPEC, REQUIRED_MESSAGE)
            return ReconcileResult(requeue_after=self.settings.requeue_seconds)

        if not deletion_requested(obj):
            return self._provision(obj, spec)
        return self._teardown(obj, spec)

    def plan(self, name: str) -> ReconcilePlan:
        """Compute what reconcile() *would* do, without creating/updating/deleting anything."""
        plan = ReconcilePlan(name=name, action="none", create=[], delete=[], finalizer=None, users=[])
        obj = self._fetch(name)
        if obj is None:
            return plan

        spec = NetworkSpec.from_object(obj)
        missing = spec.missing_fields()
        if missing:
            plan["action"] = "invalid"
            plan["reason"] = REQUIRED_MESSAGE
            plan["missing"] = missing
            return plan

        s = self.settings
        if not deletion_requested(obj):
            plan["action"] = "provision"
            if FINALIZER not in Finalizers.of(obj):
                plan["finalizer"] = "add"
            if not exists(self.store, NAD, spec.nad_name, spec.nad_namespace):
                plan["create"].append(f"{NAD}/{spec.full_nad_name}")
            if not exists(self.store, DAEMONSET, s.agent_name, s.agent_namespace):
                plan["create"].append(f"{DAEMONSET}/{s.agent_namespace}/{s.agent_name}")
            return plan

        usage = find_network_users(self.store, spec.full_nad_name, spec.nad_name)
        if usage.in_use:
            plan["action"] = "blocked"
            plan["users"] = list(usage.users)
            return plan

        plan["action"] = "teardown"
        if exists(self.store, DAEMONSET, s.agent_name, s.agent_namespace):
            plan["delete"].append(f"{DAEMONSET}/{s.agent_namespace}/{s.agent_name}")
        if exists(self.store, NAD, spec.nad_name, spec.nad_namespace):
            plan["delete"].append(f"{NAD}/{spec.full_nad_name}")
        if FINALIZER in Finalizers.of(obj):
            plan["finalizer"] = "remove"
        return plan

    # ─────────────────────────────────────────────
    # Paths
    # ─────────────────────────────────────────────
    def _provision(self, obj: dict, spec: NetworkSpec) -> ReconcileResult:
        name = obj["metadata"]["name"]
        if FINALIZER not in Finalizers.of(obj):
            obj = ensure_finalizer(self.store, NETWORK, obj)
            logger.info("%s: added finalizer", name)

        try:
            self.ensure_nad(spec)
        except Exception as e:
            self._write_status(obj, Phase.ERROR_ENSURING_DEPENDENT, f"NetworkAttachmentDefinition: {e}")
            raise

        try:
            self.ensure_agent(spec)
        except Exception as e:
            self._write_status(obj, Phase.ERROR_ENSURING_DEPENDENT, f"DaemonSet: {e}")
            raise

        self._write_status(obj, Phase.READY, "Resources created")
        return ReconcileResult()

    def _teardown(self, obj: dict, spec: NetworkSpec) -> ReconcileResult:
        name = obj["metadata"]["name"]
        usage = find_network_users(self.store, spec.full_nad_name, spec.nad_name)
        if usage.in_use:
            logger.warning("%s: deletion blocked, %d users", name, len(usage.users))
            self._write_status(obj, Phase.DELETION_BLOCKED, usage.message())
            return ReconcileResult(requeue_after=self.settings.requeue_seconds)

        self.delete_agent()
        self.delete_nad(spec)

        obj = remove_finalizer(self.store, NETWORK, obj)
        self._write_status(obj, Phase.DELETED, "Cleaned up resources")
        logger.info("%s: deleted dummy network resources and removed finalizer", name)
        return ReconcileResult()

    # ─────────────────────────────────────────────
    # Dependents
    # ─────────────────────────────────────────────
    def ensure_nad(self, spec: NetworkSpec) -> bool:
        return ensure_exists(
            self.store,
            NAD,
            spec.nad_name,
            spec.nad_namespace,
            lambda: network_attachment_definition(
                spec.nad_namespace, spec.nad_name, spec.bridge_name, self.settings.nad_subnet
            ),
        )

    def ensure_agent(self, spec: NetworkSpec) -> bool:
        s = self.settings
        return ensure_exists(
            self.store,
            DAEMONSET,
            s.agent_name,
            s.agent_namespace,
            lambda: bridge_agent_daemonset(
                s.agent_namespace, s.agent_name, spec.bridge_name, s.agent_image, s.bridge_poll_seconds
            ),
        )

    def delete_nad(self, spec: NetworkSpec) -> bool:
        return ensure_absent(self.store, NAD, spec.nad_name, spec.nad_namespace)

    def delete_agent(self) -> bool:
        return ensure_absent(self.store, DAEMONSET, self.settings.agent_name, self.settings.agent_namespace)

    # ─────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────
    def _fetch(self, name: str) -> Optional[dict]:
        try:
            return self.store.get(NETWORK, name)
        except Exception as e:
            if is_not_found(e):
                return None
            raise

    def _write_status(self, obj: dict, phase: Phase, reason: str) -> None:
        """Best-effort: a failed status write never changes the outcome."""
        body = dict(obj)
        body["status"] = NetworkStatus(phase, reason).to_dict()
        name = (obj.get("metadata", {}) or {}).get("name", "")
        try:
            self.store.update_status(NETWORK, body)
        except Exception as e:
            if is_not_found(e):
                # already garbage-collected after the finalizer was released
                logger.debug("%s: gone before status %s was written", name, phase.value)
            else:
                logger.warning("%s: status %s not written: %s", name, phase.value, e)
            return
        logger.debug("%s: phase=%s reason=%s", name, phase.value, reason)


def print_plan(plan: ReconcilePlan) -> None:
    print(f"[plan] network={plan.get('name')} action={plan.get('action')} finalizer={plan.get('finalizer') or '-'}")
    if plan.get("reason"):
        print(f"[plan] reason: {plan['reason']}")
    for k in ("create", "delete", "users"):
        items = plan.get(k, []) or []
        if not items:
            continue
        print(f"[plan] {k}:")
        for item in items:
            print(f"  - {item}")
