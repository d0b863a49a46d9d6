# app.py
from __future__ import annotations

import logging
import time
from typing import Optional

from config import Settings, load_settings
from k8s import KubeStore, load_kube
from model import obj_name
from reconcile import Reconciler
from registry import NETWORK, default_registry
from trigger import Backoff, RequeueTracker

logger = logging.getLogger("controller")


def setup_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="[%(name)s] %(levelname)s %(message)s",
    )


def run_once(store, reconciler: Reconciler, tracker: RequeueTracker) -> int:
    """One poll pass: reconcile every due network, one at a time. Returns how many ran."""
    # resourceVersion per name: an edited resource is due before its timer fires
    versions = {
        obj_name(o): (o.get("metadata", {}) or {}).get("resourceVersion")
        for o in store.list(NETWORK)
        if obj_name(o)
    }
    ran = 0
    for name in tracker.due(versions, versions):
        ran += 1
        try:
            result = reconciler.reconcile(name)
        except Exception:
            delay = tracker.failed(name, versions[name])
            logger.exception("%s: reconcile failed (attempt %d), retry in %.1fs", name, tracker.failures(name), delay)
            continue
        tracker.done(name, result, versions[name])
        if result.requeue_after is not None:
            logger.debug("%s: requeue in %ss", name, result.requeue_after)
    return ran


def main(settings: Optional[Settings] = None) -> None:
    settings = settings or load_settings()
    setup_logging(settings)

    source = load_kube()
    logger.info("using %s config", source)

    registry = default_registry()
    store = KubeStore(registry)
    reconciler = Reconciler(store, registry, settings)
    tracker = RequeueTracker(
        interval=settings.loop_seconds,
        backoff=Backoff(settings.backoff_base_seconds, settings.backoff_max_seconds, settings.backoff_jitter),
    )

    try:
        while True:
            try:
                ran = run_once(store, reconciler, tracker)
                if settings.debug and not ran:
                    logger.info("nothing due")
            except Exception:
                # listing failed; try again next tick
                logger.exception("poll failed")
            time.sleep(settings.loop_seconds)
    except KeyboardInterrupt:
        logger.info("shutting down")


if __name__ == "__main__":
    main()
