from __future__ import annotations

import pytest
from kubernetes.client.rest import ApiException

from app import run_once
from model import ReconcileResult
from registry import NAD, NETWORK
from trigger import Backoff, RequeueTracker


class _Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _tracker(clock) -> RequeueTracker:
    return RequeueTracker(interval=5, backoff=Backoff(base=5, max_delay=60, jitter=0.0), clock=clock)


def test_backoff_grows_and_caps() -> None:
    b = Backoff(base=5, max_delay=60, jitter=0.0)
    assert [b.delay(n) for n in range(6)] == [5, 10, 20, 40, 60, 60]


def test_backoff_defaults() -> None:
    b = Backoff()
    assert (b.base, b.max_delay) == (5.0, 300.0)


def test_backoff_jitter_bounds() -> None:
    b = Backoff(base=10, max_delay=100, jitter=0.1)
    assert b.delay(0, rand=lambda: 0.0) == pytest.approx(9.0)
    assert b.delay(0, rand=lambda: 1.0) == pytest.approx(11.0)


def test_tracker_honours_requeue_after() -> None:
    clock = _Clock()
    t = _tracker(clock)
    assert t.due(["a", "b"]) == ["a", "b"]

    t.done("a", ReconcileResult(requeue_after=30))
    t.done("b", ReconcileResult())
    clock.now = 10
    assert t.due(["a", "b"]) == ["b"]
    clock.now = 30
    assert t.due(["a", "b"]) == ["a", "b"]


def test_tracker_failure_backoff_resets_on_success() -> None:
    clock = _Clock()
    t = _tracker(clock)
    assert t.failed("a") == 5
    assert t.failed("a") == 10
    assert t.failures("a") == 2
    t.done("a", ReconcileResult())
    assert t.failures("a") == 0


def test_tracker_forgets_vanished_names() -> None:
    clock = _Clock()
    t = _tracker(clock)
    t.done("a", ReconcileResult())
    t.due(["b"])
    assert t.next_due("a") is None


def test_run_once_reconciles_and_backs_off(store, reconciler, put_network) -> None:
    clock = _Clock()
    t = _tracker(clock)
    put_network(name="good")
    put_network(name="bad", nad="")

    assert run_once(store, reconciler, t) == 2
    assert t.next_due("good") == 5
    assert t.next_due("bad") == 30
    assert store.peek(NETWORK, "good")["status"]["phase"] == "Ready"

    clock.now = 5
    store.fail[("get", NETWORK)] = ApiException(status=500, reason="boom")
    assert run_once(store, reconciler, t) == 1
    assert t.failures("good") == 1
    assert t.next_due("good") == 10


def test_tracker_changed_version_is_due_before_timer() -> None:
    clock = _Clock()
    t = _tracker(clock)
    t.done("a", ReconcileResult(requeue_after=30), version="1")
    t.failed("b", version="7")

    assert t.due(["a", "b"], {"a": "1", "b": "7"}) == []
    assert t.due(["a", "b"], {"a": "2", "b": "8"}) == ["a", "b"]


def test_run_once_picks_up_fixed_spec_before_retry(store, reconciler, put_network) -> None:
    clock = _Clock()
    t = _tracker(clock)
    bad = put_network(name="bad", nad="")

    assert run_once(store, reconciler, t) == 1
    assert store.peek(NETWORK, "bad")["status"]["phase"] == "InvalidSpec"

    clock.now = 6
    assert run_once(store, reconciler, t) == 0

    bad["spec"]["nadName"] = "net1"
    store.put(NETWORK, bad)
    assert run_once(store, reconciler, t) == 1
    assert store.peek(NETWORK, "bad")["status"]["phase"] == "Ready"


def test_run_once_picks_up_deletion_during_backoff(store, reconciler, put_network) -> None:
    clock = _Clock()
    t = _tracker(clock)
    put_network(name="net")
    store.fail[("create", NAD)] = ApiException(status=500, reason="boom")

    assert run_once(store, reconciler, t) == 1
    assert t.failures("net") == 1

    # finalizer update bumped the version once; next pass retries right away
    assert run_once(store, reconciler, t) == 1
    assert run_once(store, reconciler, t) == 0

    current = store.peek(NETWORK, "net")
    current["metadata"]["deletionTimestamp"] = "2026-10-19T10:00:00Z"
    store.put(NETWORK, current)
    assert run_once(store, reconciler, t) == 1
    assert store.peek(NETWORK, "net")["status"]["phase"] == "Deleted"
