# trigger.py
from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from model import ReconcileResult


@dataclass
class Backoff:
    base: float = 5.0
    max_delay: float = 300.0
    jitter: float = 0.1

    def delay(self, failures: int, rand: Callable[[], float] = random.random) -> float:
        """base * 2**failures capped at max_delay, then ±jitter."""
        d = min(self.base * (2 ** min(failures, 10)), self.max_delay)
        return d * (1 + (rand() * 2 - 1) * self.jitter)


@dataclass
class RequeueTracker:
    """
    Per-name due times for the poll loop.

    complete      -> due again after the poll interval
    requeue_after -> due after the requested delay
    failure       -> due after exponential backoff; reset on the next success
    changed       -> due at once when the listed resourceVersion differs
                     from the one seen at the last attempt
    """

    interval: float
    backoff: Backoff = field(default_factory=Backoff)
    clock: Callable[[], float] = time.monotonic
    _due: Dict[str, float] = field(default_factory=dict, init=False, repr=False)
    _failures: Dict[str, int] = field(default_factory=dict, init=False, repr=False)
    _versions: Dict[str, Optional[str]] = field(default_factory=dict, init=False, repr=False)

    def due(self, names: Iterable[str], versions: Optional[Mapping[str, Optional[str]]] = None) -> List[str]:
        now = self.clock()
        versions = versions or {}
        seen = set()
        out: List[str] = []
        for name in names:
            seen.add(name)
            if self._due.get(name, 0.0) <= now or self._changed(name, versions.get(name)):
                out.append(name)
        # forget names that disappeared from the store
        for name in list(self._due):
            if name not in seen:
                self.forget(name)
        return sorted(out)

    def done(self, name: str, result: ReconcileResult, version: Optional[str] = None) -> None:
        self._failures.pop(name, None)
        self._versions[name] = version
        delay = self.interval if result.requeue_after is None else result.requeue_after
        self._due[name] = self.clock() + delay

    def failed(self, name: str, version: Optional[str] = None) -> float:
        n = self._failures.get(name, 0)
        delay = self.backoff.delay(n)
        self._failures[name] = n + 1
        self._versions[name] = version
        self._due[name] = self.clock() + delay
        return delay

    def failures(self, name: str) -> int:
        return self._failures.get(name, 0)

    def next_due(self, name: str) -> Optional[float]:
        return self._due.get(name)

    def forget(self, name: str) -> None:
        self._due.pop(name, None)
        self._failures.pop(name, None)
        self._versions.pop(name, None)

    def _changed(self, name: str, version: Optional[str]) -> bool:
        if version is None or name not in self._versions:
            return False
        return self._versions[name] != version
