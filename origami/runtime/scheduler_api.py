"""
origami.runtime.scheduler_api - autonomous call scheduling.

The host primitive is one-shot and fire-and-forget: a contract may register
"call `function` on `target` in `delay_ms`", but cannot cancel, reschedule or
observe a missed wake-up. Recurrence therefore requires the callee to register
again. CallQueue is the in-memory stand-in; the Dispatcher in
`origami.runtime.driver` drains it.
"""

from __future__ import annotations

import heapq
import itertools
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from origami.errors import HostError


@dataclass(frozen=True, order=True)
class ScheduledCall:
    due_ms: int
    seq: int
    target: str = field(compare=False)
    function: str = field(compare=False)
    args: Tuple = field(compare=False, default=())


@runtime_checkable
class Scheduler(Protocol):
    def schedule_call(
        self,
        target: str,
        function: str,
        args: Sequence = (),
        delay_ms: int = 0,
        *,
        now: int,
    ) -> ScheduledCall: ...


class CallQueue:
    """Min-heap of pending calls ordered by (due time, registration order)."""

    def __init__(self) -> None:
        self._heap: List[ScheduledCall] = []
        self._seq = itertools.count()
        self._lock = threading.RLock()

    def schedule_call(
        self,
        target: str,
        function: str,
        args: Sequence = (),
        delay_ms: int = 0,
        *,
        now: int,
    ) -> ScheduledCall:
        if not target or not function:
            raise HostError("scheduled call needs a target and a function name")
        if delay_ms < 0 or now < 0:
            raise HostError("delay and timestamp must be non-negative", details={"delay_ms": delay_ms, "now": now})
        call = ScheduledCall(due_ms=now + delay_ms, seq=next(self._seq), target=target, function=function, args=tuple(args))
        with self._lock:
            heapq.heappush(self._heap, call)
        return call

    def pop_due(self, now: int) -> Optional[ScheduledCall]:
        """Remove and return the earliest call due at or before `now`."""
        with self._lock:
            if self._heap and self._heap[0].due_ms <= now:
                return heapq.heappop(self._heap)
            return None

    def next_due(self) -> Optional[int]:
        with self._lock:
            return self._heap[0].due_ms if self._heap else None

    def pending(self) -> List[ScheduledCall]:
        with self._lock:
            return sorted(self._heap)

    def __len__(self) -> int:
        with self._lock:
            return len(self._heap)

    def snapshot(self) -> List[ScheduledCall]:
        with self._lock:
            return list(self._heap)

    def restore(self, snap: List[ScheduledCall]) -> None:
        with self._lock:
            self._heap = list(snap)
            heapq.heapify(self._heap)


__all__ = ["ScheduledCall", "Scheduler", "CallQueue"]
