from __future__ import annotations
"""
origami.runtime.driver
======================

Loop that fires scheduled calls when they come due. The host scheduler only
stores one-shot "call me in N ms" registrations; this dispatcher is what turns
them into a recurring task by invoking each due call on its contract.

Design
------
- Single-threaded loop with cooperative sleep; safe to run one per process.
- Calls run in (due time, registration order); a call registered while
  draining is picked up in the same pass if it is already due.
- Each call runs with `caller = target` (the contract calling itself) and
  `timestamp = due time`.
- A call that is rejected is logged and dropped, never retried.
- Needs a host scheduler that can be drained: `pop_due(now)` and
  `next_due()`, as `CallQueue` provides.

Typical usage
-------------
    disp = Dispatcher(raffle)
    disp.run_once(now_ms)                       # fire everything due
    disp.advance(start_ms, end_ms, step_ms)     # virtual-time simulation
    disp.run_forever(stop_event)                # wall-clock loop
"""

from dataclasses import dataclass, field
import logging
import threading
import time
from typing import Any, Callable, List, Optional

from origami import metrics
from origami.errors import OrigamiError

from .context import CallContext
from .scheduler_api import ScheduledCall

log = logging.getLogger(__name__)


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class DispatcherConfig:
    """
    tick_interval_seconds:
        Sleep between ticks of `run_forever`.
    max_calls_per_tick:
        Upper bound on calls fired per tick, guarding against a call that
        keeps re-registering itself with zero delay.
    """

    tick_interval_seconds: float = 1.0
    max_calls_per_tick: int = 1_000


@dataclass
class CallOutcome:
    call: ScheduledCall
    timestamp: int
    ok: bool
    result: Any = None
    error: Optional[dict] = field(default=None)


class Dispatcher:
    """Fires due scheduled calls against a single contract."""

    def __init__(self, contract: Any, config: Optional[DispatcherConfig] = None) -> None:
        self.contract = contract
        self.host = contract.host
        self.config = config or DispatcherConfig()
        self.history: List[CallOutcome] = []
        self._lock = threading.Lock()

    # Public API ---------------------------------------------------------------

    def run_once(self, now: int) -> List[CallOutcome]:
        """Fire every call due at or before `now`."""
        fired: List[CallOutcome] = []
        with self._lock:
            while len(fired) < self.config.max_calls_per_tick:
                call = self.host.scheduler.pop_due(now)
                if call is None:
                    break
                fired.append(self._fire(call))
        if fired:
            log.debug("dispatcher: tick now=%d fired=%d", now, len(fired))
        self.history.extend(fired)
        return fired

    def advance(self, start: int, end: int, step: int) -> List[CallOutcome]:
        """
        Walk virtual time from `start` to `end` in `step` ms increments. Ticks
        with nothing due are skipped: time jumps to the first tick at or after
        the next registered call.
        """
        if step <= 0:
            raise ValueError("step must be positive")
        fired: List[CallOutcome] = []
        now = start
        while now <= end:
            fired.extend(self.run_once(now))
            nxt = self.host.scheduler.next_due()
            if nxt is None:
                break
            now = max(now + step, start + -(-(nxt - start) // step) * step)
        return fired

    def run_forever(
        self,
        stop_event: Optional[threading.Event] = None,
        clock: Callable[[], int] = _wall_clock_ms,
    ) -> None:
        """Block and run the loop until `stop_event` is set (if provided)."""
        stop = stop_event or threading.Event()
        log.info("dispatcher: starting main loop (tick=%.3fs)", self.config.tick_interval_seconds)
        while not stop.is_set():
            self.run_once(clock())
            stop.wait(self.config.tick_interval_seconds)
        log.info("dispatcher: stopped")

    # Internal -----------------------------------------------------------------

    def _fire(self, call: ScheduledCall) -> CallOutcome:
        if call.target != self.host.self_address:
            log.warning("dispatcher: dropping call for unknown target=%s fn=%s", call.target, call.function)
            metrics.record_scheduled_call(call.function, "dropped")
            return CallOutcome(call=call, timestamp=call.due_ms, ok=False, error={"code": "UNKNOWN_TARGET"})
        fn = getattr(self.contract, call.function, None)
        if not callable(fn) or not getattr(fn, "__origami_entry__", False):
            log.warning("dispatcher: dropping call to unknown entry point %s", call.function)
            metrics.record_scheduled_call(call.function, "dropped")
            return CallOutcome(call=call, timestamp=call.due_ms, ok=False, error={"code": "UNKNOWN_FUNCTION"})

        ctx = CallContext(timestamp=call.due_ms, caller=call.target)
        try:
            with metrics.time_scheduled_call(call.function):
                result = fn(ctx, *call.args)
        except OrigamiError as exc:
            log.warning("dispatcher: scheduled %s at %d rejected: %s", call.function, call.due_ms, exc)
            metrics.record_scheduled_call(call.function, "rejected")
            return CallOutcome(call=call, timestamp=call.due_ms, ok=False, error=exc.to_dict())
        metrics.record_scheduled_call(call.function, "ok")
        return CallOutcome(call=call, timestamp=call.due_ms, ok=True, result=result)


__all__ = ["DispatcherConfig", "CallOutcome", "Dispatcher"]
