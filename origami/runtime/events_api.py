from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from origami.errors import HostError

MAX_EVENT_NAME_BYTES = 64
MAX_KEY_LEN = 64

# Keys must be identifier-like: letters/underscore, then letters/digits/underscore.
_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class Event:
    """An emitted contract event."""

    name: str
    args: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "args": dict(self.args)}


class EventSink:
    """Ordered in-memory event log."""

    def __init__(self) -> None:
        self._events: List[Event] = []

    def emit(self, name: str, args: Optional[Mapping[str, Any]] = None) -> Event:
        if not isinstance(name, str) or not name:
            raise HostError("event name must be a non-empty str")
        if len(name.encode("utf-8")) > MAX_EVENT_NAME_BYTES:
            raise HostError("event name too long", details={"name": name})
        clean: Dict[str, Any] = {}
        for k, v in (args or {}).items():
            if not isinstance(k, str) or len(k) > MAX_KEY_LEN or not _KEY_RE.match(k):
                raise HostError("event key has invalid characters", details={"key": k})
            if not isinstance(v, (str, int, bool, bytes, list, tuple)):
                raise HostError("unsupported event value type", details={"key": k, "type": type(v).__name__})
            clean[k] = list(v) if isinstance(v, tuple) else v
        ev = Event(name=name, args=clean)
        self._events.append(ev)
        return ev

    @property
    def events(self) -> List[Event]:
        return list(self._events)

    def named(self, name: str) -> List[Event]:
        return [e for e in self._events if e.name == name]

    def snapshot(self) -> int:
        return len(self._events)

    def restore(self, snap: int) -> None:
        del self._events[snap:]


__all__ = ["Event", "EventSink"]
