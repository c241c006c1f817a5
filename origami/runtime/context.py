"""
origami.runtime.context - per-call environment passed to raffle entry points.

Contains only pure data and performs strict validation, mirroring what a
chain runtime exposes to a contract: the consensus timestamp, the calling
address, the attached native-coin value and the transaction hash.

This module does not read the wall clock; `timestamp` is whatever the caller
(host, dispatcher, test) says it is, in milliseconds since the UNIX epoch.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


class ContextError(ValueError):
    """Validation or coercion failure for CallContext."""


def _strip_0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_bytes(value: Union[bytes, bytearray, memoryview, str]) -> bytes:
    """
    Coerce `value` to bytes.
    - If str, interpret as hex (with or without '0x'); odd-length hex is rejected.
    - If a bytes-like object, copy to immutable bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        h = _strip_0x(value.strip())
        if len(h) % 2 != 0:
            raise ContextError(f"hex string must have even length, got {len(h)}")
        try:
            return bytes.fromhex(h)
        except ValueError as e:
            raise ContextError(f"invalid hex string: {value!r}") from e
    raise ContextError(f"cannot convert type {type(value).__name__} to bytes")


def _require_non_negative_int(name: str, v: Any) -> int:
    if not isinstance(v, int) or isinstance(v, bool):
        raise ContextError(f"{name} must be int, got {type(v).__name__}")
    if v < 0:
        raise ContextError(f"{name} must be non-negative, got {v}")
    return v


@dataclass(frozen=True)
class CallContext:
    """
    Fields
    ------
    timestamp: Consensus timestamp in ms.
    caller:    Calling address.
    value:     Native coins attached to the call (base units).
    tx_hash:   Transaction hash bytes (may be empty for local calls).
    """
    timestamp: int
    caller: str
    value: int = 0
    tx_hash: bytes = b""

    def __post_init__(self) -> None:
        _require_non_negative_int("timestamp", self.timestamp)
        _require_non_negative_int("value", self.value)
        if not isinstance(self.caller, str) or not self.caller:
            raise ContextError("caller must be a non-empty address string")
        object.__setattr__(self, "tx_hash", to_bytes(self.tx_hash))


__all__ = ["ContextError", "to_bytes", "CallContext"]
