"""
origami.runtime.storage_api - host key/value storage for the raffle.

Design goals
------------
- Deterministic: pure functions over (key, value) with no wall-clock or I/O.
- Simple default: in-process memory backend for local runs & tests.
- Pluggable: a tiny backend interface so a host can swap in a real state DB.
- Safe: strict byte-length caps; typed helpers for common int/str/list use.

Contract-facing API (Storage)
-----------------------------
- get(key) -> Optional[bytes]
- set(key, value) -> None
- delete(key) -> None
- exists(key) -> bool
- get_int / set_int           # big-endian, unsigned, minimal width
- get_str / set_str           # UTF-8
- get_str_list / set_str_list # u32-LE length-prefixed UTF-8 items

Notes
-----
Snapshots are taken by the host at the start of a call and restored if the call
raises. A backend with its own `snapshot`/`restore` (MemoryBackend) is copied
whole; for any other backend Storage journals the prior value of every key
written during the call and writes those back on restore.
"""

from __future__ import annotations

import struct
import threading
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from origami.errors import HostError

MAX_STORAGE_KEY_BYTES = 64
DEFAULT_MAX_VALUE_BYTES = 131_072

_U256_MAX = (1 << 256) - 1
_LEN = struct.Struct("<I")


# ---------------------------- Backend API ---------------------------- #


@runtime_checkable
class StorageBackend(Protocol):
    """Minimal backend interface for contract storage."""

    def get(self, key: bytes) -> Optional[bytes]: ...
    def set(self, key: bytes, value: bytes) -> None: ...
    def delete(self, key: bytes) -> None: ...
    def exists(self, key: bytes) -> bool: ...


class MemoryBackend:
    """Thread-safe in-memory backend for local runs and tests."""

    def __init__(self) -> None:
        self._store: Dict[bytes, bytes] = {}
        self._lock = threading.RLock()

    def get(self, key: bytes) -> Optional[bytes]:
        with self._lock:
            return self._store.get(key)

    def set(self, key: bytes, value: bytes) -> None:
        with self._lock:
            self._store[key] = value

    def delete(self, key: bytes) -> None:
        with self._lock:
            self._store.pop(key, None)

    def exists(self, key: bytes) -> bool:
        with self._lock:
            return key in self._store

    def snapshot(self) -> Dict[bytes, bytes]:
        with self._lock:
            return dict(self._store)

    def restore(self, snap: Dict[bytes, bytes]) -> None:
        with self._lock:
            self._store = dict(snap)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


# --------------------------- Validation helpers --------------------------- #


def _check_key(key: bytes) -> bytes:
    if not isinstance(key, (bytes, bytearray)):
        raise HostError("storage key must be bytes")
    if len(key) == 0:
        raise HostError("storage key must be non-empty")
    if len(key) > MAX_STORAGE_KEY_BYTES:
        raise HostError(f"storage key too long (>{MAX_STORAGE_KEY_BYTES} bytes)", details={"len": len(key)})
    return bytes(key)


# ------------------------------ Codecs ----------------------------- #


def encode_uint(value: int) -> bytes:
    """Minimal big-endian unsigned encoding (zero -> b"\\x00")."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise HostError("integer value must be int")
    if value < 0 or value > _U256_MAX:
        raise HostError("integer out of range (must fit in 256 bits)", details={"value": value})
    if value == 0:
        return b"\x00"
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def decode_uint(raw: bytes) -> int:
    return int.from_bytes(raw, byteorder="big", signed=False) if raw else 0


def encode_str_list(items: List[str]) -> bytes:
    out = bytearray()
    for s in items:
        b = s.encode("utf-8")
        out += _LEN.pack(len(b))
        out += b
    return bytes(out)


def decode_str_list(raw: bytes) -> List[str]:
    items: List[str] = []
    pos = 0
    while pos < len(raw):
        if pos + _LEN.size > len(raw):
            raise HostError("truncated string list (length prefix)", details={"offset": pos})
        (n,) = _LEN.unpack_from(raw, pos)
        pos += _LEN.size
        if pos + n > len(raw):
            raise HostError("truncated string list (item)", details={"offset": pos, "len": n})
        items.append(raw[pos : pos + n].decode("utf-8"))
        pos += n
    return items


# --------------------------- Contract-facing API --------------------------- #


class Storage:
    """Validated, typed view over a StorageBackend."""

    def __init__(self, backend: Optional[StorageBackend] = None, *, max_value_bytes: int = DEFAULT_MAX_VALUE_BYTES) -> None:
        backend = backend if backend is not None else MemoryBackend()
        for attr in ("get", "set", "delete", "exists"):
            if not callable(getattr(backend, attr, None)):
                raise HostError(f"backend missing method: {attr}")
        self.backend = backend
        self.max_value_bytes = int(max_value_bytes)
        self._journal: Optional[Dict[bytes, Optional[bytes]]] = None
        self._native_snapshots = callable(getattr(backend, "snapshot", None)) and callable(
            getattr(backend, "restore", None)
        )

    def get(self, key: bytes) -> Optional[bytes]:
        """Return the value for `key`, or None if not set."""
        return self.backend.get(_check_key(key))

    def set(self, key: bytes, value: bytes) -> None:
        """Set `key` to `value` (overwrites existing)."""
        k = _check_key(key)
        if not isinstance(value, (bytes, bytearray)):
            raise HostError("storage value must be bytes")
        if len(value) > self.max_value_bytes:
            raise HostError(
                f"storage value too large (>{self.max_value_bytes} bytes)",
                details={"key": k.decode("ascii", "replace"), "len": len(value)},
            )
        self._remember(k)
        self.backend.set(k, bytes(value))

    def delete(self, key: bytes) -> None:
        k = _check_key(key)
        self._remember(k)
        self.backend.delete(k)

    def exists(self, key: bytes) -> bool:
        return self.backend.exists(_check_key(key))

    # ---- typed helpers ----

    def get_int(self, key: bytes, default: int = 0) -> int:
        raw = self.get(key)
        return default if raw is None else decode_uint(raw)

    def set_int(self, key: bytes, value: int) -> None:
        self.set(key, encode_uint(value))

    def get_str(self, key: bytes, default: str = "") -> str:
        raw = self.get(key)
        return default if raw is None else raw.decode("utf-8")

    def set_str(self, key: bytes, value: str) -> None:
        self.set(key, value.encode("utf-8"))

    def get_str_list(self, key: bytes) -> List[str]:
        raw = self.get(key)
        return [] if raw is None else decode_str_list(raw)

    def set_str_list(self, key: bytes, items: List[str]) -> None:
        self.set(key, encode_str_list(items))

    # ---- host hooks ----

    def _remember(self, key: bytes) -> None:
        if self._journal is not None and key not in self._journal:
            self._journal[key] = self.backend.get(key)

    def snapshot(self) -> Tuple[str, Any]:
        if self._native_snapshots:
            return ("copy", self.backend.snapshot())  # type: ignore[attr-defined]
        self._journal = {}
        return ("journal", self._journal)

    def restore(self, snap: Tuple[str, Any]) -> None:
        kind, data = snap
        if kind == "copy":
            self.backend.restore(data)  # type: ignore[attr-defined]
            return
        self._journal = None
        for key, prior in data.items():
            if prior is None:
                self.backend.delete(key)
            else:
                self.backend.set(key, prior)


__all__ = [
    "MAX_STORAGE_KEY_BYTES",
    "StorageBackend",
    "MemoryBackend",
    "Storage",
    "encode_uint",
    "decode_uint",
    "encode_str_list",
    "decode_str_list",
]
