"""
origami.runtime.hash_api - deterministic hashing wrappers.

Strictly bytes-in, bytes-out with an optional domain-separation prefix. If a
non-empty `domain` is provided, the hash input becomes:

    b"\\x19origami:" || domain || b"\\x00" || data
"""

from __future__ import annotations

import hashlib

from origami.errors import HostError

_ORIGAMI_PREFIX = b"\x19origami:"


def _ensure_bytes(buf: object, name: str) -> bytes:
    if isinstance(buf, (bytes, bytearray, memoryview)):
        return bytes(buf)
    raise HostError(f"{name} must be bytes-like (got {type(buf).__name__})")


def sha3_256(data: bytes | bytearray | memoryview, *, domain: bytes = b"") -> bytes:
    d = _ensure_bytes(data, "data")
    dom = _ensure_bytes(domain, "domain")
    h = hashlib.sha3_256()
    if dom:
        h.update(_ORIGAMI_PREFIX)
        h.update(dom)
        h.update(b"\x00")
    h.update(d)
    return h.digest()


def sha3_256_hex(data: bytes | bytearray | memoryview, *, domain: bytes = b"") -> str:
    return "0x" + sha3_256(data, domain=domain).hex()


__all__ = ["sha3_256", "sha3_256_hex"]
