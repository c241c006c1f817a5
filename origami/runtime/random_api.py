"""
origami.runtime.random_api - uniform integer sources for holder draws.

The raffle only ever asks one question of its host: "give me a uniform integer
in [0, bound)". On chain that answer comes from the runtime's native generator;
locally it comes from one of the sources below.

- DRBG               deterministic, SHA3-256 in counter mode, seedable; used by
                     tests and simulations so runs are reproducible.
- SystemRandomSource backed by the OS CSPRNG via `secrets`.

Typical usage
-------------
from origami.runtime import random_api as rnd

rng = rnd.DRBG.new(b"seed")
i = rng.next_int(10)   # unbiased 0..9
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple, runtime_checkable

from origami.errors import HostError

from . import hash_api as _h

_DOMAIN_INIT = b"origami/random/init/v1"
_DOMAIN_BLOCK = b"origami/random/block/v1"
_MAX_REQUEST = 1 << 24


@runtime_checkable
class RandomSource(Protocol):
    def next_int(self, bound: int) -> int: ...


def _ensure_bytes(x: object, name: str) -> bytes:
    if isinstance(x, (bytes, bytearray, memoryview)):
        return bytes(x)
    raise HostError(f"{name} must be bytes-like, got {type(x).__name__}")


def _ensure_int(x: object, name: str, *, min_: int = 0, max_: Optional[int] = None) -> int:
    if not isinstance(x, int) or isinstance(x, bool):
        raise HostError(f"{name} must be int, got {type(x).__name__}")
    if x < min_:
        raise HostError(f"{name} must be >= {min_} (got {x})")
    if max_ is not None and x > max_:
        raise HostError(f"{name} must be <= {max_} (got {x})")
    return x


@dataclass
class DRBG:
    """
    Deterministic PRNG over SHA3-256 in counter mode.

    state = SHA3-256(domain=_DOMAIN_INIT, seed || "|" || info)
    block_i = SHA3-256(domain=_DOMAIN_BLOCK, state || LE64(counter))
    """
    _state: bytes
    _counter: int = 0
    _buf: bytes = b""
    _pos: int = 0

    @staticmethod
    def new(seed: bytes, *, info: bytes = b"") -> "DRBG":
        seed = _ensure_bytes(seed, "seed")
        info = _ensure_bytes(info, "info")
        return DRBG(_state=_h.sha3_256(seed + b"|" + info, domain=_DOMAIN_INIT))

    @staticmethod
    def from_int(seed: int) -> "DRBG":
        seed = _ensure_int(seed, "seed")
        return DRBG.new(seed.to_bytes(max(1, (seed.bit_length() + 7) // 8), "big"))

    def _refill(self) -> None:
        self._buf = _h.sha3_256(self._state + self._counter.to_bytes(8, "little"), domain=_DOMAIN_BLOCK)
        self._counter += 1
        self._pos = 0

    def read(self, n: int) -> bytes:
        """Return exactly n bytes deterministically."""
        _ensure_int(n, "n", min_=0, max_=_MAX_REQUEST)
        out = bytearray()
        while n > 0:
            if self._pos >= len(self._buf):
                self._refill()
            take = min(n, len(self._buf) - self._pos)
            out += self._buf[self._pos : self._pos + take]
            self._pos += take
            n -= take
        return bytes(out)

    def u64(self) -> int:
        return int.from_bytes(self.read(8), "little")

    def next_int(self, bound: int) -> int:
        """
        Unbiased integer in [0, bound). Rejection sampling avoids modulo bias:
        only draws below floor(2^64 / bound) * bound are accepted.
        """
        bound = _ensure_int(bound, "bound", min_=1)
        t = ((1 << 64) // bound) * bound
        while True:
            x = self.u64()
            if x < t:
                return x % bound

    # Host rollback support: a rejected call must not consume randomness.
    def snapshot(self) -> Tuple[int, bytes, int]:
        return (self._counter, self._buf, self._pos)

    def restore(self, snap: Tuple[int, bytes, int]) -> None:
        self._counter, self._buf, self._pos = snap


class SystemRandomSource:
    """OS-backed source; not reproducible and not rolled back on failure."""

    def next_int(self, bound: int) -> int:
        return secrets.randbelow(_ensure_int(bound, "bound", min_=1))


__all__ = ["RandomSource", "DRBG", "SystemRandomSource"]
