from __future__ import annotations
# origami/errors.py
"""
Error types for the Origami raffle. These are lightweight and serializable so
they can be surfaced to a wallet/front-end or written to logs unchanged.

Exports:
- OrigamiError (base)
- ConfigError
- HostError, InsufficientFunds
- PreconditionViolation and its subclasses (call rejected, state rolled back)
"""


import json
from typing import Any, Dict, Mapping, Optional


class OrigamiError(Exception):
    """Base class for Origami errors."""

    code: str = "ORIGAMI_ERROR"

    def __init__(self, message: str = "", *, details: Optional[Mapping[str, Any]] = None) -> None:
        self.message = message or self.__class__.__name__
        self.details = dict(details or {})
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.details:
            packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"), default=str)
            return f"{self.code}: {self.message} [{packed}]"
        return f"{self.code}: {self.message}"


class ConfigError(OrigamiError):
    """Invalid raffle configuration."""
    code = "ORIGAMI_CONFIG_ERROR"


# ------------------------------- host errors --------------------------------


class HostError(OrigamiError):
    """A host port rejected an operation (bad key, bad address, oversized value)."""
    code = "ORIGAMI_HOST_ERROR"


class InsufficientFunds(HostError):
    """A native-coin transfer exceeded the sender's balance."""
    code = "ORIGAMI_INSUFFICIENT_FUNDS"

    def __init__(
        self,
        *,
        address: str,
        required: int,
        available: int,
        message: str = "insufficient balance",
    ) -> None:
        super().__init__(
            message,
            details={"address": address, "required": int(required), "available": int(available)},
        )


# ------------------------------ precondition errors ------------------------------


class PreconditionViolation(OrigamiError):
    """
    An entry point refused to run. The host rolls back every change made during
    the call; the contract stays invocable.
    """
    code = "ORIGAMI_PRECONDITION"


class NotInitialized(PreconditionViolation):
    code = "ORIGAMI_NOT_INITIALIZED"


class AlreadyInitialized(PreconditionViolation):
    code = "ORIGAMI_ALREADY_INITIALIZED"


class SoldOut(PreconditionViolation):
    """All tickets have been sold."""
    code = "ORIGAMI_SOLD_OUT"

    def __init__(self, *, max_tickets: int, message: str = "all tickets sold") -> None:
        super().__init__(message, details={"max_tickets": int(max_tickets)})


class Underpayment(PreconditionViolation):
    """Attached value is below the current ticket price."""
    code = "ORIGAMI_UNDERPAYMENT"

    def __init__(self, *, price: int, paid: int, message: str = "payment below ticket price") -> None:
        super().__init__(message, details={"price": int(price), "paid": int(paid)})


class SaleClosed(PreconditionViolation):
    """The raffle has reached its end date or already paid its main prizes."""
    code = "ORIGAMI_SALE_CLOSED"


class TooEarly(PreconditionViolation):
    """A time-gated operation was called before its gate opened."""
    code = "ORIGAMI_TOO_EARLY"

    def __init__(
        self,
        message: str = "not yet time",
        *,
        now: int,
        not_before: Optional[int] = None,
    ) -> None:
        d: Dict[str, Any] = {"now": int(now)}
        if not_before is not None:
            d["not_before"] = int(not_before)
        super().__init__(message, details=d)


class EmptyRoster(PreconditionViolation):
    code = "ORIGAMI_EMPTY_ROSTER"

    def __init__(self, message: str = "no ticket holders available") -> None:
        super().__init__(message)


class AlreadyDistributed(PreconditionViolation):
    """A prize pool (or all of its instalments) has already been paid out."""
    code = "ORIGAMI_ALREADY_DISTRIBUTED"


class NothingDue(PreconditionViolation):
    """No vesting instalment has matured since the last release."""
    code = "ORIGAMI_NOTHING_DUE"


class Unauthorized(PreconditionViolation):
    code = "ORIGAMI_UNAUTHORIZED"

    def __init__(self, *, caller: str, message: str = "caller not allowed") -> None:
        super().__init__(message, details={"caller": caller})


class NonPayable(PreconditionViolation):
    """Value was attached to an entry point that does not accept coins."""
    code = "ORIGAMI_NON_PAYABLE"

    def __init__(self, *, entry: str, value: int) -> None:
        super().__init__("entry point is not payable", details={"entry": entry, "value": int(value)})


__all__ = [
    "OrigamiError",
    "ConfigError",
    "HostError",
    "InsufficientFunds",
    "PreconditionViolation",
    "NotInitialized",
    "AlreadyInitialized",
    "SoldOut",
    "Underpayment",
    "SaleClosed",
    "TooEarly",
    "EmptyRoster",
    "AlreadyDistributed",
    "NothingDue",
    "Unauthorized",
    "NonPayable",
]
