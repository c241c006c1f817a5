from __future__ import annotations
"""
origami.config - parameters of the Origami raffle.

Covers:
- Ticket sale: supply cap, start price, linear price increment
- Treasury split: fixed reserve per ticket, small-prize share of the remainder
- Main-prize split between the RED / GREEN / BLUE holders (basis points)
- Timing: end date (absolute or offset from the first sale), daily reassignment
  interval, small-prize interval and instalment count
- Main-prize payout mode (lump sum or vested instalments)

All amounts are integers in base units (1 coin = 1_000_000_000 base units);
all times are milliseconds since the UNIX epoch.

Environment overrides (all optional; sensible defaults provided):

  ORIGAMI_MAX_TICKETS=200
  ORIGAMI_START_PRICE=5000000000
  ORIGAMI_PRICE_INCREMENT=200000000
  ORIGAMI_RESERVE_PER_TICKET=1000000000
  ORIGAMI_SMALL_PRIZE_BPS=2000
  ORIGAMI_MAIN_SPLIT_BPS=6000,3000,1000
  ORIGAMI_END_DATE_MODE=absolute          # or "offset"
  ORIGAMI_END_DATE_MS=1735036800000
  ORIGAMI_END_OFFSET_MS=2592000000
  ORIGAMI_DAILY_INTERVAL_MS=86400000
  ORIGAMI_SMALL_INTERVAL_MS=604800000
  ORIGAMI_SMALL_INTERVALS=4
  ORIGAMI_PAYOUT_MODE=lump                # or "vested"
  ORIGAMI_VESTING_INSTALMENTS=4
  ORIGAMI_VESTING_INTERVAL_MS=604800000
  ORIGAMI_MAX_STORAGE_VALUE_BYTES=131072

You can also load from a JSON or YAML file via
`ORIGAMI_CONFIG_FILE=/path/to/config.(json|yaml|yml)`. File values override
defaults; environment overrides the file.
"""


import json
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .errors import ConfigError

COIN = 1_000_000_000
DAY_MS = 86_400_000

END_DATE_MODES = ("absolute", "offset")
PAYOUT_MODES = ("lump", "vested")

ENV_PREFIX = "ORIGAMI_"


# -------------------------- Data class --------------------------


@dataclass(frozen=True)
class RaffleConfig:
    # Sale
    max_tickets: int = 200
    start_price: int = 5 * COIN
    price_increment: int = COIN // 5
    # Treasury split
    reserve_per_ticket: int = 1 * COIN
    small_prize_bps: int = 2_000
    main_split_bps: Tuple[int, int, int] = (6_000, 3_000, 1_000)
    # Timing
    end_date_mode: str = "absolute"
    end_date_ms: int = 1_735_036_800_000  # 2024-12-24 12:00:00 UTC
    end_offset_ms: int = 30 * DAY_MS
    daily_interval_ms: int = DAY_MS
    small_interval_ms: int = 7 * DAY_MS
    small_intervals: int = 4
    # Main-prize payout
    payout_mode: str = "lump"
    vesting_instalments: int = 4
    vesting_interval_ms: int = 7 * DAY_MS
    # Host caps
    max_storage_value_bytes: int = 131_072

    def __post_init__(self) -> None:
        object.__setattr__(self, "main_split_bps", tuple(int(x) for x in self.main_split_bps))
        self.validate()

    def validate(self) -> None:
        if self.max_tickets <= 0:
            raise ConfigError("max_tickets must be positive", details={"max_tickets": self.max_tickets})
        for name in ("start_price", "price_increment", "reserve_per_ticket"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must be non-negative", details={name: getattr(self, name)})
        if self.start_price < self.reserve_per_ticket:
            raise ConfigError(
                "start_price must cover the per-ticket reserve",
                details={"start_price": self.start_price, "reserve_per_ticket": self.reserve_per_ticket},
            )
        if not (0 <= self.small_prize_bps <= 10_000):
            raise ConfigError("small_prize_bps must be between 0 and 10000", details={"small_prize_bps": self.small_prize_bps})
        if len(self.main_split_bps) != 3:
            raise ConfigError("main_split_bps needs exactly three entries (RED, GREEN, BLUE)")
        if any(b < 0 for b in self.main_split_bps) or sum(self.main_split_bps) != 10_000:
            raise ConfigError(
                "main_split_bps must be non-negative and sum to 10000",
                details={"main_split_bps": list(self.main_split_bps)},
            )
        if self.end_date_mode not in END_DATE_MODES:
            raise ConfigError(f"end_date_mode must be one of {END_DATE_MODES}", details={"end_date_mode": self.end_date_mode})
        if self.payout_mode not in PAYOUT_MODES:
            raise ConfigError(f"payout_mode must be one of {PAYOUT_MODES}", details={"payout_mode": self.payout_mode})
        for name in (
            "end_offset_ms",
            "daily_interval_ms",
            "small_interval_ms",
            "small_intervals",
            "vesting_instalments",
            "vesting_interval_ms",
            "max_storage_value_bytes",
        ):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive", details={name: getattr(self, name)})
        if self.end_date_ms < 0:
            raise ConfigError("end_date_ms must be non-negative")

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["main_split_bps"] = list(self.main_split_bps)
        return d


# -------------------------- Loaders --------------------------


def _coerce(name: str, raw: Any, default: Any) -> Any:
    if isinstance(default, tuple):
        if isinstance(raw, str):
            parts = [p for p in raw.replace(";", ",").split(",") if p.strip()]
        else:
            parts = list(raw)
        try:
            return tuple(int(str(p).strip().replace("_", "")) for p in parts)
        except ValueError as e:
            raise ConfigError(f"Invalid list of ints for {name}: {raw!r}") from e
    if isinstance(default, int):
        if isinstance(raw, int):
            return raw
        try:
            return int(str(raw).replace("_", ""), 0)
        except ValueError as e:
            raise ConfigError(f"Invalid int for {name}: {raw!r}") from e
    return str(raw).strip().lower()


def from_mapping(data: Mapping[str, Any], base: Optional[RaffleConfig] = None) -> RaffleConfig:
    """Layer known keys of `data` on top of `base` (or the defaults)."""
    cfg = base or RaffleConfig()
    known = {f.name for f in fields(RaffleConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError("unknown configuration keys", details={"keys": unknown})
    updates = {k: _coerce(k, v, getattr(cfg, k)) for k, v in data.items()}
    return replace(cfg, **updates)


def from_env(base: Optional[RaffleConfig] = None, prefix: str = ENV_PREFIX) -> RaffleConfig:
    """
    Build a RaffleConfig from environment variables, optionally layering on top of `base`.
    """
    cfg = base or RaffleConfig()
    updates: Dict[str, Any] = {}
    for f in fields(RaffleConfig):
        raw = os.getenv(prefix + f.name.upper())
        if raw is None or raw == "":
            continue
        updates[f.name] = raw
    return from_mapping(updates, base=cfg) if updates else cfg


def from_file(path: str | os.PathLike[str]) -> RaffleConfig:
    """
    Load configuration from a JSON or YAML file.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text or "{}")
    if not isinstance(data, dict):
        raise ConfigError("config file must contain a mapping", details={"path": str(p)})
    return from_mapping(data)


def load_config() -> RaffleConfig:
    """
    Load configuration using the following precedence:
      1) File at $ORIGAMI_CONFIG_FILE (JSON/YAML)
      2) Environment variables (ORIGAMI_*), applied on top of defaults or file values
    """
    file_path = os.getenv(ENV_PREFIX + "CONFIG_FILE")
    base = from_file(file_path) if file_path else RaffleConfig()
    return from_env(base=base)


def pretty(cfg: Optional[RaffleConfig] = None) -> str:
    """Return a human-readable JSON string of the config."""
    return json.dumps((cfg or load_config()).to_dict(), indent=2, sort_keys=True)


__all__ = [
    "COIN",
    "DAY_MS",
    "RaffleConfig",
    "from_mapping",
    "from_env",
    "from_file",
    "load_config",
    "pretty",
]
