"""
origami.raffle - the raffle state machine.

- state     persisted record and storage layout
- split     integer split / instalment arithmetic
- contract  OrigamiRaffle entry points
"""

from .contract import OrigamiRaffle, entrypoint
from .state import COLORS, Color, RaffleState

__all__ = ["OrigamiRaffle", "entrypoint", "COLORS", "Color", "RaffleState"]
