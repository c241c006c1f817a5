"""
origami.runtime - host ports the raffle calls through, with in-memory adapters.

Each port is a small Protocol plus a deterministic local implementation:

- storage_api   key/value storage (Storage, MemoryBackend)
- treasury_api  native-coin balances (Ledger)
- nft_api       NFT ownership (NftLedger)
- random_api    uniform integers (DRBG, SystemRandomSource)
- scheduler_api one-shot autonomous calls (CallQueue)
- events_api    event log (EventSink)
- context       per-call environment (CallContext)
- host          the bundle + transactional call boundary (Host)
- driver        loop firing due scheduled calls (Dispatcher)
"""

from .context import CallContext
from .driver import Dispatcher, DispatcherConfig
from .host import DEFAULT_CONTRACT_ADDRESS, Host

__all__ = ["CallContext", "Dispatcher", "DispatcherConfig", "DEFAULT_CONTRACT_ADDRESS", "Host"]
