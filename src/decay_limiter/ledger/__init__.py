"""Token ledgers.

Per-identity usage counters with linear decay, kept in memory or in an
external asynchronous store.
"""

from .base import KeyedLocks, Ledger
from .memory import TokenLedger
from .store import CallbackLedgerStore, LedgerStore, RedisLedgerStore, StoreLedger

__all__ = [
    "Ledger",
    "KeyedLocks",
    "TokenLedger",
    "LedgerStore",
    "CallbackLedgerStore",
    "RedisLedgerStore",
    "StoreLedger",
]
