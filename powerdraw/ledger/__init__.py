"""Token ledger adapters."""

from .base import TokenLedger
from .memory import InMemoryLedger

__all__ = ["TokenLedger", "InMemoryLedger"]
