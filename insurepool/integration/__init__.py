"""
Host integration layer: engine shell and ledger adapters
"""

from .engine import InsuranceEngine
from .ledger import InMemoryLedger, LedgerAdapter, LedgerTransferError

__all__ = [
    "InsuranceEngine",
    "InMemoryLedger",
    "LedgerAdapter",
    "LedgerTransferError",
]
