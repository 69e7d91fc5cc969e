"""
State tables and canonical encoding for insurepool
"""

from .balances import BalanceTable
from .canonical import canonical_json_bytes, sha256_hex

__all__ = [
    "BalanceTable",
    "canonical_json_bytes",
    "sha256_hex",
]
