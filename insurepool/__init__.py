"""
insurepool: deterministic risk-priced insurance engine

- `insurepool.core`: pure functional core (types, guards, transitions, invariants)
- `insurepool.state`: balance tables, canonical encoding and state roots
- `insurepool.integration`: engine shell bound to a host ledger
"""

__version__ = "0.1.0"
