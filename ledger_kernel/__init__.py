"""
Ledger Kernel - double-entry accounting core for fleet operations

A flush-only, session-scoped accounting kernel with:
- Chart-of-accounts registry (CGNC classes 1-7)
- Balanced journal entries with draft -> validated lifecycle
- Immutable validated entries (service checks + ORM listeners)
- Streaming grand livre and trial balance aggregation
- Periodic VAT (TVA) declaration computation
"""

__version__ = "0.1.0"
