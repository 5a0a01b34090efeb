"""
Factory Token Collector.

Ingests TokenCreated events from a token factory contract,
resolves deployers, stores tokens and discovers their liquidity pools.
"""

__version__ = "1.0.0"
