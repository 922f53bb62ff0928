# src/tierstake/runtime/apply/__init__.py
"""Domain-specific apply modules.

These modules implement deterministic ledger state transitions for subsets
of tx types. domain_dispatch.py routes each envelope to the first applier
that claims it.

NOTE: Keep this package import-safe (no imports of domain_dispatch).
"""

from __future__ import annotations

__all__ = [
    "staking",
]
