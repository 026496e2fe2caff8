"""
SwapGuard Settlement

The SettlementGateway is the single entry point the host calls for every
swap, donation and liquidity addition.

Critical Invariants:
- Settlement does NOT decide compliance; it checks an endorsement or a bypass
- Accounting always precedes authorization
- A rejected attempt leaves no claim movement behind
- Donations are always rejected
"""

from swapguard.settlement.gateway import SettlementGateway

__all__ = ["SettlementGateway"]
