"""
SwapGuard Accounting

- ClaimLedger: custody-free claim balances with atomic journals
- BalancedExchangeAccountant: fixed 1:1 swap accounting
"""

from swapguard.accounting.accountant import BalancedExchangeAccountant
from swapguard.accounting.ledger import ClaimLedger

__all__ = ["BalancedExchangeAccountant", "ClaimLedger"]
