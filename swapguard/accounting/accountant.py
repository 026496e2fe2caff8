"""
Balanced exchange accountant.

Turns a swap descriptor into two offsetting claim movements at a fixed
1:1 rate and the delta reported to the host. Knows nothing about
authorization.

    exact-input  (amount < 0):  delta = (+traded, -traded)
    exact-output (amount >= 0): delta = (-traded, +traded)
"""

from swapguard.accounting.ledger import ClaimLedger
from swapguard.core.exceptions import AccountingError
from swapguard.core.models import (
    INT128_MAX,
    INT256_MAX,
    INT256_MIN,
    SwapDelta,
    SwapDescriptor,
)


class BalancedExchangeAccountant:
    """
    Custody-free constant-sum accountant.

    Args:
        ledger: claim ledger shared with the host
        holder: identity whose claims back the reserve (the gateway address)
    """

    def __init__(self, ledger: ClaimLedger, holder: str):
        self.ledger = ledger
        self.holder = holder

    def account(self, descriptor: SwapDescriptor) -> SwapDelta:
        """
        Mint the input leg, burn the output leg, return the delta.

        Both ledger operations run in one journal: on any AccountingError
        neither is visible afterwards.
        """
        amount = descriptor.amount_specified

        if amount == 0:
            raise AccountingError("traded amount must be non-zero", {"pool_id": descriptor.pool_id})
        if not INT256_MIN <= amount <= INT256_MAX:
            raise AccountingError("amount_specified overflows int256", {"amount": amount})

        traded = abs(amount)
        if traded > INT128_MAX:
            raise AccountingError("traded amount overflows int128", {"amount": amount})

        try:
            pair = descriptor.asset_pair()
        except ValueError as e:
            raise AccountingError(str(e), {"pool_id": descriptor.pool_id}) from e

        with self.ledger.journal():
            self.ledger.mint(self.holder, pair.input_asset, traded)
            self.ledger.burn(self.holder, pair.output_asset, traded)

        if descriptor.is_exact_input:
            return SwapDelta(specified=traded, unspecified=-traded)
        return SwapDelta(specified=-traded, unspecified=traded)

    def provision(self, descriptor: SwapDescriptor, amount: int) -> None:
        """Add `amount` claims on both pool assets to the reserve."""
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise AccountingError("liquidity amount must be a positive int", {"amount": amount})
        if amount > INT128_MAX:
            raise AccountingError("liquidity amount overflows int128", {"amount": amount})
        if descriptor.asset0 == descriptor.asset1:
            raise AccountingError("pool assets must differ", {"pool_id": descriptor.pool_id})

        with self.ledger.journal():
            self.ledger.mint(self.holder, descriptor.asset0, amount)
            self.ledger.mint(self.holder, descriptor.asset1, amount)
