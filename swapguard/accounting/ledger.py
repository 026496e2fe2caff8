"""
Claim ledger: the host's reserve-accounting primitive.

The gateway never holds tokens. It holds claims: per-holder, per-asset
integer balances that the host later settles into real transfers.
Claims never go negative.

Atomicity
    Every mutation made inside ``with ledger.journal():`` is undone if
    the block raises. Journals nest: an inner journal that completes
    folds its entries into the outer one, so the outer block can still
    unwind them.
"""

from contextlib import contextmanager
from typing import Dict, Iterator, List, Tuple

from swapguard.core.exceptions import AccountingError

# (holder, asset, signed change)
_JournalEntry = Tuple[str, str, int]


class ClaimLedger:
    """In-process claim balances with journalled rollback."""

    def __init__(self) -> None:
        self._balances: Dict[Tuple[str, str], int] = {}
        self._journals: List[List[_JournalEntry]] = []

    def balance_of(self, holder: str, asset: str) -> int:
        return self._balances.get((holder, asset), 0)

    def mint(self, holder: str, asset: str, amount: int) -> None:
        """Increase holder's claim on asset."""
        if amount <= 0:
            raise AccountingError("mint amount must be positive", {"amount": amount})
        self._apply(holder, asset, amount)

    def burn(self, holder: str, asset: str, amount: int) -> None:
        """Decrease holder's claim on asset. Raises AccountingError on underflow."""
        if amount <= 0:
            raise AccountingError("burn amount must be positive", {"amount": amount})
        available = self.balance_of(holder, asset)
        if available < amount:
            raise AccountingError(
                "insufficient claim balance",
                {"holder": holder, "asset": asset, "available": available, "requested": amount},
            )
        self._apply(holder, asset, -amount)

    def snapshot(self) -> Dict[Tuple[str, str], int]:
        """Copy of every non-zero balance."""
        return {k: v for k, v in self._balances.items() if v != 0}

    @contextmanager
    def journal(self) -> Iterator["ClaimLedger"]:
        frame: List[_JournalEntry] = []
        self._journals.append(frame)
        try:
            yield self
        except BaseException:
            self._journals.pop()
            for holder, asset, change in reversed(frame):
                self._set(holder, asset, self.balance_of(holder, asset) - change)
            raise
        else:
            self._journals.pop()
            if self._journals:
                self._journals[-1].extend(frame)

    def _apply(self, holder: str, asset: str, change: int) -> None:
        self._set(holder, asset, self.balance_of(holder, asset) + change)
        if self._journals:
            self._journals[-1].append((holder, asset, change))

    def _set(self, holder: str, asset: str, value: int) -> None:
        if value == 0:
            self._balances.pop((holder, asset), None)
        else:
            self._balances[(holder, asset)] = value
