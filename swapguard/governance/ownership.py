"""
Two-step ownership.

    owner ──transfer_ownership(new)──▶ pending_owner = new
    new   ──accept_ownership()──────▶ owner = new, pending cleared

Only the pending owner can complete a transfer, so a typo in the new
address leaves the current owner in control. A second
transfer_ownership() call replaces the pending owner.
"""

from typing import Optional, Tuple

from swapguard.core.exceptions import GovernanceAuthError
from swapguard.core.models import ZERO_ADDRESS, normalize_address


class Ownership:

    def __init__(self, owner: str):
        self._owner:   str           = normalize_address(owner)
        self._pending: Optional[str] = None

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def pending_owner(self) -> Optional[str]:
        return self._pending

    def require_owner(self, sender: str) -> None:
        """Raise GovernanceAuthError unless sender is the current owner."""
        sender = _sender(sender)
        if self._owner == ZERO_ADDRESS or sender != self._owner:
            raise GovernanceAuthError(
                "caller is not the owner",
                {"caller": sender},
            )

    def propose(self, sender: str, new_owner: str) -> str:
        self.require_owner(sender)
        self._pending = normalize_address(new_owner)
        return self._pending

    def accept(self, sender: str) -> str:
        sender = _sender(sender)
        if self._pending is None or sender != self._pending:
            raise GovernanceAuthError(
                "caller is not the pending owner",
                {"caller": sender},
            )
        self._owner   = self._pending
        self._pending = None
        return self._owner

    def renounce(self, sender: str) -> None:
        self.require_owner(sender)
        self._owner   = ZERO_ADDRESS
        self._pending = None

    def state(self) -> Tuple[str, Optional[str]]:
        return self._owner, self._pending

    def restore(self, state: Tuple[str, Optional[str]]) -> None:
        """Put back a state captured with state(). No owner check."""
        self._owner, self._pending = state


def _sender(sender: str) -> str:
    try:
        return normalize_address(sender)
    except ValueError as e:
        raise GovernanceAuthError("caller is not a valid address", {"caller": sender}) from e
