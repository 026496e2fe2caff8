"""
Settlement gateway: the host-facing swap callback.

Per swap attempt:

    RECEIVED ─▶ ACCOUNTED ─┬─ caller is bypassed swapper ─▶ BYPASS_CHECKED ─▶ SETTLED
                           └─ verifier(caller, swap, msg) ─▶ VERIFIED ──────▶ SETTLED
                                                 └ false ─▶ REJECTED

Any failure after RECEIVED ends in REJECTED and unwinds every claim
movement made by the attempt. Donations never enter the machine; they
are rejected at entry.

Invariants:
- Accounting always runs before authorization.
- A bypassed swapper never reaches the verifier.
- Nothing is retried here; a rejected attempt is final.
"""

import logging
import uuid
from typing import Any, Dict

from swapguard.accounting.accountant import BalancedExchangeAccountant
from swapguard.accounting.ledger import ClaimLedger
from swapguard.authorization.message import AuthorizationMessage
from swapguard.authorization.verifier import AuthorizationVerifier
from swapguard.core.exceptions import (
    AccountingError,
    AuthorizationError,
    DonationRejected,
    LiquidityNotAuthorized,
)
from swapguard.core.models import (
    BEFORE_SWAP_SELECTOR,
    AttemptState,
    HookResult,
    Role,
    SwapAttempt,
    SwapDescriptor,
    normalize_address,
)
from swapguard.governance.registry import BypassRegistry

logger = logging.getLogger(__name__)


class SettlementGateway:
    """
    Orchestrates accountant, bypass registry and verifier for each swap.

    Args:
        address:  this gateway's identity; descriptors must name it as hook
        ledger:   claim ledger shared with the host
        registry: bypass registry (read-only here)
        verifier: authorization verifier bound to the live policy config
    """

    def __init__(
        self,
        address:  str,
        ledger:   ClaimLedger,
        registry: BypassRegistry,
        verifier: AuthorizationVerifier,
    ):
        self.address    = normalize_address(address)
        self.ledger     = ledger
        self.registry   = registry
        self.verifier   = verifier
        self.accountant = BalancedExchangeAccountant(ledger, self.address)
        self._stats = {
            "settled":                0,
            "settled_bypass":         0,
            "rejected_accounting":    0,
            "rejected_authorization": 0,
            "rejected_donation":      0,
            "liquidity_added":        0,
        }

    # ── Host callbacks ────────────────────────────────────────

    def before_swap(
        self,
        caller:        str,
        descriptor:    SwapDescriptor,
        swap_context:  bytes = b"",
        authorization: bytes = b"",
    ) -> HookResult:
        """
        Account for and authorize one swap.

        Returns the HookResult on settlement. Raises AccountingError or
        AuthorizationError on rejection, with the ledger exactly as it
        was before the call.
        """
        attempt = SwapAttempt(
            attempt_id= f"swap-{uuid.uuid4()}",
            caller=     caller,
            descriptor= descriptor,
        )
        try:
            delta = self._run(attempt, authorization)
        except AccountingError as e:
            attempt.advance(AttemptState.REJECTED)
            self._stats["rejected_accounting"] += 1
            e.details.setdefault("attempt_id", attempt.attempt_id)
            logger.warning("swap %s rejected (accounting): %s", attempt.attempt_id, e.message)
            raise
        except AuthorizationError as e:
            attempt.advance(AttemptState.REJECTED)
            self._stats["rejected_authorization"] += 1
            e.details.setdefault("attempt_id", attempt.attempt_id)
            logger.warning("swap %s rejected (authorization)", attempt.attempt_id)
            raise

        attempt.advance(AttemptState.SETTLED)
        self._stats["settled"] += 1
        logger.info(
            "swap %s settled: caller=%s pool=%s specified=%d unspecified=%d",
            attempt.attempt_id, attempt.caller, descriptor.pool_id[:16],
            delta.specified, delta.unspecified,
        )
        return HookResult(selector=BEFORE_SWAP_SELECTOR, delta=delta, fee_override=0)

    def before_donate(self, caller: str, descriptor: SwapDescriptor, amount0: int = 0, amount1: int = 0, data: bytes = b"") -> None:
        """Donations are never accepted, from anyone, for any amount."""
        self._stats["rejected_donation"] += 1
        logger.warning("donation from %s rejected", caller)
        raise DonationRejected("donations are not accepted", {"caller": caller})

    def before_add_liquidity(self, caller: str, descriptor: SwapDescriptor, amount: int) -> None:
        """
        Provision the reserve: an approved liquidity provider adds `amount`
        claims on each pool asset. Positions are not tracked or valued.
        """
        try:
            caller = normalize_address(caller)
        except ValueError as e:
            raise LiquidityNotAuthorized("caller is not a valid address", {"caller": caller}) from e
        if not self.registry.is_bypassed(caller, Role.LIQUIDITY_PROVIDER):
            raise LiquidityNotAuthorized("caller is not an approved liquidity provider", {"caller": caller})
        self._check_hook(descriptor)

        self.accountant.provision(descriptor, amount)
        self._stats["liquidity_added"] += 1
        logger.info("liquidity %d added to pool %s by %s", amount, descriptor.pool_id[:16], caller)

    def get_stats(self) -> Dict[str, Any]:
        return dict(self._stats)

    # ── Internal ──────────────────────────────────────────────

    def _run(self, attempt: SwapAttempt, authorization: bytes):
        try:
            caller = normalize_address(attempt.caller)
        except ValueError as e:
            raise AccountingError("caller is not a valid address", {"caller": attempt.caller}) from e
        attempt.caller = caller
        descriptor     = attempt.descriptor

        self._check_hook(descriptor)

        with self.ledger.journal():
            delta = self.accountant.account(descriptor)
            attempt.advance(AttemptState.ACCOUNTED)

            if self.registry.is_bypassed(caller, Role.SWAPPER):
                attempt.advance(AttemptState.BYPASS_CHECKED)
                self._stats["settled_bypass"] += 1
                return delta

            if not self._authorized(caller, descriptor, authorization):
                raise AuthorizationError("swap is not authorized", {"caller": caller})
            attempt.advance(AttemptState.VERIFIED)

        return delta

    def _authorized(self, caller: str, descriptor: SwapDescriptor, authorization: bytes) -> bool:
        try:
            message = AuthorizationMessage.decode(authorization)
        except ValueError as e:
            logger.debug("undecodable authorization payload from %s: %s", caller, e)
            return False
        return self.verifier.verify(caller, descriptor, message)

    def _check_hook(self, descriptor: SwapDescriptor) -> None:
        if descriptor.hook_address != self.address:
            raise AccountingError(
                "descriptor is not addressed to this gateway",
                {"hook_address": descriptor.hook_address, "gateway": self.address},
            )
