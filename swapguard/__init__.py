"""
swapguard/__init__.py

SwapGuard: policy-gated settlement gateway for fixed-rate (1:1) swaps.

Every swap is accounted for against a custody-free claim reserve, then
settled only if the caller is a pre-approved swapper or presents an
endorsement from the configured policy authority. Governance changes are
written to a signed, hash-chained audit log.
"""

__version__ = "0.1.0"

from swapguard.accounting import BalancedExchangeAccountant, ClaimLedger
from swapguard.authorization import (
    Authority,
    AuthorityRequest,
    AuthorizationMessage,
    AuthorizationVerifier,
    Ed25519Authority,
    PolicyOracleSigner,
    encode_swap_parameters,
)
from swapguard.core.audit import AuditEvent, AuditLog
from swapguard.core.crypto import Ed25519KeyManager
from swapguard.core.exceptions import (
    AccountingError,
    AuditLogError,
    AuthorizationError,
    ConfigError,
    DonationRejected,
    GovernanceAuthError,
    LiquidityNotAuthorized,
    SwapGuardError,
)
from swapguard.core.models import (
    BEFORE_SWAP_SELECTOR,
    ZERO_ADDRESS,
    AssetPair,
    HookResult,
    PolicyConfig,
    Role,
    SwapDelta,
    SwapDescriptor,
)
from swapguard.governance import BypassRegistry, GovernanceSurface, Ownership
from swapguard.runtime import GatewayConfig, GatewayContext
from swapguard.settlement import SettlementGateway

__all__ = [
    # Swap path
    "SettlementGateway",
    "BalancedExchangeAccountant",
    "ClaimLedger",
    "AuthorizationVerifier",
    # Authorities
    "Authority",
    "AuthorityRequest",
    "AuthorizationMessage",
    "Ed25519Authority",
    "PolicyOracleSigner",
    "encode_swap_parameters",
    # Governance
    "BypassRegistry",
    "GovernanceSurface",
    "Ownership",
    "AuditEvent",
    "AuditLog",
    # Runtime
    "GatewayConfig",
    "GatewayContext",
    "Ed25519KeyManager",
    # Types
    "AssetPair",
    "HookResult",
    "PolicyConfig",
    "Role",
    "SwapDelta",
    "SwapDescriptor",
    # Errors
    "SwapGuardError",
    "AccountingError",
    "AuthorizationError",
    "LiquidityNotAuthorized",
    "GovernanceAuthError",
    "DonationRejected",
    "ConfigError",
    "AuditLogError",
    # Constants
    "BEFORE_SWAP_SELECTOR",
    "ZERO_ADDRESS",
]
