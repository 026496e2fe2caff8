"""
swapguard/core/models.py

SwapGuard Data Model

Identities
    Every identity (caller, owner, authority, gateway, asset) is an
    address: "0x" + 40 hex chars, normalised to lower case.
    ZERO_ADDRESS is the native asset and the "unset" identity.

Signed amounts
    amount_specified < 0   → exact-input  (caller names what they pay)
    amount_specified >= 0  → exact-output (caller names what they receive)
    Descriptor amounts are int256. Delta fields are int128.

Deltas
    Reported from the gateway's side. specified and unspecified always
    carry the same magnitude and opposite signs (fixed 1:1 rate).
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple

from swapguard.core.canonical import sha256_hex, versioned


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────

ZERO_ADDRESS = "0x" + "0" * 40

INT128_MIN = -(2 ** 127)
INT128_MAX = 2 ** 127 - 1
INT256_MIN = -(2 ** 255)
INT256_MAX = 2 ** 255 - 1

UINT24_MAX = 2 ** 24 - 1

# IHooks.beforeSwap.selector, returned to the host on every settled swap.
BEFORE_SWAP_SELECTOR = bytes.fromhex("575e24b4")

POOL_KEY_ENCODING = "swapguard.poolkey.v1"

_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")


def normalize_address(value: str) -> str:
    """
    Return the canonical lower-case form of an address.
    Raises ValueError for anything that is not 0x + 40 hex characters.
    """
    if not isinstance(value, str):
        raise ValueError(f"address must be str, got {type(value).__name__}")
    candidate = value.strip().lower()
    if not _ADDRESS_RE.match(candidate):
        raise ValueError(f"not a valid address: {value!r}")
    return candidate


def is_zero_address(value: str) -> bool:
    return normalize_address(value) == ZERO_ADDRESS


# ─────────────────────────────────────────────────────────────
# Enumerations
# ─────────────────────────────────────────────────────────────

class Role(Enum):
    """Bypass roles. Each role is an independent identity set."""
    LIQUIDITY_PROVIDER = "liquidity_provider"
    SWAPPER            = "swapper"


class AttemptState(Enum):
    """Lifecycle of one swap attempt inside the gateway."""
    RECEIVED       = "RECEIVED"
    ACCOUNTED      = "ACCOUNTED"
    BYPASS_CHECKED = "BYPASS_CHECKED"
    VERIFIED       = "VERIFIED"
    SETTLED        = "SETTLED"
    REJECTED       = "REJECTED"


# ─────────────────────────────────────────────────────────────
# Swap types
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AssetPair:
    """Ordered (input, output) pair for one swap."""
    input_asset:  str
    output_asset: str

    def __post_init__(self) -> None:
        if self.input_asset == self.output_asset:
            raise ValueError(
                f"input and output asset must differ, both are {self.input_asset}"
            )


def pool_id_for(
    asset0:       str,
    asset1:       str,
    fee:          int,
    tick_spacing: int,
    hook_address: str,
) -> str:
    """Deterministic pool identifier: SHA-256 of the canonical pool key."""
    return sha256_hex(versioned(POOL_KEY_ENCODING, {
        "asset0":       asset0,
        "asset1":       asset1,
        "fee":          fee,
        "tick_spacing": tick_spacing,
        "hook_address": hook_address,
    }))


@dataclass(frozen=True)
class SwapDescriptor:
    """
    Everything the host tells the gateway about one swap.

    Build with SwapDescriptor.create(); it normalises addresses and
    derives pool_id from the pool key.
    """
    pool_id:          str
    asset0:           str
    asset1:           str
    fee:              int
    tick_spacing:     int
    hook_address:     str
    zero_for_one:     bool
    amount_specified: int

    @classmethod
    def create(
        cls,
        asset0:           str,
        asset1:           str,
        hook_address:     str,
        zero_for_one:     bool,
        amount_specified: int,
        fee:              int = 0,
        tick_spacing:     int = 1,
    ) -> "SwapDescriptor":
        """
        Raises ValueError for malformed addresses or out-of-range pool
        parameters. Amount range and asset equality are accounting
        concerns and are checked by the accountant, not here.
        """
        if not isinstance(amount_specified, int) or isinstance(amount_specified, bool):
            raise ValueError(
                f"amount_specified must be int, got {type(amount_specified).__name__}"
            )
        if not isinstance(fee, int) or isinstance(fee, bool) or not 0 <= fee <= UINT24_MAX:
            raise ValueError(f"fee must be an int that fits uint24, got {fee!r}")
        if not isinstance(tick_spacing, int) or isinstance(tick_spacing, bool) or tick_spacing <= 0:
            raise ValueError(f"tick_spacing must be a positive int, got {tick_spacing!r}")

        asset0       = normalize_address(asset0)
        asset1       = normalize_address(asset1)
        hook_address = normalize_address(hook_address)

        return cls(
            pool_id=          pool_id_for(asset0, asset1, fee, tick_spacing, hook_address),
            asset0=           asset0,
            asset1=           asset1,
            fee=              fee,
            tick_spacing=     tick_spacing,
            hook_address=     hook_address,
            zero_for_one=     bool(zero_for_one),
            amount_specified= amount_specified,
        )

    @property
    def is_exact_input(self) -> bool:
        return self.amount_specified < 0

    def asset_pair(self) -> AssetPair:
        """Raises ValueError when asset0 == asset1."""
        if self.zero_for_one:
            return AssetPair(input_asset=self.asset0, output_asset=self.asset1)
        return AssetPair(input_asset=self.asset1, output_asset=self.asset0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pool_id":          self.pool_id,
            "asset0":           self.asset0,
            "asset1":           self.asset1,
            "fee":              self.fee,
            "tick_spacing":     self.tick_spacing,
            "hook_address":     self.hook_address,
            "zero_for_one":     self.zero_for_one,
            "amount_specified": str(self.amount_specified),
        }


@dataclass(frozen=True)
class SwapDelta:
    """Net claim change reported to the host, from the gateway's side."""
    specified:   int
    unspecified: int

    @property
    def is_balanced(self) -> bool:
        return self.specified + self.unspecified == 0

    def pack(self) -> int:
        """
        Host wire form: specified in the upper 128 bits, unspecified in
        the lower 128 bits, each as int128 two's complement.
        Raises OverflowError if either field does not fit int128.
        """
        for name, value in (("specified", self.specified), ("unspecified", self.unspecified)):
            if not INT128_MIN <= value <= INT128_MAX:
                raise OverflowError(f"{name}={value} does not fit int128")
        mask = (1 << 128) - 1
        return ((self.specified & mask) << 128) | (self.unspecified & mask)

    @classmethod
    def unpack(cls, packed: int) -> "SwapDelta":
        mask = (1 << 128) - 1

        def _signed(raw: int) -> int:
            return raw - (1 << 128) if raw > INT128_MAX else raw

        return cls(specified=_signed((packed >> 128) & mask), unspecified=_signed(packed & mask))


@dataclass(frozen=True)
class HookResult:
    """What the host receives from a settled before_swap call."""
    selector:     bytes
    delta:        SwapDelta
    fee_override: int = 0


# ─────────────────────────────────────────────────────────────
# Policy configuration
# ─────────────────────────────────────────────────────────────

@dataclass
class PolicyConfig:
    """
    Current policy binding. Mutated only through GovernanceSurface;
    read by the verifier on every swap.
    """
    policy_id:         str = ""
    authority_address: str = ZERO_ADDRESS

    def snapshot(self) -> Tuple[str, str]:
        return (self.policy_id, self.authority_address)


@dataclass
class SwapAttempt:
    """Transient record of one before_swap call. Never persisted."""
    attempt_id: str
    caller:     str
    descriptor: SwapDescriptor
    state:      AttemptState = AttemptState.RECEIVED
    history:    list = field(default_factory=list)

    def advance(self, state: AttemptState) -> None:
        self.history.append(self.state)
        self.state = state
