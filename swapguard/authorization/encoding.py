"""
Canonical encoding of swap parameters.

This is the exact subject of every authorization endorsement. It must
cover every field that changes what settles; a field left out here is a
field a caller could change after obtaining an endorsement.

Encoding "swapguard.swap.v1" is RFC 8785 canonical JSON of:

    encoding          "swapguard.swap.v1"
    caller            address
    asset0, asset1    address
    fee               int (uint24)
    tick_spacing      int
    hook_address      address
    zero_for_one      bool
    amount_specified  decimal string (int256 does not fit a JSON number)

pool_id is not included: it is a pure function of the pool-key fields.
Changing the field set or any name requires a new encoding version.
"""

from swapguard.core.canonical import sha256_hex, versioned
from swapguard.core.models import SwapDescriptor, normalize_address

SWAP_ENCODING_VERSION = "swapguard.swap.v1"


def encode_swap_parameters(caller: str, descriptor: SwapDescriptor) -> bytes:
    return versioned(SWAP_ENCODING_VERSION, {
        "caller":           normalize_address(caller),
        "asset0":           descriptor.asset0,
        "asset1":           descriptor.asset1,
        "fee":              descriptor.fee,
        "tick_spacing":     descriptor.tick_spacing,
        "hook_address":     descriptor.hook_address,
        "zero_for_one":     descriptor.zero_for_one,
        "amount_specified": str(descriptor.amount_specified),
    })


def parameters_digest(encoded: bytes) -> str:
    """Hex SHA-256 of encoded swap parameters, as carried in endorsements."""
    return sha256_hex(encoded)
