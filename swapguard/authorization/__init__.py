"""
SwapGuard Authorization

The gateway enforces that a swap carries a valid endorsement; it never
decides whether a swap is compliant.

Components:
- encode_swap_parameters: the canonical subject of an endorsement
- AuthorizationMessage: the caller-supplied payload
- Authority / Ed25519Authority: the pluggable endorsement checker
- AuthorizationVerifier: binds the live policy config to an authority
- PolicyOracleSigner: issues endorsements (off-system side)
"""

from swapguard.authorization.authority import (
    Authority,
    AuthorityRequest,
    Ed25519Authority,
)
from swapguard.authorization.encoding import SWAP_ENCODING_VERSION, encode_swap_parameters
from swapguard.authorization.message import AuthorizationMessage
from swapguard.authorization.oracle import PolicyOracleSigner
from swapguard.authorization.verifier import AuthorizationVerifier

__all__ = [
    "Authority",
    "AuthorityRequest",
    "AuthorizationMessage",
    "AuthorizationVerifier",
    "Ed25519Authority",
    "PolicyOracleSigner",
    "SWAP_ENCODING_VERSION",
    "encode_swap_parameters",
]
