"""
Shared fixtures for the SwapGuard test suite.

Addresses are fixed so failures are easy to read. Every gateway fixture
starts with RESERVE claims on both pool assets, provisioned by LP.
"""

from typing import List

import pytest

from swapguard import (
    AuthorityRequest,
    AuthorizationMessage,
    Ed25519Authority,
    Ed25519KeyManager,
    GatewayConfig,
    GatewayContext,
    PolicyOracleSigner,
    SwapDescriptor,
)

GATEWAY   = "0x" + "aa" * 20
OWNER     = "0x" + "b0" * 20
STRANGER  = "0x" + "e0" * 20
AUTHORITY = "0x" + "c0" * 20
LP        = "0x" + "01" * 20
ALICE     = "0x" + "a1" * 20
BOB       = "0x" + "b1" * 20
ASSET0    = "0x" + "11" * 20
ASSET1    = "0x" + "22" * 20

POLICY  = "x-aml-screen-v1"
RESERVE = 1_000_000


class CountingAuthority:
    """Authority stub with a fixed answer and a call log."""

    def __init__(self, result: bool = True):
        self.result = result
        self.calls: List[AuthorityRequest] = []

    def verify(self, request: AuthorityRequest) -> bool:
        self.calls.append(request)
        return self.result


def make_swap(amount: int, zero_for_one: bool = True, hook: str = GATEWAY) -> SwapDescriptor:
    return SwapDescriptor.create(
        asset0=           ASSET0,
        asset1=           ASSET1,
        hook_address=     hook,
        zero_for_one=     zero_for_one,
        amount_specified= amount,
    )


def placeholder_authorization(policy_id: str = POLICY) -> bytes:
    """A well-formed message with no endorsement; only a stub accepts it."""
    return AuthorizationMessage(policy_id=policy_id, task_parameters=b'{"task_id":"t"}').encode()


def build_context(authorities, **overrides) -> GatewayContext:
    settings = GatewayConfig(
        address=             GATEWAY,
        owner=               OWNER,
        policy_id=           POLICY,
        authority=           AUTHORITY,
        liquidity_providers= [LP],
        **overrides,
    )
    ctx = GatewayContext.build(settings, authorities)
    ctx.gateway.before_add_liquidity(LP, make_swap(0), RESERVE)
    return ctx


@pytest.fixture
def stub():
    return CountingAuthority(result=True)


@pytest.fixture
def ctx(stub):
    """Gateway wired to an always-approving stub authority."""
    return build_context({AUTHORITY: stub})


@pytest.fixture
def operator():
    return Ed25519KeyManager.generate()


@pytest.fixture
def oracle(operator):
    return PolicyOracleSigner([operator], POLICY)


@pytest.fixture
def signed_ctx(operator):
    """Gateway wired to a real single-operator Ed25519 authority."""
    return build_context({AUTHORITY: Ed25519Authority([operator.public_key_hex])})
