"""
SwapGuard: Basic Usage Example

Demonstrates:
- Wiring a gateway with one Ed25519 policy authority
- Provisioning the reserve as an approved LP
- An endorsed swap, a replayed endorsement and a bypassed swapper
- Verifying the governance audit log
"""

import logging

from swapguard import (
    AuthorizationError,
    DonationRejected,
    Ed25519Authority,
    Ed25519KeyManager,
    GatewayConfig,
    GatewayContext,
    PolicyOracleSigner,
    SwapDescriptor,
)

GATEWAY   = "0x" + "aa" * 20
OWNER     = "0x" + "b0" * 20
AUTHORITY = "0x" + "c0" * 20
LP        = "0x" + "01" * 20
ALICE     = "0x" + "a1" * 20
MARKET    = "0x" + "3a" * 20
USDC      = "0x" + "11" * 20
USDT      = "0x" + "22" * 20
POLICY    = "x-aml-screen-v1"


def main():
    """Basic SwapGuard usage."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)-7s %(name)s: %(message)s")

    print("=" * 60)
    print("SwapGuard: Basic Usage Example")
    print("=" * 60)
    print()

    # 1. Gateway with one policy operator
    print("1. Wiring gateway...")
    operator = Ed25519KeyManager.generate()
    oracle   = PolicyOracleSigner([operator], POLICY)

    ctx = GatewayContext.build(
        GatewayConfig(
            address=             GATEWAY,
            owner=               OWNER,
            policy_id=           POLICY,
            authority=           AUTHORITY,
            liquidity_providers= [LP],
        ),
        authorities={AUTHORITY: Ed25519Authority([operator.public_key_hex])},
    )
    print(f"   {ctx!r}")
    print()

    # 2. Reserve
    print("2. Provisioning reserve...")
    pool_key = SwapDescriptor.create(USDC, USDT, GATEWAY, zero_for_one=True, amount_specified=0)
    ctx.gateway.before_add_liquidity(LP, pool_key, 1_000_000)
    print(f"   claims: {ctx.ledger.snapshot()}")
    print()

    # 3. Endorsed swap, then the same endorsement again
    print("3. Endorsed swap: 1000 USDC in, 1000 USDT out...")
    swap = SwapDescriptor.create(USDC, USDT, GATEWAY, zero_for_one=True, amount_specified=-1000)
    auth = oracle.endorse_bytes(ALICE, swap, GATEWAY)

    result = ctx.gateway.before_swap(ALICE, swap, authorization=auth)
    print(f"   delta: specified={result.delta.specified} unspecified={result.delta.unspecified}")

    try:
        ctx.gateway.before_swap(ALICE, swap, authorization=auth)
    except AuthorizationError as e:
        print(f"   replay rejected: {e}")
    print()

    # 4. Bypassed market maker
    print("4. Bypassed swapper needs no endorsement...")
    ctx.governance.add_swappers(OWNER, [MARKET])
    result = ctx.gateway.before_swap(MARKET, swap)
    print(f"   delta: specified={result.delta.specified} unspecified={result.delta.unspecified}")
    print()

    # 5. Donations
    print("5. Donations are always rejected...")
    try:
        ctx.gateway.before_donate(OWNER, pool_key, 10, 10)
    except DonationRejected as e:
        print(f"   {e}")
    print()

    # 6. Audit
    print("6. Governance audit log...")
    for record in ctx.audit_log.records:
        print(f"   #{record.sequence} {record.record_type:<18} {record.payload}")
    violations = ctx.audit_log.verify()
    print(f"   {'VALID' if not violations else f'{len(violations)} violation(s)'}")
    print()

    print(f"Stats: {ctx.gateway.get_stats()}")


if __name__ == "__main__":
    main()
