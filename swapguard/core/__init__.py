"""
SwapGuard core: data model, canonical encoding, Ed25519 keys,
exceptions and the governance audit log.
"""
