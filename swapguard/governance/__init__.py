"""
SwapGuard Governance

Owner-only control of the policy binding and the bypass registry.

Components:
- Ownership: single owner, two-step transfer
- BypassRegistry: pre-approved liquidity providers and swappers
- GovernanceSurface: the mutators, each emitting an audit event
"""

from swapguard.governance.ownership import Ownership
from swapguard.governance.registry import BypassRegistry
from swapguard.governance.surface import GovernanceSurface

__all__ = ["BypassRegistry", "GovernanceSurface", "Ownership"]
