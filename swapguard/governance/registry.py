"""
Bypass registry: identities exempt from per-swap authorization.

Two independent sets, one per Role. Membership changes are idempotent:
adding a present identity or removing an absent one is a no-op, and the
mutators return only the identities whose membership actually changed.
"""

from typing import Dict, Iterable, List, Set

from swapguard.core.models import Role, normalize_address


class BypassRegistry:

    def __init__(self) -> None:
        self._members: Dict[Role, Set[str]] = {role: set() for role in Role}

    def is_bypassed(self, identity: str, role: Role) -> bool:
        """Any address spelling matches; a malformed identity is never a member."""
        try:
            identity = normalize_address(identity)
        except ValueError:
            return False
        return identity in self._members[role]

    def members(self, role: Role) -> List[str]:
        return sorted(self._members[role])

    def add(self, role: Role, identities: Iterable[str]) -> List[str]:
        members = self._members[role]
        changed = []
        for identity in _normalized(identities):
            if identity not in members:
                members.add(identity)
                changed.append(identity)
        return changed

    def remove(self, role: Role, identities: Iterable[str]) -> List[str]:
        members = self._members[role]
        changed = []
        for identity in _normalized(identities):
            if identity in members:
                members.discard(identity)
                changed.append(identity)
        return changed


def _normalized(identities: Iterable[str]) -> List[str]:
    """Normalise the whole batch up front so a bad entry changes nothing."""
    if isinstance(identities, str):
        raise TypeError("identities must be an iterable of addresses, not a single str")
    return [normalize_address(i) for i in identities]
