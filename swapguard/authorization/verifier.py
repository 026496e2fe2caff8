"""
Authorization message verifier.

Reconstructs the canonical swap encoding for (caller, descriptor) and
asks the authority at PolicyConfig.authority_address whether the message
endorses exactly that, under the current policy id, with zero value.

verify() returns a bool and never raises. Why a check failed is logged
at DEBUG on this module's logger and is never returned to the caller.
"""

import logging
from typing import Dict, Mapping, Optional

from swapguard.authorization.authority import Authority, AuthorityRequest
from swapguard.authorization.encoding import encode_swap_parameters
from swapguard.authorization.message import AuthorizationMessage
from swapguard.core.models import PolicyConfig, SwapDescriptor, normalize_address

logger = logging.getLogger(__name__)


class AuthorizationVerifier:
    """
    Stateless per call; reads the live PolicyConfig on every verify().

    Args:
        config:      policy binding shared with the governance surface
        authorities: authority capabilities keyed by address
        target:      gateway address the endorsement must be bound to
    """

    def __init__(
        self,
        config:      PolicyConfig,
        target:      str,
        authorities: Optional[Mapping[str, Authority]] = None,
    ):
        self.config = config
        self.target = normalize_address(target)
        self._authorities: Dict[str, Authority] = {}
        for address, authority in (authorities or {}).items():
            self.register_authority(address, authority)

    def register_authority(self, address: str, authority: Authority) -> None:
        """Make an authority reachable at `address`. Does not change PolicyConfig."""
        self._authorities[normalize_address(address)] = authority

    def authority_for(self, address: str) -> Optional[Authority]:
        return self._authorities.get(normalize_address(address))

    def verify(self, caller: str, descriptor: SwapDescriptor, message: AuthorizationMessage) -> bool:
        policy_id = self.config.policy_id
        address   = self.config.authority_address

        authority = self._authorities.get(address)
        if authority is None:
            logger.debug("no authority registered at %s", address)
            return False

        try:
            request = AuthorityRequest(
                policy_id=          policy_id,
                msg_sender=         normalize_address(caller),
                target=             self.target,
                encoded_parameters= encode_swap_parameters(caller, descriptor),
                message=            message,
                value=              0,
            )
            approved = authority.verify(request)
        except Exception as e:
            logger.debug("authority %s raised during verify: %r", address, e)
            return False

        if approved is not True:
            logger.debug("authority %s declined swap on pool %s", address, descriptor.pool_id)
            return False
        return True
