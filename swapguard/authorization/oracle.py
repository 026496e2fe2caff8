"""
Off-system endorsement issuer.

The policy oracle decides compliance elsewhere; once it has decided, its
operators sign the task with this class. Callers attach the resulting
bytes to before_swap. The gateway itself never uses this module.
"""

import uuid
from typing import Optional, Sequence

from swapguard.authorization.authority import task_signing_dict
from swapguard.authorization.encoding import encode_swap_parameters
from swapguard.authorization.message import AuthorizationMessage
from swapguard.core.canonical import canonicalize
from swapguard.core.crypto import Ed25519KeyManager
from swapguard.core.models import SwapDescriptor, normalize_address


class PolicyOracleSigner:
    """Signs swap tasks with one or more operator keys."""

    def __init__(self, operators: Sequence[Ed25519KeyManager], policy_id: str):
        if not operators:
            raise ValueError("at least one operator key is required")
        self.operators = list(operators)
        self.policy_id = policy_id

    @property
    def operator_keys(self):
        return [op.public_key_hex for op in self.operators]

    def endorse(
        self,
        caller:     str,
        descriptor: SwapDescriptor,
        target:     str,
        task_id:    Optional[str] = None,
        policy_id:  Optional[str] = None,
    ) -> AuthorizationMessage:
        policy_id       = self.policy_id if policy_id is None else policy_id
        task_parameters = canonicalize({"task_id": task_id or f"task-{uuid.uuid4()}"})
        caller          = normalize_address(caller)
        target          = normalize_address(target)

        data = canonicalize(task_signing_dict(
            policy_id=          policy_id,
            msg_sender=         caller,
            target=             target,
            encoded_parameters= encode_swap_parameters(caller, descriptor),
            task_parameters=    task_parameters,
        ))

        return AuthorizationMessage(
            policy_id=       policy_id,
            task_parameters= task_parameters,
            signatures=      tuple((op.public_key_hex, op.sign(data)) for op in self.operators),
        )

    def endorse_bytes(self, caller: str, descriptor: SwapDescriptor, target: str, **kwargs) -> bytes:
        return self.endorse(caller, descriptor, target, **kwargs).encode()
