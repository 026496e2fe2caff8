"""
Policy authorities.

An authority is anything with ``verify(request) -> bool``. The verifier
looks one up by the address in PolicyConfig and hands it an
AuthorityRequest; it never depends on a concrete class.

Ed25519Authority is the bundled implementation: a set of operator keys
and a signing threshold.

Endorsement digest (what operators sign), RFC 8785 canonical JSON of:

    domain           "swapguard.task.v1"
    policy_id        policy the task was evaluated under
    msg_sender       swap caller
    target           gateway address
    value            "0"  (no native value is forwarded)
    params_hash      SHA-256 hex of the encoded swap parameters
    task_parameters  hex of the task bytes (carries the task_id)
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Protocol, Set, runtime_checkable

from swapguard.authorization.encoding import parameters_digest
from swapguard.authorization.message import AuthorizationMessage
from swapguard.core.canonical import canonicalize
from swapguard.core.crypto import PUBLIC_KEY_HEX_LENGTH, Ed25519KeyManager

TASK_DOMAIN = "swapguard.task.v1"


@dataclass(frozen=True)
class AuthorityRequest:
    """Everything an authority needs to judge one endorsement."""
    policy_id:          str
    msg_sender:         str
    target:             str
    encoded_parameters: bytes
    message:            AuthorizationMessage
    value:              int = 0


@runtime_checkable
class Authority(Protocol):
    def verify(self, request: AuthorityRequest) -> bool:
        ...


def task_signing_dict(
    policy_id:          str,
    msg_sender:         str,
    target:             str,
    encoded_parameters: bytes,
    task_parameters:    bytes,
    value:              int = 0,
) -> Dict[str, Any]:
    return {
        "domain":          TASK_DOMAIN,
        "policy_id":       policy_id,
        "msg_sender":      msg_sender,
        "target":          target,
        "value":           str(value),
        "params_hash":     parameters_digest(encoded_parameters),
        "task_parameters": task_parameters.hex(),
    }


def read_task_id(task_parameters: bytes) -> Optional[str]:
    """task_id from task bytes, or None if the bytes do not carry one."""
    try:
        obj = json.loads(task_parameters.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(obj, dict):
        return None
    task_id = obj.get("task_id")
    if not isinstance(task_id, str) or not task_id:
        return None
    return task_id


class Ed25519Authority:
    """
    Threshold Ed25519 authority.

    A request passes when:
        1. message.policy_id == request.policy_id
        2. request.value == 0
        3. task_parameters carry a task_id this authority has not accepted before
        4. at least `threshold` distinct operator keys signed the task digest

    Accepted task ids are remembered for the life of the instance, so an
    endorsement is good for exactly one swap.
    """

    def __init__(self, operator_keys: Iterable[str], threshold: int = 1):
        keys = frozenset(k.lower() for k in operator_keys)
        for key in keys:
            if len(key) != PUBLIC_KEY_HEX_LENGTH:
                raise ValueError(f"operator key must be {PUBLIC_KEY_HEX_LENGTH} hex chars: {key!r}")
            bytes.fromhex(key)
        if not 1 <= threshold <= len(keys):
            raise ValueError(f"threshold must be between 1 and {len(keys)}, got {threshold}")

        self.operator_keys = keys
        self.threshold     = threshold
        self._spent_tasks: Set[str] = set()

    def is_spent(self, task_id: str) -> bool:
        return task_id in self._spent_tasks

    def verify(self, request: AuthorityRequest) -> bool:
        message = request.message

        if message.policy_id != request.policy_id:
            return False
        if request.value != 0:
            return False

        task_id = read_task_id(message.task_parameters)
        if task_id is None or task_id in self._spent_tasks:
            return False

        data = canonicalize(task_signing_dict(
            policy_id=          request.policy_id,
            msg_sender=         request.msg_sender,
            target=             request.target,
            encoded_parameters= request.encoded_parameters,
            task_parameters=    message.task_parameters,
            value=              request.value,
        ))

        signers = {
            signer.lower()
            for signer, signature in message.signatures
            if signer.lower() in self.operator_keys
            and Ed25519KeyManager.verify_detached(data, signature, signer.lower())
        }
        if len(signers) < self.threshold:
            return False

        self._spent_tasks.add(task_id)
        return True
