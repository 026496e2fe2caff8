"""
Authorization message: the opaque payload a caller attaches to a swap.

Wire form (RFC 8785 canonical JSON, UTF-8):

    {
      "policy_id":       "<policy the endorsement was issued under>",
      "task_parameters": "<hex of authority-specific task bytes>",
      "signatures":      [{"signer": "<64 hex>", "signature": "<base64url>"}, ...]
    }

The gateway never persists a message. It is decoded, checked once and
dropped.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Tuple

from swapguard.core.canonical import canonicalize


@dataclass(frozen=True)
class AuthorizationMessage:
    policy_id:       str
    task_parameters: bytes
    signatures:      Tuple[Tuple[str, str], ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "policy_id":       self.policy_id,
            "task_parameters": self.task_parameters.hex(),
            "signatures": [
                {"signer": signer, "signature": signature}
                for signer, signature in self.signatures
            ],
        }

    def encode(self) -> bytes:
        return canonicalize(self.to_dict())

    @classmethod
    def decode(cls, data: bytes) -> "AuthorizationMessage":
        """Raises ValueError on anything that is not a well-formed message."""
        if not isinstance(data, (bytes, bytearray)) or not data:
            raise ValueError("authorization payload is empty")
        try:
            obj = json.loads(bytes(data).decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ValueError(f"authorization payload is not JSON: {e}") from e

        if not isinstance(obj, dict):
            raise ValueError("authorization payload must be a JSON object")

        policy_id = obj.get("policy_id")
        task_hex  = obj.get("task_parameters")
        raw_sigs  = obj.get("signatures", [])

        if not isinstance(policy_id, str):
            raise ValueError("policy_id must be a string")
        if not isinstance(task_hex, str):
            raise ValueError("task_parameters must be a hex string")
        if not isinstance(raw_sigs, list):
            raise ValueError("signatures must be a list")

        signatures = []
        for entry in raw_sigs:
            if (
                not isinstance(entry, dict)
                or not isinstance(entry.get("signer"), str)
                or not isinstance(entry.get("signature"), str)
            ):
                raise ValueError("each signature needs string 'signer' and 'signature'")
            signatures.append((entry["signer"], entry["signature"]))

        return cls(
            policy_id=       policy_id,
            task_parameters= bytes.fromhex(task_hex),
            signatures=      tuple(signatures),
        )
