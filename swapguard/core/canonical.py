"""
Canonical byte encodings for everything SwapGuard signs or hashes.

All of them are RFC 8785 (JCS) JSON. Versioned encodings carry their
name under the "encoding" key so that a field change is a new version,
never a silent change of what an old signature covered.

Versioned encodings refuse floats: amounts are int256 and travel as
decimal strings, and a float in a swap or pool body means a caller lost
precision somewhere.
"""

import hashlib
from typing import Any, Mapping

import jcs


def canonicalize(obj: Mapping[str, Any]) -> bytes:
    """RFC 8785 canonical UTF-8 bytes of a JSON-primitive mapping."""
    return jcs.canonicalize(obj)


def versioned(encoding: str, fields: Mapping[str, Any]) -> bytes:
    """Canonical bytes of `fields` tagged with an encoding version."""
    if "encoding" in fields:
        raise ValueError("'encoding' is reserved for the version tag")
    _reject_floats(fields)
    return canonicalize({"encoding": encoding, **fields})


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def canonical_hash(obj: Mapping[str, Any]) -> str:
    """Hex SHA-256 of canonicalize(obj)."""
    return sha256_hex(canonicalize(obj))


def _reject_floats(value: Any) -> None:
    if isinstance(value, float):
        raise TypeError(f"floats are not allowed in versioned encodings: {value!r}")
    if isinstance(value, Mapping):
        for item in value.values():
            _reject_floats(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _reject_floats(item)
