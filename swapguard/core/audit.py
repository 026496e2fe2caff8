"""
swapguard/core/audit.py

Governance Audit Log

Every governance change is emitted as one AuditRecord, appended to a
hash-chained, Ed25519-signed JSONL file. The log is the only place
configuration history is kept; PolicyConfig and BypassRegistry hold
only the current value.

Record contracts:
    signing  : bytes_signed = canonicalize(record.to_signing_dict())
    chain    : causal_hash  = SHA-256(canonicalize(prev.to_signing_dict()))
               first record = GENESIS_HASH ("0" * 64)
    sequence : 0, 1, 2, ... with no gaps
    type     : record_type must be an AuditEvent constant

emit_batch() order:
    1. create and sign every record  2. one append  3. advance state
State never advances if the write fails.
"""

import json
import logging
import re
import secrets
import threading
import uuid
import warnings
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from swapguard.core.canonical import canonical_hash, canonicalize
from swapguard.core.crypto import PUBLIC_KEY_HEX_LENGTH, Ed25519KeyManager
from swapguard.core.exceptions import AuditLogError

logger = logging.getLogger(__name__)

AUDIT_VERSION = "1.0"
GENESIS_HASH  = "0" * 64

_NONCE_HEX_LENGTH = 32

# YYYY-MM-DDTHH:MM:SS.mmmZ, UTC
_TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


def _timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


class AuditEvent:
    """The only valid AuditRecord.record_type values."""
    POLICY_UPDATED             = "policy_updated"
    AUTHORITY_UPDATED          = "authority_updated"
    LP_ADDED                   = "lp_added"
    LP_REMOVED                 = "lp_removed"
    SWAPPER_ADDED              = "swapper_added"
    SWAPPER_REMOVED            = "swapper_removed"
    OWNERSHIP_TRANSFER_STARTED = "ownership_transfer_started"
    OWNERSHIP_TRANSFERRED      = "ownership_transferred"


VALID_EVENTS = frozenset({
    AuditEvent.POLICY_UPDATED,
    AuditEvent.AUTHORITY_UPDATED,
    AuditEvent.LP_ADDED,
    AuditEvent.LP_REMOVED,
    AuditEvent.SWAPPER_ADDED,
    AuditEvent.SWAPPER_REMOVED,
    AuditEvent.OWNERSHIP_TRANSFER_STARTED,
    AuditEvent.OWNERSHIP_TRANSFERRED,
})


@dataclass
class AuditRecord:
    """One signed governance event."""

    audit_version:     str
    record_id:         str
    record_type:       str
    actor:             str
    signer_public_key: str
    sequence:          int
    nonce:             str
    timestamp:         str
    causal_hash:       str
    payload:           Dict[str, Any]
    signature:         Optional[str] = None

    @classmethod
    def create(
        cls,
        record_type:       str,
        actor:             str,
        signer_public_key: str,
        sequence:          int,
        payload:           Dict[str, Any],
        prev:              Optional["AuditRecord"] = None,
    ) -> "AuditRecord":
        """Unsigned record with the correct causal_hash. Call .sign() next."""
        if record_type not in VALID_EVENTS:
            raise ValueError(
                f"Invalid record_type '{record_type}'. Valid: {sorted(VALID_EVENTS)}"
            )
        if not isinstance(payload, dict):
            raise TypeError(f"payload must be dict, got {type(payload).__name__}")
        if not isinstance(sequence, int) or sequence < 0:
            raise ValueError(f"sequence must be non-negative int, got {sequence!r}")

        return cls(
            audit_version=     AUDIT_VERSION,
            record_id=         f"audit-{uuid.uuid4()}",
            record_type=       record_type,
            actor=             actor,
            signer_public_key= signer_public_key,
            sequence=          sequence,
            nonce=             secrets.token_hex(_NONCE_HEX_LENGTH // 2),
            timestamp=         _timestamp(),
            causal_hash=       cls.chain_hash(prev),
            payload=           payload,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuditRecord":
        """Trusts persisted data. Call validate_schema() before relying on it."""
        return cls(
            audit_version=     data["audit_version"],
            record_id=         data["record_id"],
            record_type=       data["record_type"],
            actor=             data["actor"],
            signer_public_key= data["signer_public_key"],
            sequence=          data["sequence"],
            nonce=             data["nonce"],
            timestamp=         data["timestamp"],
            causal_hash=       data["causal_hash"],
            payload=           data.get("payload", {}),
            signature=         data.get("signature"),
        )

    def validate_schema(self) -> List[str]:
        """Return every schema violation found; an empty list means valid."""
        errors: List[str] = []

        if self.audit_version != AUDIT_VERSION:
            errors.append(
                f"audit_version: expected '{AUDIT_VERSION}', got '{self.audit_version}'"
            )
        if not isinstance(self.record_type, str) or self.record_type not in VALID_EVENTS:
            errors.append(f"record_type {self.record_type!r} is not an audit event")
        if not isinstance(self.record_id, str) or not self.record_id.startswith("audit-"):
            errors.append(f"record_id must start with 'audit-', got {self.record_id!r}")
        if not isinstance(self.actor, str) or not self.actor:
            errors.append("actor must be a non-empty string")
        if not _is_hex(self.signer_public_key, PUBLIC_KEY_HEX_LENGTH):
            errors.append("signer_public_key must be 64 hex chars")
        if not isinstance(self.sequence, int) or self.sequence < 0:
            errors.append(f"sequence must be non-negative int, got {self.sequence!r}")
        if not _is_hex(self.nonce, _NONCE_HEX_LENGTH):
            errors.append(f"nonce must be {_NONCE_HEX_LENGTH} hex chars")
        if not isinstance(self.timestamp, str) or not _TIMESTAMP_RE.match(self.timestamp):
            errors.append(f"timestamp {self.timestamp!r} is not YYYY-MM-DDTHH:MM:SS.mmmZ")
        if not _is_hex(self.causal_hash, 64):
            errors.append("causal_hash must be 64 hex chars")
        if not isinstance(self.payload, dict):
            errors.append(f"payload must be dict, got {type(self.payload).__name__}")

        return errors

    def to_signing_dict(self) -> Dict[str, Any]:
        """Every field except the signature. Signed and chained as-is."""
        return {
            "actor":             self.actor,
            "audit_version":     self.audit_version,
            "causal_hash":       self.causal_hash,
            "nonce":             self.nonce,
            "payload":           self.payload,
            "record_id":         self.record_id,
            "record_type":       self.record_type,
            "sequence":          self.sequence,
            "signer_public_key": self.signer_public_key,
            "timestamp":         self.timestamp,
        }

    def to_dict(self) -> Dict[str, Any]:
        d = self.to_signing_dict()
        d["signature"] = self.signature
        return d

    @staticmethod
    def chain_hash(prev: Optional["AuditRecord"]) -> str:
        if prev is None:
            return GENESIS_HASH
        return canonical_hash(prev.to_signing_dict())

    def sign(self, key_manager: Ed25519KeyManager) -> "AuditRecord":
        self.signature = key_manager.sign(canonicalize(self.to_signing_dict()))
        return self

    def verify_signature(self) -> bool:
        if not self.signature:
            return False
        return Ed25519KeyManager.verify_detached(
            canonicalize(self.to_signing_dict()),
            self.signature,
            self.signer_public_key,
        )

    def verify_chain(self, prev: Optional["AuditRecord"]) -> bool:
        return self.causal_hash == AuditRecord.chain_hash(prev)


def _is_hex(value: Any, length: int) -> bool:
    if not isinstance(value, str) or len(value) != length:
        return False
    try:
        bytes.fromhex(value)
    except ValueError:
        return False
    return True


@dataclass
class AuditViolation:
    sequence: int
    kind:     str
    detail:   str

    def to_dict(self) -> Dict[str, Any]:
        return {"sequence": self.sequence, "kind": self.kind, "detail": self.detail}


def load_records(path: Union[str, Path]) -> List[AuditRecord]:
    """
    Read every record from a JSONL audit file.
    Raises FileNotFoundError, or AuditLogError on a malformed line
    (including one that is not UTF-8).
    """
    path = Path(path)
    records: List[AuditRecord] = []
    with open(path, "rb") as f:
        for line_num, raw in enumerate(f, 1):
            raw = raw.strip()
            if not raw:
                continue
            try:
                records.append(AuditRecord.from_dict(json.loads(raw.decode("utf-8"))))
            except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError) as e:
                raise AuditLogError(
                    f"Malformed audit record at line {line_num}: {e}",
                    {"path": str(path)},
                ) from e
    return records


def verify_records(
    records:             List[AuditRecord],
    expected_signer_hex: Optional[str] = None,
) -> List[AuditViolation]:
    """
    Check schema, sequence, chain and signature of every record in order.
    When expected_signer_hex is given, every record must be signed by it.
    """
    violations: List[AuditViolation] = []
    prev: Optional[AuditRecord] = None

    for i, record in enumerate(records):
        for error in record.validate_schema():
            violations.append(AuditViolation(i, "schema", error))
        if record.sequence != i:
            violations.append(
                AuditViolation(i, "sequence", f"expected {i}, got {record.sequence}")
            )
        if not record.verify_chain(prev):
            violations.append(AuditViolation(i, "chain", "causal_hash does not match previous record"))
        if not record.verify_signature():
            violations.append(AuditViolation(i, "signature", "invalid signature"))
        if expected_signer_hex and record.signer_public_key != expected_signer_hex:
            violations.append(AuditViolation(i, "signer", "record signed by unexpected key"))
        prev = record

    return violations


class AuditLog:
    """
    Append-only governance event log.

    With ledger_path=None the log is memory-only (tests, embedded use).
    Otherwise records go to <ledger_path>/audit.jsonl and the chain head
    is restored from the file on construction.
    """

    def __init__(
        self,
        key_manager: Ed25519KeyManager,
        ledger_path: Optional[Union[str, Path]] = None,
    ) -> None:
        self.key_manager = key_manager

        self._lock        = threading.Lock()
        self._records:    List[AuditRecord]     = []
        self._sequence:   int                   = 0
        self._last:       Optional[AuditRecord] = None
        self._ledger_file: Optional[Path]       = None

        if ledger_path is not None:
            ledger_dir = Path(ledger_path)
            ledger_dir.mkdir(parents=True, exist_ok=True)
            self._ledger_file = ledger_dir / "audit.jsonl"
            self._restore_state()

    @property
    def ledger_file(self) -> Optional[Path]:
        return self._ledger_file

    @property
    def records(self) -> List[AuditRecord]:
        """Records emitted by this instance (not those restored from disk)."""
        return list(self._records)

    def events(self, record_type: Optional[str] = None) -> List[AuditRecord]:
        if record_type is None:
            return self.records
        return [r for r in self._records if r.record_type == record_type]

    def emit(self, record_type: str, actor: str, payload: Dict[str, Any]) -> AuditRecord:
        """
        Create, sign and append one record.
        Raises AuditLogError if the write fails; state does not advance.
        """
        (record,) = self.emit_batch([(record_type, actor, payload)])
        return record

    def emit_batch(self, entries: Sequence[Tuple[str, str, Dict[str, Any]]]) -> List[AuditRecord]:
        """
        Create and sign every (record_type, actor, payload) entry, then
        append them with a single write. Either all records join the
        chain or none do.
        """
        if not entries:
            return []

        with self._lock:
            batch: List[AuditRecord] = []
            prev = self._last
            for offset, (record_type, actor, payload) in enumerate(entries):
                prev = AuditRecord.create(
                    record_type=       record_type,
                    actor=             actor,
                    signer_public_key= self.key_manager.public_key_hex,
                    sequence=          self._sequence + offset,
                    payload=           payload,
                    prev=              prev,
                ).sign(self.key_manager)
                batch.append(prev)

            if self._ledger_file is not None:
                self._append(batch)

            self._records.extend(batch)
            self._sequence += len(batch)
            self._last      = batch[-1]

        for record in batch:
            logger.debug("audit %s #%d %s", record.record_type, record.sequence, record.payload)
        return batch

    def verify(self) -> List[AuditViolation]:
        """Verify the full file (or the in-memory records if memory-only)."""
        if self._ledger_file is None:
            return verify_records(self._records, self.key_manager.public_key_hex)
        if not self._ledger_file.exists():
            return []
        return verify_records(load_records(self._ledger_file), self.key_manager.public_key_hex)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "next_sequence":    self._sequence,
            "last_record_id":   self._last.record_id if self._last else None,
            "head_hash":        AuditRecord.chain_hash(self._last),
            "ledger_file":      str(self._ledger_file) if self._ledger_file else None,
            "signer":           self.key_manager.public_key_hex,
            "audit_version":    AUDIT_VERSION,
        }

    # ── Internal ──────────────────────────────────────────────

    def _restore_state(self) -> None:
        """
        Continue an existing chain. A corrupt tail leaves the log at
        genesis defaults and issues a RuntimeWarning.
        """
        if not self._ledger_file.exists():
            return

        last_line = None
        with open(self._ledger_file, "rb") as f:
            for line in f:
                stripped = line.strip()
                if stripped:
                    last_line = stripped

        if not last_line:
            return

        try:
            record = AuditRecord.from_dict(json.loads(last_line.decode("utf-8")))
            errors = record.validate_schema()
            if errors:
                raise ValueError(f"schema violation in last record: {errors}")
            self._sequence = record.sequence + 1
            self._last     = record
        except (ValueError, KeyError, TypeError) as exc:
            warnings.warn(
                f"AuditLog: could not restore state from {self._ledger_file}: {exc}. "
                "Run `swapguard verify` before emitting.",
                RuntimeWarning,
                stacklevel=3,
            )

    def _append(self, records: List[AuditRecord]) -> None:
        data = "".join(json.dumps(r.to_dict()) + "\n" for r in records)
        try:
            with open(self._ledger_file, "a", encoding="utf-8") as f:
                f.write(data)
        except OSError as exc:
            raise AuditLogError(
                f"audit write failed: {exc}", {"path": str(self._ledger_file)}
            ) from exc
