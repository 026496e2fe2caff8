"""
Governance surface: the only writer of PolicyConfig and BypassRegistry.

Every mutator:
    1. checks the sender is the owner   (GovernanceAuthError otherwise)
    2. validates its arguments          (ValueError / TypeError)
    3. applies the change
    4. emits one audit event per change, a batch in a single write

Steps 1 and 2 complete before anything is written, so a rejected call
leaves config, registry and audit log untouched. If the audit write in
step 4 fails the change is reverted, no record of it reaches the log,
and AuditLogError propagates.

Empty policy ids and the zero authority address are accepted; whether
they mean anything is the policy oracle's business.
"""

import logging
from typing import Iterable, List

from swapguard.core.audit import AuditEvent, AuditLog
from swapguard.core.exceptions import AuditLogError
from swapguard.core.models import PolicyConfig, Role, normalize_address
from swapguard.governance.ownership import Ownership
from swapguard.governance.registry import BypassRegistry

logger = logging.getLogger(__name__)

_ADDED_EVENT = {
    Role.LIQUIDITY_PROVIDER: AuditEvent.LP_ADDED,
    Role.SWAPPER:            AuditEvent.SWAPPER_ADDED,
}
_REMOVED_EVENT = {
    Role.LIQUIDITY_PROVIDER: AuditEvent.LP_REMOVED,
    Role.SWAPPER:            AuditEvent.SWAPPER_REMOVED,
}


class GovernanceSurface:

    def __init__(
        self,
        ownership: Ownership,
        config:    PolicyConfig,
        registry:  BypassRegistry,
        audit_log: AuditLog,
    ):
        self.ownership = ownership
        self.config    = config
        self.registry  = registry
        self.audit_log = audit_log

    @property
    def owner(self) -> str:
        return self.ownership.owner

    # ── Policy config ─────────────────────────────────────────

    def set_policy(self, sender: str, policy_id: str) -> None:
        self.ownership.require_owner(sender)
        if not isinstance(policy_id, str):
            raise TypeError(f"policy_id must be str, got {type(policy_id).__name__}")

        previous = self.config.policy_id
        self.config.policy_id = policy_id
        try:
            self.audit_log.emit(AuditEvent.POLICY_UPDATED, self.owner, {"policy_id": policy_id})
        except AuditLogError:
            self.config.policy_id = previous
            raise
        logger.info("policy updated: %r -> %r", previous, policy_id)

    def set_authority(self, sender: str, authority: str) -> None:
        self.ownership.require_owner(sender)
        authority = normalize_address(authority)

        previous = self.config.authority_address
        self.config.authority_address = authority
        try:
            self.audit_log.emit(AuditEvent.AUTHORITY_UPDATED, self.owner, {"authority": authority})
        except AuditLogError:
            self.config.authority_address = previous
            raise
        logger.info("authority updated: %s -> %s", previous, authority)

    # ── Bypass registry ───────────────────────────────────────

    def add_lps(self, sender: str, identities: Iterable[str]) -> List[str]:
        return self._add(sender, Role.LIQUIDITY_PROVIDER, identities)

    def remove_lps(self, sender: str, identities: Iterable[str]) -> List[str]:
        return self._remove(sender, Role.LIQUIDITY_PROVIDER, identities)

    def add_swappers(self, sender: str, identities: Iterable[str]) -> List[str]:
        return self._add(sender, Role.SWAPPER, identities)

    def remove_swappers(self, sender: str, identities: Iterable[str]) -> List[str]:
        return self._remove(sender, Role.SWAPPER, identities)

    def _add(self, sender: str, role: Role, identities: Iterable[str]) -> List[str]:
        self.ownership.require_owner(sender)
        changed = self.registry.add(role, identities)
        try:
            self.audit_log.emit_batch([
                (_ADDED_EVENT[role], self.owner, {"identity": identity}) for identity in changed
            ])
        except AuditLogError:
            self.registry.remove(role, changed)
            raise
        if changed:
            logger.info("%s bypass granted: %s", role.value, ", ".join(changed))
        return changed

    def _remove(self, sender: str, role: Role, identities: Iterable[str]) -> List[str]:
        self.ownership.require_owner(sender)
        changed = self.registry.remove(role, identities)
        try:
            self.audit_log.emit_batch([
                (_REMOVED_EVENT[role], self.owner, {"identity": identity}) for identity in changed
            ])
        except AuditLogError:
            self.registry.add(role, changed)
            raise
        if changed:
            logger.info("%s bypass revoked: %s", role.value, ", ".join(changed))
        return changed

    # ── Ownership ─────────────────────────────────────────────

    def transfer_ownership(self, sender: str, new_owner: str) -> None:
        saved   = self.ownership.state()
        current = self.owner
        pending = self.ownership.propose(sender, new_owner)
        self._emit_or_restore(
            saved,
            AuditEvent.OWNERSHIP_TRANSFER_STARTED,
            current,
            {"previous_owner": current, "new_owner": pending},
        )
        logger.info("ownership transfer started: %s -> %s", current, pending)

    def accept_ownership(self, sender: str) -> None:
        saved     = self.ownership.state()
        previous  = self.owner
        new_owner = self.ownership.accept(sender)
        self._emit_or_restore(
            saved,
            AuditEvent.OWNERSHIP_TRANSFERRED,
            new_owner,
            {"previous_owner": previous, "new_owner": new_owner},
        )
        logger.info("ownership transferred: %s -> %s", previous, new_owner)

    def renounce_ownership(self, sender: str) -> None:
        saved    = self.ownership.state()
        previous = self.owner
        self.ownership.renounce(sender)
        self._emit_or_restore(
            saved,
            AuditEvent.OWNERSHIP_TRANSFERRED,
            previous,
            {"previous_owner": previous, "new_owner": self.owner},
        )
        logger.warning("ownership renounced by %s; governance is now frozen", previous)

    def _emit_or_restore(self, saved, record_type: str, actor: str, payload: dict) -> None:
        try:
            self.audit_log.emit(record_type, actor, payload)
        except AuditLogError:
            self.ownership.restore(saved)
            raise
