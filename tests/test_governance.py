"""
Governance tests: owner exclusivity, bypass registry semantics, audit
events and two-step ownership transfer.
"""

import pytest

from swapguard import (
    AuditEvent,
    AuditLog,
    AuditLogError,
    BypassRegistry,
    Ed25519KeyManager,
    GovernanceAuthError,
    GovernanceSurface,
    Ownership,
    PolicyConfig,
    Role,
    ZERO_ADDRESS,
)

from swapguard.core.audit import load_records

from tests.conftest import ALICE, AUTHORITY, BOB, LP, OWNER, POLICY, STRANGER


@pytest.fixture
def audit_log():
    return AuditLog(Ed25519KeyManager.generate())


@pytest.fixture
def governance(audit_log):
    return GovernanceSurface(
        ownership= Ownership(OWNER),
        config=    PolicyConfig(policy_id=POLICY, authority_address=AUTHORITY),
        registry=  BypassRegistry(),
        audit_log= audit_log,
    )


def state_of(governance):
    return (
        governance.config.snapshot(),
        governance.registry.members(Role.LIQUIDITY_PROVIDER),
        governance.registry.members(Role.SWAPPER),
        governance.ownership.owner,
        governance.ownership.pending_owner,
    )


MUTATORS = [
    ("set_policy",         ("new-policy",)),
    ("set_authority",      ("0x" + "c9" * 20,)),
    ("add_lps",            ([ALICE],)),
    ("remove_lps",         ([LP],)),
    ("add_swappers",       ([ALICE],)),
    ("remove_swappers",    ([BOB],)),
    ("transfer_ownership", (STRANGER,)),
    ("renounce_ownership", ()),
]


class TestOwnerExclusivity:

    @pytest.mark.parametrize("name,args", MUTATORS)
    def test_non_owner_is_rejected_without_side_effects(self, governance, audit_log, name, args):
        governance.add_lps(OWNER, [LP])
        governance.add_swappers(OWNER, [BOB])
        before = state_of(governance)
        events = len(audit_log.records)

        with pytest.raises(GovernanceAuthError):
            getattr(governance, name)(STRANGER, *args)

        assert state_of(governance) == before
        assert len(audit_log.records) == events

    def test_malformed_sender_is_governance_error(self, governance):
        with pytest.raises(GovernanceAuthError):
            governance.set_policy("owner", "p")

    def test_owner_address_case_is_ignored(self, governance):
        governance.set_policy(OWNER.upper().replace("0X", "0x"), "p2")
        assert governance.config.policy_id == "p2"


class TestPolicyConfig:

    def test_set_policy_emits_event(self, governance, audit_log):
        governance.set_policy(OWNER, "x-new")

        assert governance.config.policy_id == "x-new"
        (event,) = audit_log.events(AuditEvent.POLICY_UPDATED)
        assert event.payload == {"policy_id": "x-new"}
        assert event.actor == OWNER

    def test_set_authority_emits_event(self, governance, audit_log):
        new = "0x" + "C9" * 20
        governance.set_authority(OWNER, new)

        assert governance.config.authority_address == new.lower()
        (event,) = audit_log.events(AuditEvent.AUTHORITY_UPDATED)
        assert event.payload == {"authority": new.lower()}

    def test_empty_policy_and_zero_authority_accepted(self, governance):
        governance.set_policy(OWNER, "")
        governance.set_authority(OWNER, ZERO_ADDRESS)
        assert governance.config.snapshot() == ("", ZERO_ADDRESS)

    def test_non_string_policy_rejected(self, governance, audit_log):
        with pytest.raises(TypeError):
            governance.set_policy(OWNER, 42)
        assert governance.config.policy_id == POLICY
        assert audit_log.records == []

    def test_malformed_authority_rejected(self, governance, audit_log):
        with pytest.raises(ValueError):
            governance.set_authority(OWNER, "0x1234")
        assert governance.config.authority_address == AUTHORITY
        assert audit_log.records == []


class TestBypassMembership:

    def test_registry_lookup_by_role(self):
        registry = BypassRegistry()
        registry.add(Role.SWAPPER, [ALICE])

        assert registry.is_bypassed(ALICE, Role.SWAPPER)
        assert not registry.is_bypassed(ALICE, Role.LIQUIDITY_PROVIDER)

    def test_add_is_idempotent_and_emits_once_per_change(self, governance, audit_log):
        assert governance.add_swappers(OWNER, [ALICE, BOB]) == [ALICE, BOB]
        assert governance.add_swappers(OWNER, [ALICE, ALICE]) == []

        events = audit_log.events(AuditEvent.SWAPPER_ADDED)
        assert [e.payload["identity"] for e in events] == [ALICE, BOB]

    def test_remove_absent_is_noop(self, governance, audit_log):
        assert governance.remove_lps(OWNER, [ALICE]) == []
        assert audit_log.events(AuditEvent.LP_REMOVED) == []

    def test_add_then_remove_lps(self, governance, audit_log):
        governance.add_lps(OWNER, [LP])
        governance.remove_lps(OWNER, [LP])

        assert not governance.registry.is_bypassed(LP, Role.LIQUIDITY_PROVIDER)
        assert [e.record_type for e in audit_log.records] == [
            AuditEvent.LP_ADDED,
            AuditEvent.LP_REMOVED,
        ]

    def test_bad_entry_in_batch_changes_nothing(self, governance, audit_log):
        with pytest.raises(ValueError):
            governance.add_swappers(OWNER, [ALICE, "not-an-address"])
        assert governance.registry.members(Role.SWAPPER) == []
        assert audit_log.records == []

    def test_single_string_is_not_a_batch(self, governance):
        with pytest.raises(TypeError):
            governance.add_swappers(OWNER, ALICE)


class TestOwnershipTransfer:

    def test_two_step_transfer(self, governance, audit_log):
        governance.transfer_ownership(OWNER, ALICE)
        assert governance.owner == OWNER
        assert governance.ownership.pending_owner == ALICE

        governance.accept_ownership(ALICE)
        assert governance.owner == ALICE
        assert governance.ownership.pending_owner is None

        assert [e.record_type for e in audit_log.records] == [
            AuditEvent.OWNERSHIP_TRANSFER_STARTED,
            AuditEvent.OWNERSHIP_TRANSFERRED,
        ]

        with pytest.raises(GovernanceAuthError):
            governance.set_policy(OWNER, "old owner")
        governance.set_policy(ALICE, "new owner")

    def test_only_pending_owner_can_accept(self, governance):
        governance.transfer_ownership(OWNER, ALICE)
        with pytest.raises(GovernanceAuthError):
            governance.accept_ownership(BOB)
        with pytest.raises(GovernanceAuthError):
            governance.accept_ownership(OWNER)
        assert governance.owner == OWNER

    def test_accept_without_proposal(self, governance):
        with pytest.raises(GovernanceAuthError):
            governance.accept_ownership(ALICE)

    def test_second_proposal_replaces_first(self, governance):
        governance.transfer_ownership(OWNER, ALICE)
        governance.transfer_ownership(OWNER, BOB)
        with pytest.raises(GovernanceAuthError):
            governance.accept_ownership(ALICE)
        governance.accept_ownership(BOB)
        assert governance.owner == BOB

    def test_renounce_freezes_governance(self, governance):
        governance.transfer_ownership(OWNER, ALICE)
        governance.renounce_ownership(OWNER)

        assert governance.owner == ZERO_ADDRESS
        assert governance.ownership.pending_owner is None
        with pytest.raises(GovernanceAuthError):
            governance.set_policy(OWNER, "p")
        with pytest.raises(GovernanceAuthError):
            governance.set_policy(ZERO_ADDRESS, "p")
        with pytest.raises(GovernanceAuthError):
            governance.accept_ownership(ALICE)


class TestAuditFailure:

    def test_failed_audit_write_reverts_change(self, tmp_path):
        log = AuditLog(Ed25519KeyManager.generate(), tmp_path)
        log.ledger_file.mkdir()
        governance = GovernanceSurface(
            ownership= Ownership(OWNER),
            config=    PolicyConfig(policy_id=POLICY, authority_address=AUTHORITY),
            registry=  BypassRegistry(),
            audit_log= log,
        )

        with pytest.raises(AuditLogError):
            governance.set_policy(OWNER, "never-applied")
        with pytest.raises(AuditLogError):
            governance.add_swappers(OWNER, [ALICE])

        assert governance.config.policy_id == POLICY
        assert governance.registry.members(Role.SWAPPER) == []

    def test_failed_audit_write_reverts_ownership(self, tmp_path):
        log = AuditLog(Ed25519KeyManager.generate(), tmp_path)
        log.ledger_file.mkdir()
        governance = GovernanceSurface(Ownership(OWNER), PolicyConfig(), BypassRegistry(), log)

        with pytest.raises(AuditLogError):
            governance.transfer_ownership(OWNER, ALICE)
        with pytest.raises(AuditLogError):
            governance.renounce_ownership(OWNER)

        assert governance.ownership.state() == (OWNER, None)

    def test_failed_batch_leaves_no_partial_history(self, tmp_path, monkeypatch):
        log = AuditLog(Ed25519KeyManager.generate(), tmp_path)
        governance = GovernanceSurface(Ownership(OWNER), PolicyConfig(), BypassRegistry(), log)
        governance.add_swappers(OWNER, [BOB])
        calls = []

        def failing_append(records):
            calls.append(records)
            raise AuditLogError("disk full")

        monkeypatch.setattr(log, "_append", failing_append)
        with pytest.raises(AuditLogError):
            governance.add_swappers(OWNER, [ALICE, STRANGER])
        with pytest.raises(AuditLogError):
            governance.remove_swappers(OWNER, [BOB])

        assert governance.registry.members(Role.SWAPPER) == [BOB]
        monkeypatch.undo()
        assert [r.payload["identity"] for r in load_records(log.ledger_file)] == [BOB]
        assert [len(batch) for batch in calls] == [2, 1]
        assert log.verify() == []


class TestRegistryLookup:

    def test_lookup_ignores_address_case(self):
        registry = BypassRegistry()
        registry.add(Role.SWAPPER, [ALICE])
        assert registry.is_bypassed(ALICE.upper().replace("0X", "0x"), Role.SWAPPER)

    @pytest.mark.parametrize("identity", ["alice", "0x1234", None, 42])
    def test_malformed_identity_is_not_a_member(self, identity):
        registry = BypassRegistry()
        registry.add(Role.SWAPPER, [ALICE])
        assert not registry.is_bypassed(identity, Role.SWAPPER)
