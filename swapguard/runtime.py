"""
Runtime context: one YAML deployment file → a fully wired gateway.

Example config:

    gateway:
      address: "0x00000000000000000000000000000000000000aa"
      owner:   "0x00000000000000000000000000000000000000b0"
    policy:
      policy_id: "x-aml-screen-v1"
      authority: "0x00000000000000000000000000000000000000c0"
    bypass:
      liquidity_providers: ["0x...01"]
      swappers: []
    audit:
      ledger_path: .swapguard/audit      # omit for a memory-only log
      key_path:    .swapguard/audit.pem  # generated on first run
    authorities:
      - address: "0x00000000000000000000000000000000000000c0"
        operator_keys: ["<64 hex>"]
        threshold: 1

The initial policy and bypass members are applied through the governance
surface as the owner, so they appear in the audit log like any later
change.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from swapguard.accounting.ledger import ClaimLedger
from swapguard.authorization.authority import Authority, Ed25519Authority
from swapguard.authorization.verifier import AuthorizationVerifier
from swapguard.core.audit import AuditLog
from swapguard.core.crypto import Ed25519KeyManager
from swapguard.core.exceptions import ConfigError
from swapguard.core.models import ZERO_ADDRESS, PolicyConfig, normalize_address
from swapguard.governance.ownership import Ownership
from swapguard.governance.registry import BypassRegistry
from swapguard.governance.surface import GovernanceSurface
from swapguard.settlement.gateway import SettlementGateway


@dataclass
class AuthoritySpec:
    address:       str
    operator_keys: List[str]
    threshold:     int = 1


@dataclass
class GatewayConfig:
    """Parsed, validated deployment config."""
    address:             str
    owner:               str
    policy_id:           str = ""
    authority:           str = ZERO_ADDRESS
    liquidity_providers: List[str] = field(default_factory=list)
    swappers:            List[str] = field(default_factory=list)
    ledger_path:         Optional[Path] = None
    key_path:            Optional[Path] = None
    authorities:         List[AuthoritySpec] = field(default_factory=list)

    @classmethod
    def from_yaml(cls, path: Path) -> "GatewayConfig":
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        return cls.from_dict(data or {}, base_dir=path.parent)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], base_dir: Optional[Path] = None) -> "GatewayConfig":
        if not isinstance(data, Mapping):
            raise ConfigError("config root must be a mapping")

        gateway = _section(data, "gateway")
        policy  = _section(data, "policy")
        bypass  = _section(data, "bypass")
        audit   = _section(data, "audit")

        try:
            address = normalize_address(gateway["address"])
            owner   = normalize_address(gateway["owner"])
        except KeyError as e:
            raise ConfigError(f"gateway.{e.args[0]} is required") from e
        except ValueError as e:
            raise ConfigError(f"gateway: {e}") from e

        policy_id = policy.get("policy_id", "")
        if not isinstance(policy_id, str):
            raise ConfigError("policy.policy_id must be a string")

        try:
            authority = normalize_address(policy.get("authority", ZERO_ADDRESS))
            lps       = [normalize_address(a) for a in bypass.get("liquidity_providers") or []]
            swappers  = [normalize_address(a) for a in bypass.get("swappers") or []]
        except ValueError as e:
            raise ConfigError(f"invalid address: {e}") from e

        authorities = []
        for i, raw in enumerate(data.get("authorities") or []):
            try:
                authorities.append(AuthoritySpec(
                    address=       normalize_address(raw["address"]),
                    operator_keys= list(raw["operator_keys"]),
                    threshold=     int(raw.get("threshold", 1)),
                ))
            except (KeyError, TypeError, ValueError) as e:
                raise ConfigError(f"authorities[{i}] is invalid: {e}") from e

        return cls(
            address=             address,
            owner=               owner,
            policy_id=           policy_id,
            authority=           authority,
            liquidity_providers= lps,
            swappers=            swappers,
            ledger_path=         _resolve(audit.get("ledger_path"), base_dir),
            key_path=            _resolve(audit.get("key_path"), base_dir),
            authorities=         authorities,
        )


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, Mapping):
        raise ConfigError(f"'{name}' must be a mapping")
    return section


def _resolve(value: Optional[str], base_dir: Optional[Path]) -> Optional[Path]:
    if value is None:
        return None
    path = Path(value)
    if base_dir is not None and not path.is_absolute():
        path = base_dir / path
    return path


@dataclass
class GatewayContext:
    """Everything a host needs to drive one gateway."""

    gateway:    SettlementGateway
    governance: GovernanceSurface
    verifier:   AuthorizationVerifier
    config:     PolicyConfig
    registry:   BypassRegistry
    ledger:     ClaimLedger
    audit_log:  AuditLog

    @classmethod
    def from_config(
        cls,
        config_file: Path,
        authorities: Optional[Mapping[str, Authority]] = None,
    ) -> "GatewayContext":
        return cls.build(GatewayConfig.from_yaml(config_file), authorities)

    @classmethod
    def build(
        cls,
        settings:    GatewayConfig,
        authorities: Optional[Mapping[str, Authority]] = None,
        key_manager: Optional[Ed25519KeyManager] = None,
    ) -> "GatewayContext":
        if key_manager is None:
            key_manager = _load_audit_key(settings.key_path)

        audit_log = AuditLog(key_manager, settings.ledger_path)
        config    = PolicyConfig()
        registry  = BypassRegistry()
        ledger    = ClaimLedger()

        wired: Dict[str, Authority] = {}
        for spec in settings.authorities:
            try:
                wired[spec.address] = Ed25519Authority(spec.operator_keys, spec.threshold)
            except ValueError as e:
                raise ConfigError(f"authority {spec.address}: {e}") from e
        wired.update(authorities or {})

        verifier   = AuthorizationVerifier(config, settings.address, wired)
        governance = GovernanceSurface(Ownership(settings.owner), config, registry, audit_log)
        gateway    = SettlementGateway(settings.address, ledger, registry, verifier)

        governance.set_policy(settings.owner, settings.policy_id)
        governance.set_authority(settings.owner, settings.authority)
        governance.add_lps(settings.owner, settings.liquidity_providers)
        governance.add_swappers(settings.owner, settings.swappers)

        return cls(
            gateway=    gateway,
            governance= governance,
            verifier=   verifier,
            config=     config,
            registry=   registry,
            ledger=     ledger,
            audit_log=  audit_log,
        )

    def __repr__(self) -> str:
        return (
            f"GatewayContext("
            f"gateway={self.gateway.address!r}, "
            f"policy_id={self.config.policy_id!r}, "
            f"audit_records={self.audit_log.get_stats()['next_sequence']})"
        )


def _load_audit_key(key_path: Optional[Path]) -> Ed25519KeyManager:
    if key_path is None:
        return Ed25519KeyManager.generate()
    if key_path.exists():
        try:
            return Ed25519KeyManager.from_file(key_path)
        except ValueError as e:
            raise ConfigError(str(e)) from e
    key_manager = Ed25519KeyManager.generate()
    key_manager.save(key_path)
    return key_manager
