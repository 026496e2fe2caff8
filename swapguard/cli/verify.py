"""
swapguard verify: governance audit log verification

Usage:
    swapguard verify <audit>                    Human output (default)
    swapguard verify <audit> --format json      Machine-readable JSON
    swapguard verify <audit> --signer <hex>     Require a specific signing key
    swapguard verify <audit> --quiet            Exit code only

<audit> is either an audit.jsonl file or the directory holding one.

Exit codes:
    0  Log fully valid (schema + sequence + chain + signatures)
    1  Log has violations
    2  Error (file missing, malformed line)
"""

import json
import sys
from collections import Counter
from pathlib import Path
from typing import Optional

import click

from swapguard.core.audit import AuditRecord, load_records, verify_records
from swapguard.core.exceptions import AuditLogError


@click.command(name="verify")
@click.argument("audit", type=click.Path(exists=False))
@click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json"], case_sensitive=False),
    default="human",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--signer",
    type=str,
    default=None,
    metavar="PUBKEY_HEX",
    help="Fail unless every record is signed by this Ed25519 public key.",
)
@click.option(
    "--quiet",
    is_flag=True,
    default=False,
    help="Suppress all output. Use exit code only (0=valid, 1=invalid, 2=error).",
)
def verify_command(audit: str, fmt: str, signer: Optional[str], quiet: bool) -> None:
    """
    Verify a SwapGuard audit log: schema, sequence, chain and signatures.
    """
    path = Path(audit)
    if path.is_dir():
        path = path / "audit.jsonl"

    if not path.exists():
        _error(f"Audit log not found: {path}", fmt, quiet)
        sys.exit(2)

    try:
        records = load_records(path)
    except AuditLogError as e:
        _error(str(e), fmt, quiet)
        sys.exit(2)

    violations = verify_records(records, signer.lower() if signer else None)
    valid      = not violations
    head_hash  = AuditRecord.chain_hash(records[-1]) if records else None

    if quiet:
        sys.exit(0 if valid else 1)

    if fmt == "json":
        click.echo(json.dumps({
            "audit_log":   str(path),
            "valid":       valid,
            "records":     len(records),
            "head_hash":   head_hash,
            "by_type":     dict(Counter(_type_label(r) for r in records)),
            "violations":  [v.to_dict() for v in violations],
        }, indent=2))
    else:
        click.echo()
        click.echo(click.style("SwapGuard audit verification", bold=True))
        click.echo(f"  log        {path}")
        click.echo(f"  records    {len(records)}")
        if head_hash:
            click.echo(f"  head hash  {head_hash}")
        for record_type, count in sorted(Counter(_type_label(r) for r in records).items()):
            click.echo(f"    {record_type:<28} {count}")
        click.echo()
        if valid:
            click.secho("  VALID", fg="green", bold=True)
        else:
            click.secho(f"  INVALID: {len(violations)} violation(s)", fg="red", bold=True)
            for v in violations[:20]:
                click.echo(f"    #{v.sequence:<6} {v.kind:<10} {v.detail}")
            if len(violations) > 20:
                click.echo(f"    ... {len(violations) - 20} more")
        click.echo()

    sys.exit(0 if valid else 1)


def _error(message: str, fmt: str, quiet: bool) -> None:
    if quiet:
        return
    if fmt == "json":
        click.echo(json.dumps({"error": message}))
    else:
        click.secho(f"Error: {message}", fg="red", err=True)


def _type_label(record: AuditRecord) -> str:
    # tampered files can carry any JSON value here
    if isinstance(record.record_type, str):
        return record.record_type
    return repr(record.record_type)
