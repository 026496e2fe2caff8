"""
CLI tests: swapguard verify exit codes and output formats.
"""

import json

import pytest
from click.testing import CliRunner

from swapguard import AuditEvent, AuditLog, Ed25519KeyManager
from swapguard.cli import cli

from tests.conftest import ALICE, OWNER


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def key():
    return Ed25519KeyManager.generate()


@pytest.fixture
def audit_dir(tmp_path, key):
    log = AuditLog(key, tmp_path / "audit")
    log.emit(AuditEvent.POLICY_UPDATED, OWNER, {"policy_id": "p"})
    log.emit(AuditEvent.SWAPPER_ADDED, OWNER, {"identity": ALICE})
    return tmp_path / "audit"


def tamper(audit_dir):
    path  = audit_dir / "audit.jsonl"
    lines = path.read_text(encoding="utf-8").splitlines()
    first = json.loads(lines[0])
    first["payload"]["policy_id"] = "forged"
    lines[0] = json.dumps(first)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


class TestVerifyCommand:

    def test_valid_log_by_file(self, runner, audit_dir):
        result = runner.invoke(cli, ["verify", str(audit_dir / "audit.jsonl")])
        assert result.exit_code == 0
        assert "VALID" in result.output
        assert "policy_updated" in result.output

    def test_valid_log_by_directory(self, runner, audit_dir):
        result = runner.invoke(cli, ["verify", str(audit_dir)])
        assert result.exit_code == 0

    def test_json_output(self, runner, audit_dir):
        result = runner.invoke(cli, ["verify", str(audit_dir), "--format", "json"])
        report = json.loads(result.output)

        assert result.exit_code == 0
        assert report["valid"] is True
        assert report["records"] == 2
        assert report["by_type"] == {"policy_updated": 1, "swapper_added": 1}
        assert report["violations"] == []

    def test_tampered_log(self, runner, audit_dir):
        tamper(audit_dir)
        result = runner.invoke(cli, ["verify", str(audit_dir), "--format", "json"])
        report = json.loads(result.output)

        assert result.exit_code == 1
        assert report["valid"] is False
        assert {"sequence": 0, "kind": "signature"} in [
            {"sequence": v["sequence"], "kind": v["kind"]} for v in report["violations"]
        ]

    def test_tampered_log_human(self, runner, audit_dir):
        tamper(audit_dir)
        result = runner.invoke(cli, ["verify", str(audit_dir)])
        assert result.exit_code == 1
        assert "INVALID" in result.output

    def test_expected_signer(self, runner, audit_dir, key):
        ok = runner.invoke(cli, ["verify", str(audit_dir), "--signer", key.public_key_hex.upper()])
        assert ok.exit_code == 0

        other = Ed25519KeyManager.generate().public_key_hex
        bad   = runner.invoke(cli, ["verify", str(audit_dir), "--signer", other])
        assert bad.exit_code == 1

    def test_missing_log(self, runner, tmp_path):
        result = runner.invoke(cli, ["verify", str(tmp_path / "nowhere")])
        assert result.exit_code == 2

    def test_malformed_line(self, runner, tmp_path):
        path = tmp_path / "audit.jsonl"
        path.write_text("{broken\n", encoding="utf-8")
        result = runner.invoke(cli, ["verify", str(path), "--format", "json"])

        assert result.exit_code == 2
        assert "error" in json.loads(result.output)

    def test_quiet(self, runner, audit_dir):
        result = runner.invoke(cli, ["verify", str(audit_dir), "--quiet"])
        assert result.exit_code == 0
        assert result.output == ""

        tamper(audit_dir)
        result = runner.invoke(cli, ["verify", str(audit_dir), "--quiet"])
        assert result.exit_code == 1

    def test_non_string_record_type_is_a_violation(self, runner, audit_dir):
        path  = audit_dir / "audit.jsonl"
        lines = path.read_text(encoding="utf-8").splitlines()
        first = json.loads(lines[0])
        first["record_type"] = ["policy_updated"]
        lines[0] = json.dumps(first)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")

        result = runner.invoke(cli, ["verify", str(audit_dir), "--format", "json"])
        report = json.loads(result.output)

        assert result.exit_code == 1
        assert result.exception is None or isinstance(result.exception, SystemExit)
        assert {"sequence": 0, "kind": "schema"} in [
            {"sequence": v["sequence"], "kind": v["kind"]} for v in report["violations"]
        ]

    def test_invalid_utf8_is_an_error(self, runner, audit_dir):
        with open(audit_dir / "audit.jsonl", "ab") as f:
            f.write(b"\xff\xfe\n")

        result = runner.invoke(cli, ["verify", str(audit_dir), "--format", "json"])

        assert result.exit_code == 2
        assert "error" in json.loads(result.output)


class TestCliGroup:

    def test_log_level_option(self, runner, audit_dir):
        result = runner.invoke(cli, ["--log-level", "debug", "verify", str(audit_dir), "--quiet"])
        assert result.exit_code == 0

    def test_unknown_log_level(self, runner, audit_dir):
        result = runner.invoke(cli, ["--log-level", "loud", "verify", str(audit_dir)])
        assert result.exit_code == 2
