# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Unit tests for signing, dependency checks, and file integrity monitoring."""

from __future__ import annotations

from pathlib import Path

import pytest

from servercat.core.exceptions import IntegrityFailureError
from servercat.security.integrity import (
    DataIntegrityValidator,
    DependencyValidator,
    FileIntegrityMonitor,
    SignedPayload,
    unwrap_signed_payload,
)


@pytest.fixture
def validator(clock) -> DataIntegrityValidator:
    return DataIntegrityValidator("secret", clock=clock)


# ---------------------------------------------------------------------------
# Checksums and signatures
# ---------------------------------------------------------------------------


class TestDataIntegrity:
    def test_checksum_ignores_key_order(self, validator: DataIntegrityValidator) -> None:
        assert validator.checksum({"a": 1, "b": 2}) == validator.checksum({"b": 2, "a": 1})

    def test_validate_integrity(self, validator: DataIntegrityValidator) -> None:
        data = {"titulo": "x"}
        checksum = validator.checksum(data)
        assert validator.validate_integrity(data, checksum)
        assert not validator.validate_integrity({"titulo": "y"}, checksum)

    def test_sign_uses_millisecond_timestamp(self, validator: DataIntegrityValidator, clock) -> None:
        signed = validator.sign({"a": 1})
        assert signed.timestamp == int(clock() * 1000)

    def test_valid_signature(self, validator: DataIntegrityValidator) -> None:
        result = validator.verify(validator.sign({"a": 1}))
        assert result.valid

    def test_tampered_data_rejected(self, validator: DataIntegrityValidator) -> None:
        signed = validator.sign({"a": 1})
        result = validator.verify(SignedPayload(data={"a": 2}, signature=signed.signature, timestamp=signed.timestamp))
        assert not result.valid
        assert result.reason == "Invalid signature"

    def test_expired_payload_rejected(self, validator: DataIntegrityValidator, clock) -> None:
        signed = validator.sign({"a": 1})
        clock.advance(86_401)
        result = validator.verify(signed)
        assert not result.valid
        assert result.reason == "Signed data has expired"


class TestUnwrapSignedPayload:
    def test_unsigned_body_passes_through(self, validator: DataIntegrityValidator) -> None:
        body = {"titulo": "x"}
        assert unwrap_signed_payload(body, validator) is body

    def test_signed_body_yields_inner_data(self, validator: DataIntegrityValidator) -> None:
        body = validator.sign({"titulo": "x"}).to_dict()
        assert unwrap_signed_payload(body, validator) == {"titulo": "x"}

    def test_bad_signature_raises(self, validator: DataIntegrityValidator) -> None:
        body = validator.sign({"titulo": "x"}).to_dict()
        body["signature"] = "00" * 32
        with pytest.raises(IntegrityFailureError):
            unwrap_signed_payload(body, validator)

    def test_non_numeric_timestamp_raises(self, validator: DataIntegrityValidator) -> None:
        with pytest.raises(IntegrityFailureError):
            unwrap_signed_payload({"data": {}, "signature": "ab", "timestamp": "yesterday"}, validator)

    @pytest.mark.parametrize("timestamp", [float("inf"), float("nan")])
    def test_non_finite_timestamp_raises(self, validator: DataIntegrityValidator, timestamp: float) -> None:
        with pytest.raises(IntegrityFailureError):
            unwrap_signed_payload({"data": {}, "signature": "ab", "timestamp": timestamp}, validator)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


class TestDependencyValidator:
    def test_reports_vulnerable_versions(self) -> None:
        report = DependencyValidator({"pyjwt": "1.5.0", "fastapi": "0.110.0", "pydantic": "1.10.2"}).report()
        assert report["totalDependencies"] == 3
        assert report["vulnerabilityCount"] == 2
        assert {v["package"] for v in report["vulnerabilities"]} == {"pyjwt", "pydantic"}
        assert "Upgrade vulnerable dependencies immediately" in report["recommendations"]

    def test_clean_stack(self) -> None:
        report = DependencyValidator({"fastapi": "0.110.0"}).report()
        assert report["vulnerabilityCount"] == 0
        assert len(report["recommendations"]) == 2

    def test_reads_installed_versions(self) -> None:
        validator = DependencyValidator()
        assert "fastapi" in validator.dependencies


# ---------------------------------------------------------------------------
# File integrity
# ---------------------------------------------------------------------------


class TestFileIntegrityMonitor:
    def test_unchanged_files(self, tmp_path: Path) -> None:
        target = tmp_path / "app.cfg"
        target.write_text("a=1")
        report = FileIntegrityMonitor([target]).check()
        assert report.checked == 1
        assert not report.compromised

    def test_modified_and_missing_files(self, tmp_path: Path) -> None:
        changed = tmp_path / "a.cfg"
        removed = tmp_path / "b.cfg"
        changed.write_text("a=1")
        removed.write_text("b=1")
        monitor = FileIntegrityMonitor([changed, removed])

        changed.write_text("a=2")
        removed.unlink()
        report = monitor.check()

        assert report.modified == [str(changed)]
        assert report.missing == [str(removed)]
        assert report.compromised

    def test_unreadable_path_not_baselined(self, tmp_path: Path) -> None:
        monitor = FileIntegrityMonitor([tmp_path / "nope.cfg"])
        assert monitor.watched == []
        assert monitor.check().checked == 0
