# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Data signing, dependency version checks, and file checksum monitoring."""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import math
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from importlib import metadata
from pathlib import Path
from typing import Any

from servercat.core.exceptions import IntegrityFailureError

logger = logging.getLogger("servercat.security.integrity")


def canonical_json(data: Any) -> str:
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def sha256_hex(content: str | bytes) -> str:
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()


# ---------------------------------------------------------------------------
# Signed payloads
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SignedPayload:
    data: Any
    signature: str
    timestamp: int  # milliseconds since the epoch

    def to_dict(self) -> dict[str, Any]:
        return {"data": self.data, "signature": self.signature, "timestamp": self.timestamp}


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    reason: str


class DataIntegrityValidator:
    """Checksums and HMAC-SHA256 signatures over canonical JSON."""

    def __init__(
        self,
        secret: str,
        *,
        max_age_seconds: float = 86_400.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret = secret.encode("utf-8")
        self.max_age_seconds = max_age_seconds
        self._clock = clock

    def checksum(self, data: Any) -> str:
        return sha256_hex(canonical_json(data))

    def validate_integrity(self, data: Any, expected_checksum: str) -> bool:
        return hmac.compare_digest(self.checksum(data), expected_checksum)

    def _signature(self, data: Any) -> str:
        return hmac.new(self._secret, canonical_json(data).encode("utf-8"), hashlib.sha256).hexdigest()

    def sign(self, data: Any) -> SignedPayload:
        return SignedPayload(
            data=data,
            signature=self._signature(data),
            timestamp=int(self._clock() * 1000),
        )

    def verify(self, signed: SignedPayload) -> VerificationResult:
        now_ms = self._clock() * 1000
        if now_ms - signed.timestamp > self.max_age_seconds * 1000:
            return VerificationResult(valid=False, reason="Signed data has expired")
        if not hmac.compare_digest(self._signature(signed.data), str(signed.signature)):
            return VerificationResult(valid=False, reason="Invalid signature")
        return VerificationResult(valid=True, reason="Valid")


def unwrap_signed_payload(body: Any, validator: DataIntegrityValidator) -> Any:
    """Return the inner ``data`` of a signed body, or *body* itself when unsigned.

    A body is treated as signed when it carries both ``signature`` and
    ``timestamp``.  A signed body that fails verification raises
    :class:`IntegrityFailureError`.
    """
    if not isinstance(body, Mapping):
        return body
    signature = body.get("signature")
    timestamp = body.get("timestamp")
    if not signature or not timestamp:
        return body
    if not isinstance(timestamp, int | float) or isinstance(timestamp, bool) or not math.isfinite(timestamp):
        raise IntegrityFailureError("Malformed signature timestamp")

    result = validator.verify(
        SignedPayload(data=body.get("data"), signature=str(signature), timestamp=int(timestamp))
    )
    if not result.valid:
        raise IntegrityFailureError(result.reason)
    return body.get("data")


# ---------------------------------------------------------------------------
# Dependency versions
# ---------------------------------------------------------------------------

TRACKED_PACKAGES: tuple[str, ...] = (
    "fastapi",
    "starlette",
    "pydantic",
    "pyjwt",
    "httpx",
    "graphql-core",
    "uvicorn",
)

# Known-bad releases; a fixed list rather than a live advisory feed.
KNOWN_VULNERABLE: frozenset[str] = frozenset(
    {
        "pyjwt@1.5.0",
        "pyjwt@2.3.0",
        "fastapi@0.65.1",
        "starlette@0.25.0",
        "starlette@0.36.1",
    }
)


@dataclass
class Vulnerability:
    package: str
    version: str
    severity: str
    description: str

    def to_dict(self) -> dict[str, str]:
        return {
            "package": self.package,
            "version": self.version,
            "severity": self.severity,
            "description": self.description,
        }


def _installed_versions(packages: Iterable[str]) -> dict[str, str]:
    versions: dict[str, str] = {}
    for name in packages:
        try:
            versions[name] = metadata.version(name)
        except metadata.PackageNotFoundError:
            logger.debug("Tracked package %s is not installed", name)
    return versions


class DependencyValidator:
    """Compares installed versions of the runtime stack against a fixed vulnerable list."""

    def __init__(
        self,
        versions: Mapping[str, str] | None = None,
        *,
        vulnerable: Iterable[str] = KNOWN_VULNERABLE,
    ) -> None:
        self.dependencies = dict(versions) if versions is not None else _installed_versions(TRACKED_PACKAGES)
        self._vulnerable = frozenset(vulnerable)

    def check_vulnerabilities(self) -> list[Vulnerability]:
        found: list[Vulnerability] = []
        for name, version in self.dependencies.items():
            package_id = f"{name}@{version.lstrip('^~=')}"
            if package_id in self._vulnerable:
                found.append(
                    Vulnerability(
                        package=name,
                        version=version,
                        severity="HIGH",
                        description=f"Known vulnerable version detected: {package_id}",
                    )
                )
            if name == "pydantic" and version.startswith("1."):
                found.append(
                    Vulnerability(
                        package=name,
                        version=version,
                        severity="MEDIUM",
                        description="Outdated pydantic 1.x release detected",
                    )
                )
        return found

    @staticmethod
    def recommendations(vulnerabilities: list[Vulnerability]) -> list[str]:
        recs: list[str] = []
        if vulnerabilities:
            recs.append("Upgrade vulnerable dependencies immediately")
            recs.append("Run pip-audit for a detailed advisory report")
            recs.append("Enable automated dependency update tooling")
        recs.append("Review dependencies regularly")
        recs.append("Pin exact versions instead of broad ranges")
        return recs

    def report(self) -> dict[str, Any]:
        vulnerabilities = self.check_vulnerabilities()
        return {
            "timestamp": datetime.now(UTC).isoformat(),
            "totalDependencies": len(self.dependencies),
            "vulnerabilityCount": len(vulnerabilities),
            "vulnerabilities": [v.to_dict() for v in vulnerabilities],
            "recommendations": self.recommendations(vulnerabilities),
        }


# ---------------------------------------------------------------------------
# File checksums
# ---------------------------------------------------------------------------


@dataclass
class FileIntegrityReport:
    checked: int
    modified: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)

    @property
    def compromised(self) -> bool:
        return bool(self.modified or self.missing)

    def to_dict(self) -> dict[str, Any]:
        return {
            "checked": self.checked,
            "modified": self.modified,
            "missing": self.missing,
            "compromised": self.compromised,
        }


class FileIntegrityMonitor:
    """Records a SHA-256 baseline of critical files and reports later drift."""

    def __init__(self, paths: Iterable[str | Path]) -> None:
        self._baseline: dict[Path, str] = {}
        for raw in paths:
            path = Path(raw)
            try:
                self._baseline[path] = sha256_hex(path.read_bytes())
            except OSError as exc:
                logger.warning("Cannot baseline %s: %s", path, exc)

    @property
    def watched(self) -> list[Path]:
        return list(self._baseline)

    def check(self) -> FileIntegrityReport:
        report = FileIntegrityReport(checked=len(self._baseline))
        for path, expected in self._baseline.items():
            try:
                current = sha256_hex(path.read_bytes())
            except OSError:
                report.missing.append(str(path))
                continue
            if current != expected:
                logger.error("Integrity compromised: %s", path)
                report.modified.append(str(path))
        return report
