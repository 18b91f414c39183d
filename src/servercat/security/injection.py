# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Signature-based injection scanner for request query, body, and headers."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from servercat.core.constants import FINDING_VALUE_MAX_CHARS, GRAPHQL_MAX_BRACE_DEPTH, SCANNED_HEADERS


@dataclass(frozen=True)
class ThreatSignature:
    name: str
    pattern: re.Pattern[str]


@dataclass(frozen=True)
class ThreatFinding:
    signature: str
    pattern: str
    field: str
    value: str

    def to_dict(self) -> dict[str, str]:
        return {
            "signature": self.signature,
            "pattern": self.pattern,
            "field": self.field,
            "value": self.value,
        }


def _sig(name: str, pattern: str) -> ThreatSignature:
    return ThreatSignature(name=name, pattern=re.compile(pattern, re.IGNORECASE))


# Order matters only for the order findings are reported in.
THREAT_SIGNATURES: tuple[ThreatSignature, ...] = (
    # SQL
    _sig("sql_keyword", r"\b(SELECT|INSERT|UPDATE|DELETE|DROP|CREATE|ALTER|EXEC|EXECUTE)\b"),
    _sig("sql_union", r"UNION\s+SELECT"),
    _sig("sql_quote", r"'|\\x27|\\x2D\\x2D|\\'"),
    _sig("sql_separator", r";|\|\||&&"),
    # NoSQL
    _sig("nosql_operator", r"\$where|\$ne|\$gt|\$lt|\$gte|\$lte|\$in|\$nin|\$regex"),
    # Command execution / filesystem
    _sig("command_chain", r";|&&|\|\||`|\$\("),
    _sig("path_traversal", r"\.\."),
    _sig("system_path", r"/bin/|/usr/|/etc/|/var/"),
    # XSS
    _sig("xss_script", r"<script|</script>|javascript:|on\w+\s*="),
    _sig("xss_embed", r"<iframe|<object|<embed|<link|<meta"),
    _sig("css_expression", r"expression\(|url\(|@import"),
    # LDAP
    _sig("ldap_wildcard", r"\*|\(\)|\|\||&&"),
    # XML
    _sig("xml_entity", r"<!DOCTYPE|<!ENTITY|<\?xml"),
)

GRAPHQL_SIGNATURES: tuple[ThreatSignature, ...] = (
    _sig("graphql_introspection", r"introspection"),
    _sig("graphql_schema", r"__schema"),
    _sig("graphql_type", r"__type"),
    ThreatSignature(name="graphql_fragment_spread", pattern=re.compile(r"\.\.\.")),
    _sig("graphql_union", r"union\s+\w+\s*="),
)


def _truncate(value: str) -> str:
    if len(value) > FINDING_VALUE_MAX_CHARS:
        return value[:FINDING_VALUE_MAX_CHARS] + "..."
    return value


def scan_value(value: str, field: str) -> list[ThreatFinding]:
    """Return one finding per signature matching *value*."""
    return [
        ThreatFinding(
            signature=sig.name,
            pattern=sig.pattern.pattern,
            field=field,
            value=_truncate(value),
        )
        for sig in THREAT_SIGNATURES
        if sig.pattern.search(value)
    ]


def scan(obj: Any, path: str = "") -> list[ThreatFinding]:
    """Recursively scan every string leaf of *obj*.

    Mapping keys and sequence indexes are joined into a dotted field path.
    Non-string scalars are ignored.
    """
    if isinstance(obj, str):
        return scan_value(obj, path)
    findings: list[ThreatFinding] = []
    if isinstance(obj, Mapping):
        for key, child in obj.items():
            findings.extend(scan(child, f"{path}.{key}" if path else str(key)))
    elif isinstance(obj, list | tuple):
        for index, child in enumerate(obj):
            findings.extend(scan(child, f"{path}.{index}" if path else str(index)))
    return findings


def scan_request(
    query: Mapping[str, Any] | None = None,
    body: Any = None,
    headers: Mapping[str, str] | None = None,
) -> list[ThreatFinding]:
    """Scan query parameters, the decoded body, and the monitored headers.

    All findings are collected; nothing short-circuits.
    """
    findings: list[ThreatFinding] = []
    if query:
        findings.extend(scan(query, "query"))
    if body is not None:
        findings.extend(scan(body, "body"))
    if headers:
        for name in SCANNED_HEADERS:
            value = headers.get(name)
            if value:
                findings.extend(scan_value(value, f"headers.{name}"))
    return findings


def validate_graphql_query(query: Any) -> list[str]:
    """Return the list of problems found in a GraphQL query document.

    A missing or non-string query is itself reported as a problem.
    """
    if not query or not isinstance(query, str):
        return ["Invalid query"]
    threats = [
        f"Dangerous pattern detected: {sig.pattern.pattern}"
        for sig in GRAPHQL_SIGNATURES
        if sig.pattern.search(query)
    ]
    if query.count("{") > GRAPHQL_MAX_BRACE_DEPTH:
        threats.append("Query too deep (possible denial of service)")
    return threats


# ---------------------------------------------------------------------------
# Sanitization (only applied when explicitly requested)
# ---------------------------------------------------------------------------

_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#x27;"),
    ("/", "&#x2F;"),
)


def sanitize(value: Any) -> Any:
    """Strip NUL bytes and HTML-escape a string; other values pass through."""
    if not isinstance(value, str):
        return value
    value = value.replace("\0", "")
    for char, entity in _ESCAPES:
        value = value.replace(char, entity)
    return value


def sanitize_object(obj: Any) -> Any:
    if isinstance(obj, str):
        return sanitize(obj)
    if isinstance(obj, list):
        return [sanitize_object(item) for item in obj]
    if isinstance(obj, Mapping):
        return {key: sanitize_object(value) for key, value in obj.items()}
    return obj
