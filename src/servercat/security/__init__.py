# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Request-scoped security controls: rate limiting, threat scanning, anomaly detection."""

from servercat.security.anomaly import AnomalyDetector, AnomalyEvent
from servercat.security.injection import ThreatFinding, scan_request, validate_graphql_query
from servercat.security.rate_limit import RateDecision, RateLimiter

__all__ = [
    "AnomalyDetector",
    "AnomalyEvent",
    "RateDecision",
    "RateLimiter",
    "ThreatFinding",
    "scan_request",
    "validate_graphql_query",
]
