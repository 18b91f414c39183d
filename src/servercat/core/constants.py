# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Enumerations and fixed thresholds shared across the security pipeline."""

from enum import StrEnum


class Severity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SecurityEventType(StrEnum):
    AUTH_SUCCESS = "auth_success"
    AUTH_FAILURE = "auth_failure"
    UNAUTHORIZED_ACCESS = "unauthorized_access"
    INJECTION_ATTEMPT = "injection_attempt"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    SUSPICIOUS_ACTIVITY = "suspicious_activity"
    DATA_ACCESS = "data_access"
    ADMIN_ACTION = "admin_action"
    ERROR_OCCURRED = "error_occurred"
    CONFIGURATION_CHANGE = "configuration_change"
    AUDIT = "audit"


class AnomalyKind(StrEnum):
    HIGH_FREQUENCY_ACTIONS = "high_frequency_actions"
    MULTIPLE_ORIGINS = "multiple_origins"


# Request surfaces the threat scanner inspects besides query and body
SCANNED_HEADERS: tuple[str, ...] = ("user-agent", "referer", "x-forwarded-for")

# Keys whose values never reach a log line in clear text
SENSITIVE_FIELDS: tuple[str, ...] = ("password", "token", "secret", "key", "authorization")

MASK = "***MASKED***"

FINDING_VALUE_MAX_CHARS = 50
GRAPHQL_MAX_BRACE_DEPTH = 10
