# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Declarative field rules and a generic object validator for product payloads."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

from servercat.catalog.models import ProductStatus
from servercat.core.exceptions import ValidationFailedError


class FieldType(StrEnum):
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"


class FieldErrorKind(StrEnum):
    FIELD_REQUIRED = "FIELD_REQUIRED"
    FIELD_INVALID = "FIELD_INVALID"
    UNKNOWN_FIELD = "UNKNOWN_FIELD"


@dataclass(frozen=True)
class FieldRule:
    type: FieldType
    required: bool = False
    min_length: int | None = None
    max_length: int | None = None
    pattern: re.Pattern[str] | None = None
    minimum: float | None = None
    maximum: float | None = None
    choices: tuple[str, ...] | None = None


@dataclass(frozen=True)
class FieldError:
    field: str
    kind: FieldErrorKind
    message: str


@dataclass
class ValidationResult:
    errors: list[FieldError] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def messages(self) -> list[str]:
        return [e.message for e in self.errors]


PRODUCT_SCHEMA: dict[str, FieldRule] = {
    "titulo": FieldRule(
        type=FieldType.STRING,
        required=True,
        min_length=3,
        max_length=100,
        pattern=re.compile(r"^[a-zA-Z0-9\s\-_\.]+$"),
    ),
    "descripcion": FieldRule(type=FieldType.STRING, required=True, min_length=10, max_length=500),
    "precio": FieldRule(type=FieldType.NUMBER, required=True, minimum=0, maximum=999_999),
    "nucleos": FieldRule(type=FieldType.INTEGER, required=True, minimum=1, maximum=128),
    "ram": FieldRule(type=FieldType.INTEGER, required=True, minimum=1, maximum=1024),
    "disco": FieldRule(type=FieldType.INTEGER, required=True, minimum=1, maximum=10_000),
    "cluster": FieldRule(type=FieldType.STRING, max_length=50),
    "estado": FieldRule(type=FieldType.STRING, choices=tuple(s.value for s in ProductStatus)),
}


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool) and value == value


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_field(name: str, value: Any, rule: FieldRule) -> list[FieldError]:
    """Check one value against its rule; returns every violation found."""
    if _is_blank(value):
        if rule.required:
            return [FieldError(name, FieldErrorKind.FIELD_REQUIRED, f"{name} is required")]
        return []

    def invalid(message: str) -> FieldError:
        return FieldError(name, FieldErrorKind.FIELD_INVALID, message)

    errors: list[FieldError] = []

    if rule.type is FieldType.STRING:
        if not isinstance(value, str):
            return [invalid(f"{name} must be a string")]
        value = value.strip()
        if rule.min_length is not None and len(value) < rule.min_length:
            errors.append(invalid(f"{name} must be at least {rule.min_length} characters"))
        if rule.max_length is not None and len(value) > rule.max_length:
            errors.append(invalid(f"{name} must be at most {rule.max_length} characters"))
        if rule.pattern is not None and not rule.pattern.match(value):
            errors.append(invalid(f"{name} contains invalid characters"))
        if rule.choices is not None and value not in rule.choices:
            errors.append(invalid(f"{name} must be one of: {', '.join(rule.choices)}"))
        return errors

    if not _is_number(value):
        return [invalid(f"{name} must be a valid number")]
    if rule.minimum is not None and value < rule.minimum:
        errors.append(invalid(f"{name} must be greater than or equal to {rule.minimum:g}"))
    if rule.maximum is not None and value > rule.maximum:
        errors.append(invalid(f"{name} must be less than or equal to {rule.maximum:g}"))
    if rule.type is FieldType.INTEGER and isinstance(value, float) and not value.is_integer():
        errors.append(invalid(f"{name} must be an integer"))
    return errors


def validate_object(data: Mapping[str, Any], schema: Mapping[str, FieldRule]) -> ValidationResult:
    """Validate *data* against *schema*.

    Fields that pass are copied into ``result.data`` (integral floats for
    integer fields are narrowed to ``int``); keys absent from the schema are
    reported as unknown.
    """
    result = ValidationResult()
    for name, rule in schema.items():
        value = data.get(name)
        field_errors = validate_field(name, value, rule)
        result.errors.extend(field_errors)
        if not field_errors and name in data and not _is_blank(value):
            if rule.type is FieldType.INTEGER:
                value = int(value)
            elif isinstance(value, str):
                value = value.strip()
            result.data[name] = value

    for name in data:
        if name not in schema:
            result.errors.append(FieldError(name, FieldErrorKind.UNKNOWN_FIELD, f"Unknown field: {name}"))
    return result


def _as_mapping(data: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValidationFailedError("Request body must be a JSON object")
    return data


def validate_create(data: Any) -> dict[str, Any]:
    """Validate a full product payload; ``estado`` defaults to active."""
    result = validate_object(_as_mapping(data), PRODUCT_SCHEMA)
    if not result.is_valid:
        raise ValidationFailedError(
            "The provided product data does not meet the requirements",
            details=result.messages,
        )
    result.data.setdefault("estado", ProductStatus.ACTIVE.value)
    return result.data


UPDATE_SCHEMA: dict[str, FieldRule] = {
    name: replace(rule, required=False) for name, rule in PRODUCT_SCHEMA.items()
}


def validate_update(data: Any) -> dict[str, Any]:
    """Validate a partial product payload; at least one known field must be supplied."""
    result = validate_object(_as_mapping(data), UPDATE_SCHEMA)
    if not result.is_valid:
        raise ValidationFailedError(
            "The provided update data does not meet the requirements",
            details=result.messages,
        )
    if not result.data:
        raise ValidationFailedError("At least one valid field must be provided for update")
    return result.data


# Ids never exceed 18 digits (fits a signed 64-bit integer)
_ID_RE = re.compile(r"[0-9]{1,18}")


def parse_product_id(raw: Any) -> int:
    """Return *raw* as a positive integer id or raise a 400 validation error."""
    text = str(raw).strip()
    if not _ID_RE.fullmatch(text) or int(text) <= 0:
        raise ValidationFailedError("The id must be a positive integer")
    return int(text)
