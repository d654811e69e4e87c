"""Rule-table request validation.

A rule table is an ordered tuple of :class:`FieldRule` entries. Each field
rule holds a list of checks; the validator walks the table in order, stops at
the first failing check of each field and reports every failing field at
once, so a client sees all of its mistakes in a single response.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel

from .errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class Violation:
    field: str
    message: str

    def as_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


@dataclass(frozen=True)
class Check:
    """A single predicate on a field value together with its failure message."""

    name: str
    predicate: Callable[[Any], bool]
    message: str

    def passes(self, value: Any) -> bool:
        return self.predicate(value)


def required(message: str) -> Check:
    return Check("required", lambda value: isinstance(value, str) and bool(value.strip()), message)


def non_empty(message: str) -> Check:
    return Check("non_empty", lambda value: isinstance(value, str) and len(value) > 0, message)


def email(message: str) -> Check:
    return Check(
        "email",
        lambda value: isinstance(value, str) and EMAIL_PATTERN.match(value.strip()) is not None,
        message,
    )


def min_length(length: int, message: str) -> Check:
    return Check("min_length", lambda value: isinstance(value, str) and len(value) >= length, message)


@dataclass(frozen=True)
class FieldRule:
    field: str
    checks: Tuple[Check, ...]

    def first_failure(self, value: Any) -> Optional[Violation]:
        for check in self.checks:
            if not check.passes(value):
                return Violation(self.field, check.message)
        return None


RuleTable = Sequence[FieldRule]


def collect_violations(rules: RuleTable, payload: Mapping[str, Any]) -> List[Violation]:
    """Return violations in rule-declaration order, at most one per field."""

    violations: List[Violation] = []
    for rule in rules:
        violation = rule.first_failure(payload.get(rule.field))
        if violation is not None:
            violations.append(violation)
    return violations


def validate_payload(rules: RuleTable, payload: Any, model: Type[ModelT]) -> ModelT:
    """Check ``payload`` against ``rules`` and build ``model`` from it.

    Raises :class:`~affiliate_hub.errors.ValidationError` listing every
    violation when any rule fails. A payload that is not a mapping is
    validated as if it were empty.
    """

    data: Mapping[str, Any] = payload if isinstance(payload, Mapping) else {}
    violations = collect_violations(rules, data)
    if violations:
        raise ValidationError(violations)
    return model.model_validate({rule.field: data.get(rule.field) for rule in rules})


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


REGISTER_RULES: Tuple[FieldRule, ...] = (
    FieldRule("name", (required("Name is required"),)),
    FieldRule("email", (email("Please include a valid email"),)),
    FieldRule("password", (min_length(6, "Please enter a password with 6 or more characters"),)),
)

LOGIN_RULES: Tuple[FieldRule, ...] = (
    FieldRule("email", (email("Please include a valid email"),)),
    FieldRule("password", (non_empty("Password is required"),)),
)


__all__ = [
    "Check",
    "EMAIL_PATTERN",
    "FieldRule",
    "LOGIN_RULES",
    "LoginRequest",
    "REGISTER_RULES",
    "RegisterRequest",
    "RuleTable",
    "Violation",
    "collect_violations",
    "email",
    "min_length",
    "non_empty",
    "required",
    "validate_payload",
]
