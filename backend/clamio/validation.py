# Overview: Declarative request validation applied before route logic runs.

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable

from flask import g, request

from .responses import fail


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = r"^\+?[\d\s\-\(\)]+$"
NAME_PATTERN = r"^[a-zA-Z\s]+$"
PASSWORD_PATTERN = r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)"


class ValidationError(ValueError):
    """400-level input problem; `errors` holds per-field details."""

    def __init__(self, errors: list[dict]):
        super().__init__("Validation failed")
        self.errors = errors


@dataclass(frozen=True)
class FieldRule:
    """
    One field check. Checks run in declaration order and the first failing
    check's message is reported for the field.
    """
    name: str
    required: bool = False
    required_message: str | None = None
    trim: bool = True
    lower: bool = False
    min_length: int | None = None
    max_length: int | None = None
    length_message: str | None = None
    pattern: str | None = None
    pattern_message: str | None = None
    choices: tuple | None = None
    choices_message: str | None = None
    email: bool = False
    numeric: bool = False
    integer: bool = False
    decimal: bool = False
    min_value: float | None = None
    max_value: float | None = None
    number_message: str | None = None
    equals_field: str | None = None
    equals_message: str | None = None
    check: Callable[[Any], str | None] | None = None


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _check_field(rule: FieldRule, value, data: dict):
    """Return (cleaned_value, error_message_or_None)."""
    if isinstance(value, str) and rule.trim:
        value = value.strip()

    if rule.equals_field is not None:
        if value != data.get(rule.equals_field):
            return value, rule.equals_message or f"{rule.name} does not match {rule.equals_field}"
        return value, None

    if _is_blank(value):
        if rule.required:
            return value, rule.required_message or f"{rule.name} is required"
        return None, None

    if rule.integer or rule.decimal:
        try:
            number = int(str(value)) if rule.integer else float(str(value))
        except ValueError:
            return value, rule.number_message or f"{rule.name} must be a number"
        if number != number or number in (float("inf"), float("-inf")):
            return value, rule.number_message or f"{rule.name} must be a number"
        if rule.min_value is not None and number < rule.min_value:
            return value, rule.number_message or f"{rule.name} is too small"
        if rule.max_value is not None and number > rule.max_value:
            return value, rule.number_message or f"{rule.name} is too large"
        return number, None

    if rule.numeric:
        text = str(value)
        try:
            float(text)
        except ValueError:
            return value, rule.number_message or f"{rule.name} must be a number"
        return text, None

    text = str(value)
    if rule.lower:
        text = text.lower()

    if rule.min_length is not None and len(text) < rule.min_length:
        return text, rule.length_message or f"{rule.name} must be at least {rule.min_length} characters"
    if rule.max_length is not None and len(text) > rule.max_length:
        return text, rule.length_message or f"{rule.name} must be at most {rule.max_length} characters"
    if rule.email and not EMAIL_PATTERN.match(text):
        return text, rule.pattern_message or "Please provide a valid email address"
    if rule.pattern and not re.search(rule.pattern, text):
        return text, rule.pattern_message or f"{rule.name} has an invalid format"
    if rule.choices is not None and text not in rule.choices:
        return text, rule.choices_message or f"{rule.name} must be one of: {', '.join(rule.choices)}"
    if rule.check is not None:
        message = rule.check(text)
        if message:
            return text, message
    return text, None


def validate(data: dict | None, rules: list[FieldRule]) -> dict:
    """
    Validate a payload against rules.

    Returns the cleaned values for the ruled fields that were present.
    Raises ValidationError listing every failing field.
    """
    data = data or {}
    cleaned: dict = {}
    errors: list[dict] = []
    for rule in rules:
        raw = data.get(rule.name)
        value, message = _check_field(rule, raw, data)
        if message:
            errors.append({"field": rule.name, "message": message, "value": raw})
        elif value is not None:
            cleaned[rule.name] = value
    if errors:
        raise ValidationError(errors)
    return cleaned


def _validated(source: Callable[[], dict], rules: list[FieldRule]):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                cleaned = validate(source(), rules)
            except ValidationError as e:
                return fail("Validation failed", 400, errors=e.errors)
            merged = dict(getattr(g, "validated", {}) or {})
            merged.update(cleaned)
            g.validated = merged
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def _body() -> dict:
    if request.mimetype == "multipart/form-data" or request.form:
        return request.form.to_dict()
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def validate_body(rules: list[FieldRule]):
    """Validate the JSON (or multipart form) body; cleaned values land in g.validated."""
    return _validated(_body, rules)


def validate_query(rules: list[FieldRule]):
    return _validated(lambda: request.args.to_dict(), rules)


# =============================================================================
# RULE SETS
# =============================================================================

_NAME = dict(
    min_length=2, max_length=50,
    length_message="Name must be between 2 and 50 characters",
    pattern=NAME_PATTERN, pattern_message="Name can only contain letters and spaces",
)
_PHONE = dict(pattern=PHONE_PATTERN, pattern_message="Please provide a valid phone number")
_CONTACT = dict(pattern=PHONE_PATTERN, pattern_message="Please provide a valid contact number")
_STATUS = dict(choices=("active", "inactive"), choices_message="Status must be either active or inactive")
_WAREHOUSE = dict(numeric=True, number_message="Warehouse ID must be a number")


def _new_password(name: str, prefix: str = "Password") -> FieldRule:
    return FieldRule(
        name, required=True, trim=False,
        required_message=f"{prefix} must be at least 6 characters long",
        min_length=6, length_message=f"{prefix} must be at least 6 characters long",
        pattern=PASSWORD_PATTERN,
        pattern_message=f"{prefix} must contain at least one uppercase letter, one lowercase letter, and one number",
    )


USER_REGISTRATION = [
    FieldRule("name", required=True, required_message="Name must be between 2 and 50 characters", **_NAME),
    FieldRule("email", required=True, email=True, lower=True, required_message="Please provide a valid email address"),
    FieldRule("phone", **_PHONE),
    _new_password("password"),
    FieldRule("role", required=True, choices=("admin", "vendor"),
              required_message="Role must be either admin or vendor",
              choices_message="Role must be either admin or vendor"),
    FieldRule("status", **_STATUS),
    FieldRule("warehouseId", **_WAREHOUSE),
    FieldRule("contactNumber", **_CONTACT),
]

USER_UPDATE = [
    FieldRule("name", **_NAME),
    FieldRule("email", email=True, lower=True),
    FieldRule("phone", **_PHONE),
    FieldRule("status", **_STATUS),
    FieldRule("warehouseId", **_WAREHOUSE),
    FieldRule("contactNumber", **_CONTACT),
    FieldRule("password", trim=False, min_length=6,
              length_message="Password must be at least 6 characters long",
              pattern=PASSWORD_PATTERN,
              pattern_message="Password must contain at least one uppercase letter, one lowercase letter, and one number"),
]

USER_LOGIN = [
    FieldRule("email", required=True, email=True, lower=True, required_message="Please provide a valid email address"),
    FieldRule("password", required=True, trim=False, required_message="Password is required"),
]

PHONE_LOGIN = [
    FieldRule("phone", required=True, required_message="Please provide a valid phone number", **_PHONE),
    FieldRule("password", required=True, trim=False, required_message="Password is required"),
]

PASSWORD_CHANGE = [
    FieldRule("oldPassword", required=True, trim=False, required_message="Old password is required"),
    _new_password("newPassword", "New password"),
    FieldRule("confirmPassword", trim=False, equals_field="newPassword",
              equals_message="Password confirmation does not match new password"),
]

PASSWORD_RESET = [
    FieldRule("email", required=True, email=True, lower=True, required_message="Please provide a valid email address"),
    *PASSWORD_CHANGE,
]

ADMIN_PASSWORD_SET = [
    FieldRule("userId", required=True, integer=True, min_value=1,
              required_message="User ID is required", number_message="User ID must be a number"),
    _new_password("newPassword", "New password"),
]

PAGINATION = [
    FieldRule("page", integer=True, min_value=1, number_message="Page must be a positive integer"),
    FieldRule("limit", integer=True, min_value=1, max_value=100, number_message="Limit must be between 1 and 100"),
    FieldRule("role", choices=("admin", "vendor", "superadmin"),
              choices_message="Role must be admin, vendor, or superadmin"),
    FieldRule("status", **_STATUS),
]

SEARCH = [
    FieldRule("q", min_length=2, length_message="Search query must be at least 2 characters long"),
]

SETTLEMENT_REQUEST = [
    FieldRule("upiId", required=True, min_length=3, max_length=100,
              required_message="UPI ID is required",
              length_message="UPI ID must be between 3 and 100 characters"),
]

SETTLEMENT_APPROVAL = [
    FieldRule("amountPaid", required=True, decimal=True, min_value=0.01,
              required_message="Amount paid must be a valid number greater than 0",
              number_message="Amount paid must be a valid number greater than 0"),
    FieldRule("transactionId", required=True, min_length=1, max_length=100,
              required_message="Transaction ID is required",
              length_message="Transaction ID must be between 1 and 100 characters"),
]

SETTLEMENT_REJECTION = [
    FieldRule("rejectionReason", required=True, min_length=10, max_length=500,
              required_message="Rejection reason must be between 10 and 500 characters",
              length_message="Rejection reason must be between 10 and 500 characters"),
]

NOTIFICATION_CREATE = [
    FieldRule("severity", choices=("low", "medium", "high", "critical"),
              choices_message="Severity must be one of: low, medium, high, critical"),
]

VENDOR_REGISTRATION = [rule for rule in USER_REGISTRATION if rule.name != "role"]
