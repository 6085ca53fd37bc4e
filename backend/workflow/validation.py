"""
Schema validation with field-level error reporting.

Wraps pydantic validation so callers get a flat list of FieldError entries
(field path, message, error type) instead of an exception.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from backend.workflow.schemas import (
    AIGeneratedEmail,
    DraftEmail,
    FieldError,
    FieldErrorType,
    OrganizationProfile,
    UserApproval,
)

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_MISSING_TYPES = {"missing"}
_FORMAT_TYPES = {"datetime_parsing", "datetime_from_date_parsing", "date_parsing", "url_parsing"}
_CONSTRAINT_TYPES = {
    "literal_error", "enum", "greater_than", "greater_than_equal", "less_than",
    "less_than_equal", "finite_number", "string_too_short", "string_too_long",
    "too_short", "too_long", "frozen_instance",
}

M = TypeVar("M", bound=BaseModel)


@dataclass
class ValidationOutcome(Generic[M]):
    valid: bool
    data: Optional[M] = None
    errors: list[FieldError] = field(default_factory=list)


def _field_path(loc: tuple) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path or "root"


def _error_type(pydantic_type: str) -> FieldErrorType:
    if pydantic_type in _MISSING_TYPES:
        return FieldErrorType.MISSING_REQUIRED
    if pydantic_type in _FORMAT_TYPES:
        return FieldErrorType.FORMAT_INVALID
    if pydantic_type in _CONSTRAINT_TYPES:
        return FieldErrorType.CONSTRAINT_VIOLATION
    return FieldErrorType.TYPE_MISMATCH


def field_errors_from(exc: PydanticValidationError) -> list[FieldError]:
    return [
        FieldError(field=_field_path(err["loc"]), message=err["msg"], type=_error_type(err["type"]))
        for err in exc.errors()
    ]


def format_validation_errors(errors: list[FieldError]) -> str:
    return "; ".join(f"{e.field}: {e.message}" for e in errors)


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and bool(EMAIL_PATTERN.match(value))


def _validate(model: type[M], data: Any) -> ValidationOutcome[M]:
    if isinstance(data, BaseModel):
        data = data.model_dump()
    if not isinstance(data, dict):
        return ValidationOutcome(
            valid=False,
            errors=[FieldError(field="root", message="Expected an object", type=FieldErrorType.TYPE_MISMATCH)],
        )
    try:
        return ValidationOutcome(valid=True, data=model.model_validate(data))
    except PydanticValidationError as e:
        return ValidationOutcome(valid=False, errors=field_errors_from(e))


def _require_non_empty(data: BaseModel, fields: tuple[str, ...]) -> list[FieldError]:
    return [
        FieldError(field=name, message=f"{name} must not be empty", type=FieldErrorType.MISSING_REQUIRED)
        for name in fields
        if not str(getattr(data, name) or "").strip()
    ]


def _finish(outcome: ValidationOutcome[M], extra: list[FieldError]) -> ValidationOutcome[M]:
    if extra:
        return ValidationOutcome(valid=False, errors=extra)
    return outcome


# ──────────────────────────────────────────────
# Public validators
# ──────────────────────────────────────────────

def validate_ai_generated_email(data: Any) -> ValidationOutcome[AIGeneratedEmail]:
    outcome = _validate(AIGeneratedEmail, data)
    if not outcome.valid:
        logger.warning(f"Generated email failed validation: {format_validation_errors(outcome.errors)}")
    return outcome


def validate_draft_email(data: Any) -> ValidationOutcome[DraftEmail]:
    outcome = _validate(DraftEmail, data)
    if not outcome.valid:
        return outcome

    draft = outcome.data
    extra = _require_non_empty(draft, ("subject", "body", "recipient_email"))
    if draft.recipient_email and not is_valid_email(draft.recipient_email):
        extra.append(FieldError(
            field="recipient_email",
            message=f"Invalid email address: {draft.recipient_email}",
            type=FieldErrorType.FORMAT_INVALID,
        ))
    return _finish(outcome, extra)


def validate_user_approval(data: Any) -> ValidationOutcome[UserApproval]:
    outcome = _validate(UserApproval, data)
    if not outcome.valid:
        return outcome
    return _finish(outcome, _require_non_empty(outcome.data, ("id", "resource_id", "approved_by")))


def validate_organization(data: Any) -> ValidationOutcome[OrganizationProfile]:
    outcome = _validate(OrganizationProfile, data)
    if not outcome.valid:
        return outcome

    org = outcome.data
    extra = _require_non_empty(org, ("id", "name", "email"))
    if org.email and not is_valid_email(org.email):
        extra.append(FieldError(
            field="email",
            message=f"Invalid email address: {org.email}",
            type=FieldErrorType.FORMAT_INVALID,
        ))
    return _finish(outcome, extra)
