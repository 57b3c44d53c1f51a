"""
Schema validation for batch change requests.

Checks operation names, required fields and their types before anything
is sent to the engine. Category and sentence references are resolved at
execution time, since earlier changes in the same request may create
them.
"""
from __future__ import annotations

from typing import Any, List

from .schema import (
    OPTIONAL_FIELDS,
    REQUIRED_FIELDS,
    SENTENCE_REF_FIELDS,
    Change,
    ChangeRequest,
    OperationType,
    ValidationIssue,
    ValidationResult,
)


def validate_change_request(request: ChangeRequest) -> ValidationResult:
    """Validate a change request.

    Args:
        request: The change request to validate

    Returns:
        ValidationResult with one issue per problem found
    """
    errors: List[ValidationIssue] = []

    if not request.owner.strip():
        errors.append(
            ValidationIssue(
                index=-1,
                operation="",
                field="owner",
                message="Owner must not be blank",
            )
        )

    for i, change in enumerate(request.changes):
        errors.extend(_validate_change(change, index=i))

    return ValidationResult(is_valid=len(errors) == 0, errors=errors)


def _validate_change(change: Change, index: int) -> List[ValidationIssue]:
    """Validate a single change operation."""
    errors: List[ValidationIssue] = []

    valid_operations = {op.value for op in OperationType}
    if change.operation not in valid_operations:
        errors.append(
            ValidationIssue(
                index=index,
                operation=change.operation,
                field="operation",
                message=(
                    f"Unknown operation '{change.operation}'. "
                    f"Valid: {', '.join(sorted(valid_operations))}"
                ),
            )
        )
        return errors

    ref_fields = SENTENCE_REF_FIELDS.get(change.operation, [])

    for field_name in REQUIRED_FIELDS[change.operation]:
        value = change.params.get(field_name)
        if value is None:
            message = f"Missing required field '{field_name}'"
        elif field_name in ref_fields:
            message = _check_sentence_ref(field_name, value)
        elif not isinstance(value, str):
            message = f"Field '{field_name}' must be a string"
        elif not value.strip():
            message = f"Field '{field_name}' must not be blank"
        else:
            message = None

        if message:
            errors.append(
                ValidationIssue(
                    index=index,
                    operation=change.operation,
                    field=field_name,
                    message=message,
                )
            )

    known = set(REQUIRED_FIELDS[change.operation]) | set(
        OPTIONAL_FIELDS[change.operation]
    )
    for field_name in sorted(set(change.params) - known):
        errors.append(
            ValidationIssue(
                index=index,
                operation=change.operation,
                field=field_name,
                message=f"Unexpected field '{field_name}'",
            )
        )

    return errors


def _check_sentence_ref(field_name: str, value: Any) -> str | None:
    """A sentence is referenced by integer id or by its source text."""
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        return f"Field '{field_name}' must be a sentence id or source text"
    if isinstance(value, str) and not value.strip():
        return f"Field '{field_name}' must not be blank"
    return None
