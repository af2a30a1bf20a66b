"""
Patient field validation utilities.

Provides centralized validation and normalization for patient record fields
so that create and update apply exactly the same rules.
"""

from typing import Any, Optional

from core.constants import MAX_AGE_VALUE, MAX_NOTES_LENGTH, MAX_STRING_LENGTH
from core.exceptions import ValidationError


OPTIONAL_TEXT_FIELDS = ("parent_name", "op_number", "treatment", "notes")

_FIELD_LABELS = {
    "name": "Name",
    "age": "Age",
    "contact_details": "Contact details",
    "parent_name": "Parent name",
    "op_number": "OP number",
    "treatment": "Treatment",
    "notes": "Notes",
}


def _max_length(field: str) -> int:
    return MAX_NOTES_LENGTH if field in ("notes", "treatment", "contact_details") else MAX_STRING_LENGTH


def validate_required_text(value: Any, field: str) -> str:
    """
    Validate a required text field.

    - Trims whitespace
    - Ensures non-empty
    - Checks length

    Raises:
        ValidationError: naming the offending field
    """
    label = _FIELD_LABELS.get(field, field)
    if value is None:
        raise ValidationError(f"{label} is required", field=field)
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be text", field=field)
    value = value.strip()
    if not value:
        raise ValidationError(f"{label} is required", field=field)
    if len(value) > _max_length(field):
        raise ValidationError(f"{label} is too long", field=field)
    return value


def normalize_optional_text(value: Any, field: str) -> Optional[str]:
    """Trim an optional text field; empty or whitespace-only becomes None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{_FIELD_LABELS.get(field, field)} must be text", field=field)
    value = value.strip()
    if not value:
        return None
    if len(value) > _max_length(field):
        raise ValidationError(f"{_FIELD_LABELS.get(field, field)} is too long", field=field)
    return value


def normalize_age(value: Any) -> int:
    """
    Normalize age to an integer.

    Accepts ints and decimal strings ("7", " 7 "). Booleans, floats with a
    fractional part and anything non-numeric are rejected. Values must fit the
    age column. The 0-18 range is a UI hint only and is not enforced here.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError("Age is required", field="age")
    if isinstance(value, int):
        age = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValidationError("Age must be a whole number", field="age")
        age = int(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValidationError("Age is required", field="age")
        try:
            age = int(text)
        except ValueError:
            raise ValidationError("Age must be a whole number", field="age")
    else:
        raise ValidationError("Age must be a whole number", field="age")

    if age < 0:
        raise ValidationError("Age cannot be negative", field="age")
    if age > MAX_AGE_VALUE:
        raise ValidationError("Age is too large", field="age")
    return age
