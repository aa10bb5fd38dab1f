"""Input checks shared by the event and category services."""

from typing import Any

from errors import ValidationError


def require_id(value: Any, field_name: str) -> int:
    """Coerce an identifier to int.

    Accepts ints and decimal strings. Booleans, floats, blanks and anything
    else non-numeric are rejected.

    Raises:
        ValidationError: If the value is missing or not an integer.
    """
    if value is None:
        raise ValidationError(f"{field_name} is required", field_name=field_name)
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer", field_name=field_name)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ValidationError(
        f"{field_name} must be an integer, got {value!r}", field_name=field_name
    )


def require_text(value: Any, field_name: str) -> str:
    """Return the stripped string, rejecting missing or blank values.

    Raises:
        ValidationError: If the value is not a non-blank string.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} cannot be empty", field_name=field_name)
    return value.strip()
