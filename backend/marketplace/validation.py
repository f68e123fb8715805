from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from .errors import ValidationError

# Maximum price: 9,999,999.99 in major units (999,999,999 cents)
# This prevents overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999


def require_json_object(payload: Any) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require_fields(payload: dict, *names: str, message: str | None = None) -> None:
    """Every named field must be present and non-blank."""
    missing = [n for n in names if _is_blank(payload.get(n))]
    if missing:
        raise ValidationError(message or f"{', '.join(missing)} required")


def coerce_int(name: str, value: Any, *, minimum: int | None = None, maximum: int | None = None) -> int:
    """
    Strict integer coercion: rejects bools, floats, decimals and scientific
    notation rather than silently truncating.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer")
    if isinstance(value, int):
        result = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{name} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{name} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{name} must be an integer (no decimals)")
        try:
            result = int(stripped)
        except ValueError:
            raise ValidationError(f"{name} must be an integer")
    elif isinstance(value, float):
        raise ValidationError(f"{name} must be an integer, not a decimal")
    else:
        raise ValidationError(f"{name} must be an integer")

    if minimum is not None and result < minimum:
        raise ValidationError(f"{name} must be at least {minimum}")
    if maximum is not None and result > maximum:
        raise ValidationError(f"{name} must be at most {maximum}")
    return result


def coerce_cents(name: str, value: Any) -> int:
    return coerce_int(name, value, minimum=0, maximum=MAX_PRICE_CENTS)


def coerce_str(name: str, value: Any, *, max_length: int = 255, allow_blank: bool = True) -> str:
    if value is None:
        value = ""
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise ValidationError(f"{name} must be a string")
    result = str(value).strip()
    if not allow_blank and not result:
        raise ValidationError(f"{name} is required")
    if len(result) > max_length:
        raise ValidationError(f"{name} must be at most {max_length} characters")
    return result


def coerce_choice(name: str, value: Any, choices: Iterable[str]) -> str:
    choices = tuple(choices)
    if value not in choices:
        raise ValidationError(f"{name} must be one of: {', '.join(choices)}")
    return value


def coerce_list_of_str(name: str, value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"{name} must be a list of strings")
    return [v.strip() for v in value if v.strip()]


def coerce_str_mapping(name: str, value: Any) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(f"{name} must be an object")
    return {str(k): str(v) for k, v in value.items()}


@dataclass(frozen=True)
class FieldPolicy:
    """
    Write policy for a client-editable record:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required on POST
    """
    writable_fields: frozenset
    required_on_create: frozenset = frozenset()

    def clean(self, payload: dict, *, partial: bool) -> dict:
        payload = require_json_object(payload)
        if not partial:
            require_fields(payload, *sorted(self.required_on_create))
        return {k: v for k, v in payload.items() if k in self.writable_fields}
