from typing import Any, Iterable, List, Mapping

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

_EMAIL = TypeAdapter(EmailStr)


def is_valid_email(value: str) -> bool:
    if not value:
        return False
    try:
        _EMAIL.validate_python(value.strip())
        return True
    except PydanticValidationError:
        return False


def blank_fields(data: Mapping[str, Any], required: Iterable[str]) -> List[str]:
    """Champs requis absents ou vides (espaces compris), dans l'ordre de `required`."""
    return [name for name in required if not str(data.get(name) or "").strip()]
