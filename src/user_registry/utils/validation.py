"""
Input validation for user records
"""

import re
from typing import Optional, Tuple

from user_registry.utils.error_handling import ValidationFailedError

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

# Column widths of the usuarios table
MAX_LENGTHS = {
    "nombre": 100,
    "email": 150,
    "telefono": 20,
}


def is_valid_email(email: str) -> bool:
    """local@domain.tld with no whitespace and a single @"""
    return EMAIL_PATTERN.fullmatch(email) is not None


def clean_user_fields(
    nombre: Optional[str],
    email: Optional[str],
    telefono: Optional[str],
) -> Tuple[str, str, str]:
    """
    Trim and validate the fields of a new user

    Checks run in order: required fields, email format, column widths.

    Raises:
        ValidationFailedError: describing the first failed check
    """
    fields = {
        "nombre": (nombre or "").strip(),
        "email": (email or "").strip(),
        "telefono": (telefono or "").strip(),
    }

    if not all(fields.values()):
        raise ValidationFailedError(
            "Nombre, email y teléfono son requeridos",
            error="Datos incompletos",
        )

    if not is_valid_email(fields["email"]):
        raise ValidationFailedError(
            "Por favor, ingrese un email válido",
            error="Email inválido",
        )

    for name, value in fields.items():
        if len(value) > MAX_LENGTHS[name]:
            raise ValidationFailedError(
                f"El campo {name} no puede superar {MAX_LENGTHS[name]} caracteres"
            )

    return fields["nombre"], fields["email"], fields["telefono"]
