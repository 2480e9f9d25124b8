"""Form validation run before any request leaves the client.

Rules are ``(kind, argument, message)`` tuples; ``validate_form`` returns
``(is_valid, errors)`` where ``errors`` maps each failing field to its
messages in rule order.
"""
import math
import re
from datetime import datetime
from typing import Any, Callable

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and bool(EMAIL_PATTERN.match(value.strip()))


def is_not_empty(value: Any) -> bool:
    if value is None:
        return False
    return len(str(value).strip()) > 0


def has_min_length(value: Any, length: int) -> bool:
    return value is not None and len(str(value).strip()) >= length


def has_max_length(value: Any, length: int) -> bool:
    return value is None or len(str(value).strip()) <= length


def is_number(value: Any) -> bool:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(number)


def is_optional_number(value: Any) -> bool:
    return not is_not_empty(value) or is_number(value)


def is_iso_date(value: Any) -> bool:
    if not is_not_empty(value):
        return True
    try:
        datetime.strptime(str(value).strip(), '%Y-%m-%d')
    except ValueError:
        return False
    return True


def _check(kind: str, value: Any, argument: Any) -> bool:
    if kind == 'required':
        return is_not_empty(value)
    if kind == 'email':
        return is_valid_email(value)
    if kind == 'min_length':
        return has_min_length(value, argument)
    if kind == 'max_length':
        return has_max_length(value, argument)
    if kind == 'custom':
        validator: Callable[[Any], bool] = argument
        return validator(value)
    raise ValueError(f'Unknown validation rule: {kind}')


def validate_form(fields: dict, rules: dict[str, list[tuple]]) -> tuple[bool, dict[str, list[str]]]:
    errors: dict[str, list[str]] = {}
    for field_name, field_rules in rules.items():
        value = fields.get(field_name)
        messages = [
            message for kind, argument, message in field_rules
            if not _check(kind, value, argument)
        ]
        if messages:
            errors[field_name] = messages
    return not errors, errors


def first_error(errors: dict[str, list[str]]) -> str | None:
    for messages in errors.values():
        if messages:
            return messages[0]
    return None


LOGIN_RULES = {
    'email': [
        ('required', None, 'El email es requerido'),
        ('email', None, 'Email inválido'),
    ],
    'password': [
        ('required', None, 'La contraseña es requerida'),
    ],
}

ENROLLMENT_RULES = {
    'course_id': [('required', None, 'Selecciona un curso')],
    'full_name': [
        ('required', None, 'El nombre es requerido'),
        ('min_length', 3, 'El nombre debe tener al menos 3 caracteres'),
    ],
    'email': [
        ('required', None, 'El email es requerido'),
        ('email', None, 'Email inválido'),
    ],
    'payment_method': [('required', None, 'Selecciona un método de pago')],
}

ASSIGNMENT_RULES = {
    'course_id': [('required', None, 'Selecciona un curso')],
    'title': [
        ('required', None, 'El título es requerido'),
        ('min_length', 3, 'El título debe tener al menos 3 caracteres'),
    ],
    'due_date': [('custom', is_iso_date, 'Formato de fecha inválido. Use YYYY-MM-DD')],
    'max_grade': [('custom', is_optional_number, 'La nota máxima debe ser un número')],
}

GRADE_RULES = {
    'grade': [
        ('required', None, 'La calificación es requerida'),
        ('custom', is_number, 'La calificación debe ser un número'),
    ],
}
