"""
Validasi Input
===============
Helper validasi field sederhana untuk email, nama, dan password.
"""

import re

from facegate.errors import BadRequestError

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
NAME_MIN_LENGTH = 3
PASSWORD_MIN_LENGTH = 8


def require_email(value) -> str:
    if not isinstance(value, str) or not value:
        raise BadRequestError("Email wajib diisi")
    if not EMAIL_PATTERN.match(value):
        raise BadRequestError("Format email tidak valid")
    return value


def require_name(value) -> str:
    if not isinstance(value, str) or not value.strip():
        raise BadRequestError("Nama wajib diisi")
    if len(value.strip()) < NAME_MIN_LENGTH:
        raise BadRequestError(f"Nama minimal {NAME_MIN_LENGTH} karakter")
    return value.strip()


def require_password(value, min_length: int = PASSWORD_MIN_LENGTH) -> str:
    if not isinstance(value, str) or not value:
        raise BadRequestError("Password wajib diisi")
    if len(value) < min_length:
        raise BadRequestError(f"Password minimal {min_length} karakter")
    return value
