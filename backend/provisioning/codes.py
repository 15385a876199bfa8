"""
Human-readable record codes for staff and students (e.g. ``STU-MC3K9Q2A7F``).

A code is the prefix, an upper-cased base-36 millisecond timestamp and a short
random base-36 suffix. The timestamp keeps codes roughly sortable by creation;
the suffix keeps two accounts created within the same millisecond apart.
"""
from __future__ import annotations

import secrets
import time

_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"

EMPLOYEE_PREFIX = "EMP"
STUDENT_PREFIX = "STU"


def _base36(value: int) -> str:
    if value <= 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_ALPHABET[rem])
    return "".join(reversed(digits))


def generate_code(prefix: str, *, now_ms: int | None = None, suffix_len: int = 3) -> str:
    millis = int(time.time() * 1000) if now_ms is None else int(now_ms)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(suffix_len))
    return f"{prefix}-{_base36(millis)}{suffix}"


def new_employee_code() -> str:
    return generate_code(EMPLOYEE_PREFIX)


def new_student_code() -> str:
    return generate_code(STUDENT_PREFIX)


__all__ = ["EMPLOYEE_PREFIX", "STUDENT_PREFIX", "generate_code", "new_employee_code", "new_student_code"]
