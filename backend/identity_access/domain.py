"""
Identity domain constants and simple helpers.

Why:
- Centralize the role enumeration (`app_role` in the database) so that the
  provisioning flow, the role directory and the web layer cannot drift.
- Keep the caller representation small: the services only need the identity
  id and its email.
"""

from __future__ import annotations

from dataclasses import dataclass

ADMIN_ROLE = "admin"
STUDENT_ROLE = "student"

# Mirrors the `app_role` enum. Immutable to prevent accidental mutation.
ALLOWED_ROLES = frozenset({"admin", "branch_admin", "teacher", "sales", "support", "student"})

# Roles that are staff members of a branch and get an `employees` row.
EMPLOYEE_ROLES = frozenset({"branch_admin", "teacher", "sales", "support"})


@dataclass(frozen=True)
class Caller:
    """Authenticated principal behind a bearer token."""

    user_id: str
    email: str | None = None


def mask_email(email: str | None) -> str:
    """Return a log-safe representation of an email address.

    Keeps the first character of the local part and the full domain, e.g.
    ``a***@example.org``. Values without an ``@`` are masked completely.
    """
    if not email or "@" not in email:
        return "***"
    local, domain = email.split("@", 1)
    head = local[:1] or "*"
    return f"{head}***@{domain}"


__all__ = [
    "ADMIN_ROLE",
    "STUDENT_ROLE",
    "ALLOWED_ROLES",
    "EMPLOYEE_ROLES",
    "Caller",
    "mask_email",
]
