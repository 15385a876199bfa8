"""
Input schema for admin-driven account creation.

Why:
    Request bodies arrive as arbitrary JSON. Parsing them into a typed model
    first, and applying the business rules (required fields, role enumeration,
    branch requirement) second, keeps both concerns testable without FastAPI.

Errors:
    All problems raise `ValueError` with a stable code that the web layer maps
    to a 400 response:
    - ``invalid_payload``: body is not an object or a field has the wrong type
    - ``missing_required_fields``: email/password/full_name/role absent or blank
    - ``invalid_role``: role outside the `app_role` enumeration
    - ``branch_required``: employee role without `branch_id`
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.functional_validators import field_validator

from backend.identity_access.domain import ALLOWED_ROLES, EMPLOYEE_ROLES, STUDENT_ROLE


class CreateUserRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: str | None = None
    # Passwords are taken as given (no trimming).
    password: str | None = None
    full_name: str | None = None
    phone: str | None = None
    city: str | None = None
    role: str | None = None
    branch_id: str | None = None
    department: str | None = None
    designation: str | None = None
    salary: float | None = None

    @field_validator("salary", mode="before")
    @classmethod
    def _reject_bool_salary(cls, v):
        # JSON true/false would otherwise coerce to 1.0/0.0.
        if isinstance(v, bool):
            raise ValueError("salary must be a number")
        return v

    @field_validator("full_name", "phone", "city", "role", "branch_id", "department", "designation")
    @classmethod
    def _strip_empty(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v if v else None
        return v

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            return v if v else None
        return v


@dataclass(frozen=True)
class NewAccount:
    """Validated account request; every required field is present."""

    email: str
    password: str
    full_name: str
    role: str
    phone: str | None = None
    city: str | None = None
    branch_id: str | None = None
    department: str | None = None
    designation: str | None = None
    salary: float | None = None

    @property
    def needs_employee_record(self) -> bool:
        return self.role in EMPLOYEE_ROLES

    @property
    def needs_student_record(self) -> bool:
        return self.role == STUDENT_ROLE


def parse_new_account(raw: Any) -> NewAccount:
    """Validate a decoded JSON body and return a `NewAccount`."""
    if not isinstance(raw, Mapping):
        raise ValueError("invalid_payload")
    try:
        req = CreateUserRequest.model_validate(dict(raw))
    except ValidationError as exc:
        raise ValueError("invalid_payload") from exc

    if not (req.email and req.password and req.full_name and req.role):
        raise ValueError("missing_required_fields")
    if req.role not in ALLOWED_ROLES:
        raise ValueError("invalid_role")
    if req.role in EMPLOYEE_ROLES and not req.branch_id:
        raise ValueError("branch_required")

    return NewAccount(
        email=req.email,
        password=req.password,
        full_name=req.full_name,
        role=req.role,
        phone=req.phone,
        city=req.city,
        branch_id=req.branch_id,
        department=req.department,
        designation=req.designation,
        salary=req.salary,
    )


__all__ = ["CreateUserRequest", "NewAccount", "parse_new_account"]
