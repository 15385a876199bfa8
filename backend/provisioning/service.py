"""Account provisioning service layer (Clean Architecture boundary).

Why:
    Admins create staff and student accounts from the dashboard. Creating an
    account touches the auth user store and four tables, and the data service
    offers no multi-table transaction to the caller. This service sequences the
    writes and undoes the structural ones when a later structural step fails.

Policy:
    - Structural steps (identity, profile, role assignment) are all-or-nothing:
      on failure every earlier structural write is deleted in reverse order.
    - Auxiliary steps (employee or student record) are best-effort: a failure
      is logged and the account is kept.

Permissions:
    Caller must hold the `admin` role in the role store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from backend.identity_access.domain import ADMIN_ROLE, Caller, mask_email

from .codes import new_employee_code, new_student_code
from .schemas import NewAccount, parse_new_account

logger = logging.getLogger("institute.provisioning")


class IdentityAdminProtocol(Protocol):
    def create_user(self, *, email: str, password: str, display_name: str | None = None) -> str:
        ...

    def delete_user(self, user_id: str) -> None:
        ...


class RoleStoreProtocol(Protocol):
    def has_role(self, user_id: str, role: str) -> bool:
        ...

    def assign_role(self, user_id: str, role: str) -> None:
        ...


class AccountsRepoProtocol(Protocol):
    def insert_profile(
        self,
        *,
        user_id: str,
        full_name: str,
        email: str,
        phone: Optional[str],
        city: Optional[str],
    ) -> None:
        ...

    def delete_profile(self, user_id: str) -> None:
        ...

    def insert_employee(
        self,
        *,
        user_id: str,
        employee_id: str,
        branch_id: str,
        department: str,
        designation: Optional[str],
        salary: Optional[float],
    ) -> None:
        ...

    def insert_student(self, *, user_id: str, student_id: str, branch_id: Optional[str]) -> None:
        ...


class ProvisioningError(Exception):
    """A structural provisioning step failed; earlier steps were undone.

    `code` is stable and safe to expose; `detail` carries the raw downstream
    message for server-side logs only.
    """

    def __init__(self, code: str, detail: str = ""):
        super().__init__(code)
        self.code = code
        self.detail = detail


@dataclass(frozen=True)
class ProvisionedAccount:
    user_id: str
    role: str
    employee_code: Optional[str] = None
    student_code: Optional[str] = None


@dataclass
class ProvisioningService:
    """Use cases for admin-driven account creation (framework-independent)."""

    identities: IdentityAdminProtocol
    roles: RoleStoreProtocol
    accounts: AccountsRepoProtocol
    employee_code: Callable[[], str] = new_employee_code
    student_code: Callable[[], str] = new_student_code

    def ensure_admin(self, caller: Caller) -> None:
        if not self.roles.has_role(caller.user_id, ADMIN_ROLE):
            raise PermissionError("forbidden")

    def create_user(self, caller: Caller, payload: Any) -> ProvisionedAccount:
        """Authorize, validate and provision in that order.

        Raises PermissionError (non-admin), ValueError (invalid payload) or
        ProvisioningError (structural step failed). No row exists afterwards
        in any of these cases.
        """
        self.ensure_admin(caller)
        account = parse_new_account(payload)
        return self.provision(account, created_by=caller.user_id)

    def provision(self, account: NewAccount, *, created_by: str | None = None) -> ProvisionedAccount:
        logger.info("Provisioning %s account for %s (by %s)", account.role, mask_email(account.email), created_by)

        try:
            user_id = self.identities.create_user(
                email=account.email,
                password=account.password,
                display_name=account.full_name,
            )
        except Exception as exc:
            logger.warning("Identity creation failed for %s: %s", mask_email(account.email), exc)
            raise ProvisioningError("identity_create_failed", str(exc)) from exc

        try:
            self.accounts.insert_profile(
                user_id=user_id,
                full_name=account.full_name,
                email=account.email,
                phone=account.phone,
                city=account.city,
            )
        except Exception as exc:
            logger.error("Profile creation failed for user=%s: %s", user_id, exc)
            self._compensate(user_id, profile_created=False)
            raise ProvisioningError("profile_create_failed", str(exc)) from exc

        try:
            self.roles.assign_role(user_id, account.role)
        except Exception as exc:
            logger.error("Role assignment failed for user=%s role=%s: %s", user_id, account.role, exc)
            self._compensate(user_id, profile_created=True)
            raise ProvisioningError("role_assign_failed", str(exc)) from exc

        employee_code = self._create_employee_record(user_id, account) if account.needs_employee_record else None
        student_code = self._create_student_record(user_id, account) if account.needs_student_record else None

        logger.info("Provisioned user=%s role=%s", user_id, account.role)
        return ProvisionedAccount(
            user_id=user_id,
            role=account.role,
            employee_code=employee_code,
            student_code=student_code,
        )

    # --- Internals ----------------------------------------------------------------

    def _compensate(self, user_id: str, *, profile_created: bool) -> None:
        # Reverse order of creation; a failing delete must not hide the original error.
        if profile_created:
            try:
                self.accounts.delete_profile(user_id)
            except Exception as exc:
                logger.error("Compensating profile delete failed for user=%s: %s", user_id, exc)
        try:
            self.identities.delete_user(user_id)
        except Exception as exc:
            logger.error("Compensating identity delete failed for user=%s: %s", user_id, exc)

    def _create_employee_record(self, user_id: str, account: NewAccount) -> Optional[str]:
        code = self.employee_code()
        try:
            self.accounts.insert_employee(
                user_id=user_id,
                employee_id=code,
                branch_id=account.branch_id or "",
                department=account.department or account.role,
                designation=account.designation,
                salary=account.salary or None,
            )
        except Exception as exc:
            logger.error("Employee record creation failed for user=%s (account kept): %s", user_id, exc)
            return None
        return code

    def _create_student_record(self, user_id: str, account: NewAccount) -> Optional[str]:
        code = self.student_code()
        try:
            self.accounts.insert_student(user_id=user_id, student_id=code, branch_id=account.branch_id)
        except Exception as exc:
            logger.error("Student record creation failed for user=%s (account kept): %s", user_id, exc)
            return None
        return code


__all__ = [
    "IdentityAdminProtocol",
    "RoleStoreProtocol",
    "AccountsRepoProtocol",
    "ProvisioningError",
    "ProvisionedAccount",
    "ProvisioningService",
]
