"""
Supabase-backed persistence for provisioned accounts.

Writes the `profiles`, `employees` and `students` rows through the PostgREST
table API of a supabase client. The client must be created with the Service
Role key: these tables are RLS-protected and an admin creates rows for other
users.

Errors from the client (e.g. `postgrest.exceptions.APIError`) propagate; the
provisioning service decides whether a failure is compensated or tolerated.
"""
from __future__ import annotations

from typing import Any, Optional

PROFILES_TABLE = "profiles"
EMPLOYEES_TABLE = "employees"
STUDENTS_TABLE = "students"


class SupabaseAccountsRepo:
    def __init__(self, client: Any):
        self._client = client

    def insert_profile(
        self,
        *,
        user_id: str,
        full_name: str,
        email: str,
        phone: Optional[str],
        city: Optional[str],
    ) -> None:
        row = {
            "user_id": user_id,
            "full_name": full_name,
            "email": email,
            "phone": phone,
            "city": city,
        }
        self._client.table(PROFILES_TABLE).insert(row).execute()

    def delete_profile(self, user_id: str) -> None:
        self._client.table(PROFILES_TABLE).delete().eq("user_id", user_id).execute()

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
        row = {
            "user_id": user_id,
            "employee_id": employee_id,
            "branch_id": branch_id,
            "department": department,
            "designation": designation,
            "salary": salary,
        }
        self._client.table(EMPLOYEES_TABLE).insert(row).execute()

    def insert_student(self, *, user_id: str, student_id: str, branch_id: Optional[str]) -> None:
        row = {"user_id": user_id, "student_id": student_id, "branch_id": branch_id}
        self._client.table(STUDENTS_TABLE).insert(row).execute()


__all__ = ["PROFILES_TABLE", "EMPLOYEES_TABLE", "STUDENTS_TABLE", "SupabaseAccountsRepo"]
