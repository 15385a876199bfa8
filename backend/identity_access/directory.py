"""
Role directory adapter (Supabase `user_roles` table).

Why:
    Authorization decisions ("is this caller an admin?") are answered by the
    role store, not by token claims, so that a revoked role takes effect on the
    next request. This adapter wraps the table queries behind small methods.

Security:
    - The supabase client must be created with the Service Role key; RLS on
      `user_roles` otherwise hides other users' rows.
    - Intended for server-side use only.
"""
from __future__ import annotations

from typing import Any

from .domain import ALLOWED_ROLES

ROLES_TABLE = "user_roles"


class RoleDirectory:
    def __init__(self, client: Any):
        self._client = client

    def has_role(self, user_id: str, role: str) -> bool:
        if role not in ALLOWED_ROLES:
            return False
        result = (
            self._client.table(ROLES_TABLE)
            .select("role")
            .eq("user_id", user_id)
            .eq("role", role)
            .limit(1)
            .execute()
        )
        return bool(getattr(result, "data", None))

    def assign_role(self, user_id: str, role: str) -> None:
        self._client.table(ROLES_TABLE).insert({"user_id": user_id, "role": role}).execute()


__all__ = ["ROLES_TABLE", "RoleDirectory"]
