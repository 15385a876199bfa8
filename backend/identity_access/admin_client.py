"""
Supabase Auth admin client (minimal) for user provisioning.

Design:
- Framework-agnostic, callable from services and tools.
- Wraps a supabase client created with the Service Role key; callers are
  responsible for exception handling (errors from the auth API propagate).

Security:
- Do not log credentials, passwords or tokens.
- Only construct with a server-side service-role client, never the anon key.
"""

from __future__ import annotations

from typing import Any


class AdminClient:
    def __init__(self, client: Any) -> None:
        self._client = client

    @property
    def _admin(self) -> Any:
        return self._client.auth.admin

    def create_user(self, *, email: str, password: str, display_name: str | None = None) -> str:
        """Create a confirmed auth user and return its id.

        Admin-created accounts are confirmed immediately (no verification mail).
        """
        attributes: dict[str, Any] = {
            "email": email,
            "password": password,
            "email_confirm": True,
        }
        if display_name:
            attributes["user_metadata"] = {"full_name": display_name}
        response = self._admin.create_user(attributes)
        user = getattr(response, "user", None)
        if user is None and isinstance(response, dict):
            user = response.get("user")
        user_id = user.get("id") if isinstance(user, dict) else getattr(user, "id", None)
        if not user_id:
            raise ValueError("user_id_missing")
        return str(user_id)

    def delete_user(self, user_id: str) -> None:
        self._admin.delete_user(user_id)

    def user_exists(self, user_id: str) -> bool:
        """Return True when the auth user can still be fetched by id."""
        try:
            response = self._admin.get_user_by_id(user_id)
        except Exception:
            return False
        user = getattr(response, "user", None)
        if user is None and isinstance(response, dict):
            user = response.get("user")
        return user is not None
