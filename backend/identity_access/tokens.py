"""
Bearer token helpers for the identity_access bounded context.

Why: Keep caller resolution outside the web adapter so that the provisioning
and payment services can be unit tested with a fake auth client, and the
routes only deal with HTTP concerns.

Security: Access tokens are validated by Supabase Auth (`GET /auth/v1/user`)
rather than locally. Tokens are never logged; failures are reported with a
stable code only.
"""
from __future__ import annotations

import logging
from typing import Any

from .domain import Caller

logger = logging.getLogger("institute.identity")


class CallerResolutionError(Exception):
    """Raised when a bearer credential cannot be resolved to an identity."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an `Authorization: Bearer <token>` header.

    Returns None for missing headers, other schemes or an empty token. The
    scheme comparison is case-insensitive.
    """
    if not authorization or not isinstance(authorization, str):
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


def _field(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


class SupabaseTokenVerifier:
    """Resolve access tokens through a supabase client's auth API.

    The client is duck-typed: it must expose `.auth.get_user(jwt)` returning an
    object (or dict) with a `user` member carrying `id` and `email`.
    """

    def __init__(self, client: Any):
        self._client = client

    def resolve_caller(self, token: str | None) -> Caller:
        if not token:
            raise CallerResolutionError("missing_token")
        try:
            response = self._client.auth.get_user(token)
        except Exception as exc:
            logger.info("Caller resolution failed: %s", exc.__class__.__name__)
            raise CallerResolutionError("invalid_token") from exc
        user = _field(response, "user")
        user_id = _field(user, "id")
        if not user_id:
            raise CallerResolutionError("invalid_token")
        email = _field(user, "email")
        return Caller(user_id=str(user_id), email=str(email) if email else None)


__all__ = ["CallerResolutionError", "bearer_token", "SupabaseTokenVerifier"]
