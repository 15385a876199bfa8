"""
Configuration and startup security checks for the institute backend.

Why: The service holds the Supabase Service Role key (bypasses RLS) and the
payment processor secret. This module provides a single guard that enforces
minimal production safety constraints without burdening local development.

Permissions: The caller needs no special privileges. The function simply reads
environment variables and raises `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

import os


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


def current_environment() -> str:
    return (os.getenv("INSTITUTE_ENV", "dev") or "dev").strip().lower()


def supabase_configured() -> bool:
    url = (os.getenv("SUPABASE_URL") or "").strip()
    key = (os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "").strip()
    return bool(url and key)


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Intent: Abort process startup when obviously insecure settings are detected
    in production/staging. Development remains permissive for convenience.

    Checks:
    - Supabase Service Role key must be set and not a known dummy placeholder.
    - The processor secret must be set and must not be a test-mode key.
    - SUPABASE_URL and APP_BASE_URL must use https.
    """
    if not _is_prod_like(current_environment()):
        return  # dev/test remain permissive

    # 1) Supabase Service Role key
    srole = (os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "").strip()
    if not srole or srole.upper() == "DUMMY_DO_NOT_USE":
        raise SystemExit(
            "Refusing to start: SUPABASE_SERVICE_ROLE_KEY is unset or a dummy placeholder in production."
        )

    # 2) Processor secret: live key only
    stripe_key = (os.getenv("STRIPE_SECRET_KEY") or "").strip()
    if not stripe_key or stripe_key.upper().startswith("CHANGE_ME"):
        raise SystemExit("Refusing to start: STRIPE_SECRET_KEY is unset or a placeholder in production.")
    if stripe_key.startswith(("sk_test_", "rk_test_")):
        raise SystemExit("Refusing to start: STRIPE_SECRET_KEY is a test-mode key in production.")

    # 3) Endpoints must use HTTPS in production-like environments
    def _must_be_https(url_value: str, var_name: str, *, required: bool) -> None:
        val = (url_value or "").strip().lower()
        if not val:
            if required:
                raise SystemExit(f"Refusing to start: {var_name} is unset in production.")
            return
        if not val.startswith("https://"):
            raise SystemExit(f"Refusing to start: {var_name} must use https in production.")

    _must_be_https(os.getenv("SUPABASE_URL", ""), "SUPABASE_URL", required=True)
    _must_be_https(os.getenv("APP_BASE_URL", ""), "APP_BASE_URL", required=False)
