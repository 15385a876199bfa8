"""
Centralized checkout configuration.

Intent:
    Single source of truth for the processor credentials, the currency used
    for line items and the application routes the hosted checkout redirects
    back to.

Behavior:
    - Getters read environment overrides on every call with sane fallbacks, so
      tests can use `monkeypatch.setenv` without reloading modules.
    - `CheckoutSettings.from_env()` snapshots the values for a service instance.

Permissions:
    Pure configuration; no external calls or privileges required.
"""
from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_CURRENCY = "inr"
DEFAULT_APP_BASE_URL = "http://localhost:5173"
SUCCESS_PATH = "/dashboard/courses"
CANCEL_PATH = "/dashboard/browse"


def get_checkout_currency() -> str:
    """Return the ISO currency code (lower case) for checkout line items.

    Env:
        CHECKOUT_CURRENCY: optional override; defaults to DEFAULT_CURRENCY.
    """
    return ((os.getenv("CHECKOUT_CURRENCY") or DEFAULT_CURRENCY).strip() or DEFAULT_CURRENCY).lower()


def get_app_base_url() -> str:
    """Return the frontend origin used when a request carries no Origin header.

    Env:
        APP_BASE_URL: optional override; defaults to DEFAULT_APP_BASE_URL.
    """
    return ((os.getenv("APP_BASE_URL") or DEFAULT_APP_BASE_URL).strip() or DEFAULT_APP_BASE_URL).rstrip("/")


def get_stripe_secret_key() -> str | None:
    value = (os.getenv("STRIPE_SECRET_KEY") or "").strip()
    return value or None


def get_stripe_api_version() -> str | None:
    """Pinned processor API version; None keeps the library default."""
    value = (os.getenv("STRIPE_API_VERSION") or "").strip()
    return value or None


@dataclass(frozen=True)
class CheckoutSettings:
    currency: str = DEFAULT_CURRENCY
    app_base_url: str = DEFAULT_APP_BASE_URL

    @classmethod
    def from_env(cls) -> CheckoutSettings:
        return cls(currency=get_checkout_currency(), app_base_url=get_app_base_url())


__all__ = [
    "DEFAULT_CURRENCY",
    "DEFAULT_APP_BASE_URL",
    "SUCCESS_PATH",
    "CANCEL_PATH",
    "get_checkout_currency",
    "get_app_base_url",
    "get_stripe_secret_key",
    "get_stripe_api_version",
    "CheckoutSettings",
]
