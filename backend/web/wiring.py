"""
Shared helper for wiring the Supabase- and Stripe-backed services.

Why:
    App startup may occur before Supabase is reachable locally, or before the
    environment is complete. This module builds the service bundle lazily and
    idempotently: at startup when configuration is present, otherwise on the
    first request that needs it. Tests inject fakes via `set_services`.

Security:
    Requires SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY. STRIPE_SECRET_KEY is
    optional at wiring time; checkout reports `payment_not_configured` without
    it. No secrets are logged or exposed to clients.
"""
from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Optional, Protocol

from backend.identity_access.admin_client import AdminClient
from backend.identity_access.directory import RoleDirectory
from backend.identity_access.domain import Caller
from backend.identity_access.tokens import SupabaseTokenVerifier
from backend.payments.config import CheckoutSettings, get_stripe_api_version, get_stripe_secret_key
from backend.payments.repo_supabase import SupabaseBatchRepo
from backend.payments.service import CheckoutService
from backend.provisioning.repo_supabase import SupabaseAccountsRepo
from backend.provisioning.service import ProvisioningService

logger = logging.getLogger("institute.web")


class CallerResolverProtocol(Protocol):
    def resolve_caller(self, token: str | None) -> Caller:
        ...


@dataclass
class Services:
    verifier: CallerResolverProtocol
    provisioning: ProvisioningService
    checkout: CheckoutService


_SERVICES: Optional[Services] = None
_LOCK = threading.Lock()


def set_services(services: Optional[Services]) -> None:
    """Inject a service bundle (tests) or reset with None."""
    global _SERVICES
    with _LOCK:
        _SERVICES = services


def build_services(supabase_client, *, stripe_key: str | None = None, stripe_version: str | None = None) -> Services:
    """Assemble the services around one service-role supabase client."""
    processor = None
    if stripe_key:
        from backend.payments.stripe_gateway import StripeCheckoutGateway

        processor = StripeCheckoutGateway(stripe_key, api_version=stripe_version)

    return Services(
        verifier=SupabaseTokenVerifier(supabase_client),
        provisioning=ProvisioningService(
            identities=AdminClient(supabase_client),
            roles=RoleDirectory(supabase_client),
            accounts=SupabaseAccountsRepo(supabase_client),
        ),
        checkout=CheckoutService(
            batches=SupabaseBatchRepo(supabase_client),
            processor=processor,
            settings=CheckoutSettings.from_env(),
        ),
    )


def wire_services_if_configured() -> bool:
    """Attempt to build and install the service bundle from environment.

    Behavior:
        - Returns True when services are wired (already or now).
        - Returns False when not configured or client creation fails.
        - Safe and idempotent to call multiple times.
    """
    global _SERVICES
    if _SERVICES is not None:
        return True
    url = (os.getenv("SUPABASE_URL") or "").strip()
    key = (os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "").strip()
    if not url or not key:
        return False

    from supabase import create_client

    with _LOCK:
        if _SERVICES is not None:
            return True
        try:
            client = create_client(url, key)
        except Exception as exc:
            logger.warning("Supabase client unavailable: %s: %s", exc.__class__.__name__, str(exc))
            return False
        stripe_key = get_stripe_secret_key()
        if not stripe_key:
            logger.warning("STRIPE_SECRET_KEY not set; checkout will report payment_not_configured")
        _SERVICES = build_services(client, stripe_key=stripe_key, stripe_version=get_stripe_api_version())
    logger.info("Services wired: Supabase%s", " + Stripe" if stripe_key else "")
    return True


def get_services() -> Optional[Services]:
    """Return the wired bundle, attempting lazy wiring when still unset."""
    if _SERVICES is None:
        wire_services_if_configured()
    return _SERVICES


__all__ = ["Services", "set_services", "build_services", "wire_services_if_configured", "get_services"]
