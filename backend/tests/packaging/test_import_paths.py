"""Packaging sanity checks for import paths.

Ensures the namespace subpackages are importable under Docker as well as in
local test runs.
"""
from importlib import import_module

import pytest


@pytest.mark.parametrize(
    "module,attr",
    [
        ("backend.web.main", "app"),
        ("backend.web.wiring", "build_services"),
        ("backend.provisioning.service", "ProvisioningService"),
        ("backend.payments.service", "CheckoutService"),
        ("backend.payments.stripe_gateway", "StripeCheckoutGateway"),
        ("backend.identity_access.tokens", "SupabaseTokenVerifier"),
    ],
)
def test_import_backend_modules(module, attr):
    mod = import_module(module)
    assert hasattr(mod, attr)
