"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend to avoid sandbox restrictions
that can affect the Trio backend (e.g., socketpair permission errors), and
keep unit tests hermetic: credentials exported in the developer shell must
never reach a live Supabase project or the payment processor.
"""
import os
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
TESTS_DIR = Path(__file__).resolve().parent
for _p in (REPO_ROOT, TESTS_DIR):
    if str(_p) not in sys.path:
        sys.path.insert(0, str(_p))

_LIVE_ENV_VARS = (
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_ANON_KEY",
    "STRIPE_SECRET_KEY",
    "STRIPE_API_VERSION",
    "CHECKOUT_CURRENCY",
    "APP_BASE_URL",
)


def _ensure_test_env_defaults() -> None:
    """Strip live credentials before the app module is imported.

    `backend.web.main` wires services at import time; with the variables
    removed it stays unwired and tests inject fakes explicitly.
    """
    if os.getenv("RUN_E2E", "0") == "1":
        return
    os.environ["INSTITUTE_ENV"] = "test"
    for var in _LIVE_ENV_VARS:
        os.environ.pop(var, None)


_ensure_test_env_defaults()

from utils.fake_processor import FakeProcessor  # noqa: E402
from utils.fake_supabase import FakeSupabase  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _reset_wired_services():
    """Ensure no service bundle leaks from one test into the next."""
    from backend.web import wiring

    wiring.set_services(None)
    yield
    wiring.set_services(None)


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def fake_processor() -> FakeProcessor:
    return FakeProcessor()


@pytest.fixture
def services(fake_supabase: FakeSupabase, fake_processor: FakeProcessor):
    """Install a service bundle over the fakes and return it."""
    from backend.web import wiring

    bundle = wiring.build_services(fake_supabase)
    bundle.checkout.processor = fake_processor
    wiring.set_services(bundle)
    return bundle
