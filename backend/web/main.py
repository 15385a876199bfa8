"Coaching institute backend"
from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.web import config as _cfg
from backend.web.routes.operations import operations_router
from backend.web.routes.payments import payments_router
from backend.web.routes.users import users_router
from backend.web.wiring import wire_services_if_configured


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out via INSTITUTE_ENABLE_DOTENV (default true
      outside pytest).
    """
    # Under pytest, do not load .env; tests provide their own env.
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("INSTITUTE_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    load_dotenv()

# Minimal production safety checks (fail-fast on insecure config)
_cfg.ensure_secure_config_on_startup()

logger = logging.getLogger("institute.web")

# Headers the browser client sends with function invocations.
CORS_ALLOW_HEADERS = [
    "authorization",
    "x-client-info",
    "apikey",
    "content-type",
    "x-supabase-client-platform",
    "x-supabase-client-platform-version",
    "x-supabase-client-runtime",
    "x-supabase-client-runtime-version",
]

app = FastAPI(
    title="Coaching institute backend",
    description="Account provisioning and course checkout",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=CORS_ALLOW_HEADERS,
)

app.include_router(operations_router)
app.include_router(users_router)
app.include_router(payments_router)

# Routes retry lazily when wiring fails here (e.g., local Supabase still starting).
if not wire_services_if_configured():
    logger.info("Services not wired at startup; will retry on first request")
