"""Operations endpoints (liveness and configuration diagnostics)."""

from __future__ import annotations

from fastapi import APIRouter

from backend.payments.config import get_stripe_secret_key

from ..config import current_environment, supabase_configured
from .security import private_json

operations_router = APIRouter(tags=["Operations"])


@operations_router.get("/health")
async def health():
    """
    Return liveness plus configuration flags.

    Only booleans are reported; no URLs, keys or versions leave the process.
    """
    body = {
        "status": "ok",
        "environment": current_environment(),
        "checks": {
            "supabase_configured": supabase_configured(),
            "payments_configured": get_stripe_secret_key() is not None,
        },
    }
    return private_json(body)
