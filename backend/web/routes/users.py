"""
Users API routes: admin-driven account creation.

Why:
    Admins create staff (branch admins, teachers, sales, support) and student
    accounts from the dashboard. The frontend invokes this endpoint under the
    Supabase Functions path (`/functions/v1/create-user`).

Permissions:
    Caller must present a bearer access token of an identity holding the
    `admin` role.
"""
from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Request

from backend.identity_access.tokens import CallerResolutionError
from backend.provisioning.service import ProvisioningError

from .. import wiring
from .security import error_response, private_json, read_json_body, request_bearer

users_router = APIRouter(tags=["Users"])  # explicit path below
logger = logging.getLogger("institute.web.users")

ERRORS: dict[str, tuple[int, str]] = {
    "missing_token": (401, "Authorization header required"),
    "invalid_token": (401, "Invalid authentication"),
    "forbidden": (403, "Only admins can create users"),
    "invalid_payload": (400, "Request body must be a JSON object with valid field types"),
    "missing_required_fields": (400, "Email, password, full_name, and role are required"),
    "invalid_role": (400, "Unknown role"),
    "branch_required": (400, "Branch is required for this role"),
    "identity_create_failed": (400, "Could not create the login (the email may already be registered)"),
    "profile_create_failed": (500, "Failed to create profile"),
    "role_assign_failed": (500, "Failed to assign role"),
    "service_unavailable": (500, "User service is not configured"),
    "internal_error": (500, "Internal server error"),
}


@users_router.post("/functions/v1/create-user")
async def create_user(request: Request):
    """Create a login identity with profile, role and role-specific record.

    Validation order: 401 (no/invalid token) -> 403 (not admin) -> 400
    (payload). Structural failures return 500 after the partial account has
    been removed; employee/student record failures still return 200.
    """
    token = request_bearer(request)
    if not token:
        return error_response("missing_token", ERRORS)
    services = wiring.get_services()
    if services is None:
        return error_response("service_unavailable", ERRORS)

    payload = await read_json_body(request)
    try:
        caller = await asyncio.to_thread(services.verifier.resolve_caller, token)
        account = await asyncio.to_thread(services.provisioning.create_user, caller, payload)
    except CallerResolutionError as exc:
        return error_response(exc.code, ERRORS, fallback="invalid_token")
    except PermissionError:
        return error_response("forbidden", ERRORS)
    except ValueError as exc:
        return error_response(str(exc), ERRORS, fallback="invalid_payload")
    except ProvisioningError as exc:
        logger.error("create-user failed: code=%s detail=%s", exc.code, exc.detail)
        return error_response(exc.code, ERRORS)
    except Exception:
        logger.exception("create-user failed unexpectedly")
        return error_response("internal_error", ERRORS)

    return private_json(
        {
            "success": True,
            "message": "User created successfully",
            "user_id": account.user_id,
        }
    )
