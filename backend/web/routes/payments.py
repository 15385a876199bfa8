"""
Payments API routes: hosted checkout for course batches.

Why:
    Students enrol in a batch by paying through the processor's hosted
    checkout. The frontend posts only the batch id; the amount is derived
    server-side from the batch row.

Permissions:
    Any authenticated identity with an email address.
"""
from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Request

from backend.identity_access.tokens import CallerResolutionError
from backend.payments.service import BatchNotFoundError, PaymentSessionError, parse_batch_id

from .. import wiring
from .security import error_response, private_json, read_json_body, request_bearer

payments_router = APIRouter(tags=["Payments"])  # explicit path below
logger = logging.getLogger("institute.web.payments")

ERRORS: dict[str, tuple[int, str]] = {
    "invalid_payload": (400, "Request body must be a JSON object"),
    "missing_batch_id": (400, "Missing required field: batch_id"),
    "invalid_batch_id": (400, "Invalid batch_id format"),
    "missing_token": (401, "No authorization header provided"),
    "invalid_token": (401, "User not authenticated"),
    "email_unavailable": (401, "User not authenticated or email not available"),
    "batch_not_found": (404, "Invalid or inactive batch"),
    "invalid_batch_fee": (409, "Invalid batch fee amount"),
    "payment_not_configured": (500, "Payment service is not configured"),
    "batch_lookup_failed": (500, "Could not load batch"),
    "processor_error": (500, "Payment provider error"),
    "service_unavailable": (500, "Payment service is not configured"),
    "internal_error": (500, "Internal server error"),
}


@payments_router.post("/functions/v1/create-course-payment")
async def create_course_payment(request: Request):
    """Open a hosted checkout session for a batch and return its URL.

    Request body: ``{"batch_id": "<uuid>"}``. Any other field (including an
    amount) is ignored. Malformed ids fail with 400 before authentication or
    any external call.
    """
    body = await read_json_body(request)
    try:
        if not isinstance(body, dict):
            raise ValueError("invalid_payload")
        batch_id = parse_batch_id(body.get("batch_id"))
        token = request_bearer(request)
        if not token:
            raise CallerResolutionError("missing_token")
        services = wiring.get_services()
        if services is None:
            return error_response("service_unavailable", ERRORS)
        caller = await asyncio.to_thread(services.verifier.resolve_caller, token)
        session = await asyncio.to_thread(
            services.checkout.create_session, caller, batch_id, origin=request.headers.get("origin")
        )
    except ValueError as exc:
        return error_response(str(exc), ERRORS, fallback="invalid_payload")
    except CallerResolutionError as exc:
        return error_response(exc.code, ERRORS, fallback="invalid_token")
    except BatchNotFoundError:
        return error_response("batch_not_found", ERRORS)
    except PaymentSessionError as exc:
        logger.error("create-course-payment failed: code=%s detail=%s", exc.code, exc.detail)
        return error_response(exc.code, ERRORS)
    except Exception:
        logger.exception("create-course-payment failed unexpectedly")
        return error_response("internal_error", ERRORS)

    return private_json({"url": session.url})
