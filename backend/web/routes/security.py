"""
Shared web helpers for the function routes.

Contains the bearer extraction, JSON body reading and error response shape
used by both the provisioning and the payment adapters.
"""
from __future__ import annotations

import json
from typing import Any, Mapping

from fastapi import Request
from fastapi.responses import JSONResponse

from backend.identity_access.tokens import bearer_token


def private_json(body: dict, *, status_code: int = 200) -> JSONResponse:
    return JSONResponse(body, status_code=status_code, headers={"Cache-Control": "private, no-store"})


def request_bearer(request: Request) -> str | None:
    return bearer_token(request.headers.get("authorization"))


async def read_json_body(request: Request) -> Any:
    """Decode the request body; None when it is empty or not valid JSON."""
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None


def error_response(code: str, catalog: Mapping[str, tuple[int, str]], *, fallback: str = "internal_error") -> JSONResponse:
    """Map a stable error code to its status and safe message.

    Body: ``{"error": <message>, "code": <code>}``. Unknown codes collapse to
    `fallback` so that no internal text reaches the client.
    """
    if code not in catalog:
        code = fallback
    status_code, message = catalog[code]
    return private_json({"error": message, "code": code}, status_code=status_code)


__all__ = ["private_json", "request_bearer", "read_json_body", "error_response"]
