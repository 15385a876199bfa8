"""
Create-user endpoint: status codes, error shape, headers and side effects.

Drives the FastAPI app through httpx's ASGI transport with the service bundle
wired over the in-memory Supabase fake.
"""
from __future__ import annotations

import logging

import httpx
import pytest
from httpx import ASGITransport

from backend.web import main  # type: ignore

pytestmark = pytest.mark.anyio("asyncio")

URL = "/functions/v1/create-user"
ADMIN_TOKEN = "admin-token"
TEACHER_TOKEN = "teacher-token"


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test")


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def db(fake_supabase, services):
    fake_supabase.add_identity(email="admin@institute.test", roles=("admin",), token=ADMIN_TOKEN)
    fake_supabase.add_identity(email="teach@institute.test", roles=("teacher",), token=TEACHER_TOKEN)
    fake_supabase.calls.clear()
    return fake_supabase


def _student(**overrides):
    body = {"email": "s1@x.com", "password": "pw123456", "full_name": "Stu One", "role": "student"}
    body.update(overrides)
    return body


async def test_admin_creates_student(db):
    async with _client() as c:
        r = await c.post(URL, json=_student(), headers=_auth(ADMIN_TOKEN))

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "User created successfully"
    user_id = body["user_id"]
    assert db.rows("profiles", user_id=user_id)[0]["full_name"] == "Stu One"
    assert db.rows("user_roles", user_id=user_id)[0]["role"] == "student"
    assert db.rows("students", user_id=user_id)[0]["student_id"].startswith("STU-")
    assert r.headers.get("Cache-Control") == "private, no-store"


async def test_missing_token_is_401_without_side_effects(db):
    async with _client() as c:
        r = await c.post(URL, json=_student())

    assert r.status_code == 401
    assert r.json() == {"error": "Authorization header required", "code": "missing_token"}
    assert r.headers.get("Cache-Control") == "private, no-store"
    assert db.writes() == []


@pytest.mark.parametrize("header", ["Basic abc", "Bearer", "Bearer    ", "Token admin-token"])
async def test_malformed_authorization_header_is_401(db, header):
    async with _client() as c:
        r = await c.post(URL, json=_student(), headers={"Authorization": header})

    assert r.status_code == 401
    assert r.json()["code"] == "missing_token"


async def test_lowercase_bearer_scheme_is_accepted(db):
    async with _client() as c:
        r = await c.post(URL, json=_student(), headers={"Authorization": f"bearer {ADMIN_TOKEN}"})

    assert r.status_code == 200


async def test_invalid_token_is_401(db):
    async with _client() as c:
        r = await c.post(URL, json=_student(), headers=_auth("expired-or-forged"))

    assert r.status_code == 401
    assert r.json()["code"] == "invalid_token"
    assert db.writes() == []


async def test_non_admin_is_403_with_zero_rows(db):
    async with _client() as c:
        r = await c.post(URL, json=_student(), headers=_auth(TEACHER_TOKEN))

    assert r.status_code == 403
    assert r.json() == {"error": "Only admins can create users", "code": "forbidden"}
    assert db.writes() == []
    assert db.rows("profiles") == []


async def test_non_admin_with_bad_payload_still_gets_403(db):
    async with _client() as c:
        r = await c.post(URL, content=b"not json", headers=_auth(TEACHER_TOKEN))

    assert r.status_code == 403


async def test_employee_role_without_branch_is_400(db):
    async with _client() as c:
        r = await c.post(URL, json=_student(role="sales"), headers=_auth(ADMIN_TOKEN))

    assert r.status_code == 400
    assert r.json() == {"error": "Branch is required for this role", "code": "branch_required"}
    assert db.writes() == []


async def test_missing_fields_is_400(db):
    async with _client() as c:
        r = await c.post(URL, json={"email": "x@y.com"}, headers=_auth(ADMIN_TOKEN))

    assert r.status_code == 400
    assert r.json()["code"] == "missing_required_fields"
    assert r.json()["error"] == "Email, password, full_name, and role are required"


@pytest.mark.parametrize("content", [b"", b"{broken", b"[1, 2]"])
async def test_unparseable_or_non_object_body_is_400(db, content):
    headers = {**_auth(ADMIN_TOKEN), "Content-Type": "application/json"}
    async with _client() as c:
        r = await c.post(URL, content=content, headers=headers)

    assert r.status_code == 400
    assert r.json()["code"] == "invalid_payload"


async def test_unknown_role_is_400(db):
    async with _client() as c:
        r = await c.post(URL, json=_student(role="principal"), headers=_auth(ADMIN_TOKEN))

    assert r.status_code == 400
    assert r.json()["code"] == "invalid_role"


async def test_duplicate_email_is_400(db):
    async with _client() as c:
        first = await c.post(URL, json=_student(), headers=_auth(ADMIN_TOKEN))
        second = await c.post(URL, json=_student(email="S1@X.com"), headers=_auth(ADMIN_TOKEN))

    assert first.status_code == 200
    assert second.status_code == 400
    assert second.json()["code"] == "identity_create_failed"
    assert "already been registered" not in second.text


async def test_profile_failure_is_500_with_safe_message_and_rollback(db, caplog):
    db.fail_on.add(("insert", "profiles"))
    users_before = set(db.users)

    with caplog.at_level(logging.ERROR, logger="institute.web.users"):
        async with _client() as c:
            r = await c.post(URL, json=_student(), headers=_auth(ADMIN_TOKEN))

    assert r.status_code == 500
    assert r.json() == {"error": "Failed to create profile", "code": "profile_create_failed"}
    assert "rejected" not in r.text
    assert set(db.users) == users_before
    assert "insert on profiles rejected" in caplog.text


async def test_role_failure_is_500_and_removes_partial_account(db):
    db.fail_on.add(("insert", "user_roles"))
    users_before = set(db.users)

    async with _client() as c:
        r = await c.post(URL, json=_student(), headers=_auth(ADMIN_TOKEN))

    assert r.status_code == 500
    assert r.json()["code"] == "role_assign_failed"
    assert set(db.users) == users_before
    assert db.rows("profiles") == []


async def test_student_record_failure_still_succeeds(db):
    db.fail_on.add(("insert", "students"))

    async with _client() as c:
        r = await c.post(URL, json=_student(), headers=_auth(ADMIN_TOKEN))

    assert r.status_code == 200
    assert r.json()["user_id"] in db.users


async def test_unwired_services_is_500(fake_supabase):
    async with _client() as c:
        r = await c.post(URL, json=_student(), headers=_auth(ADMIN_TOKEN))

    assert r.status_code == 500
    assert r.json()["code"] == "service_unavailable"


async def test_cors_preflight_allows_function_headers():
    headers = {
        "Origin": "https://academy.example.com",
        "Access-Control-Request-Method": "POST",
        "Access-Control-Request-Headers": "authorization, x-client-info, apikey, content-type",
    }
    async with _client() as c:
        r = await c.options(URL, headers=headers)

    assert r.status_code == 200
    assert r.headers.get("access-control-allow-origin") == "*"
    allowed = r.headers.get("access-control-allow-headers", "").lower()
    for name in ("authorization", "x-client-info", "apikey", "content-type"):
        assert name in allowed


async def test_error_responses_carry_cors_header(db):
    async with _client() as c:
        r = await c.post(URL, json=_student(), headers={"Origin": "https://academy.example.com"})

    assert r.status_code == 401
    assert r.headers.get("access-control-allow-origin") == "*"
