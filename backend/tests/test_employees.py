"""
Tests für /api/v1/employees – Anlegen, RBAC, GET /me.
"""
import uuid
import pytest
from tests.conftest import auth_headers, make_employee

EMPLOYEES_URL = "/api/v1/employees"

EMP_PAYLOAD = {
    "first_name": "Anna",
    "last_name": "Müller",
    "email": "anna@test.de",
}


# ── POST /employees ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_employee_admin(client, admin_token, admin_user, tenant):
    resp = await client.post(EMPLOYEES_URL, json=EMP_PAYLOAD, headers=auth_headers(admin_token))
    assert resp.status_code == 201
    data = resp.json()
    assert data["first_name"] == "Anna"
    assert data["last_name"] == "Müller"
    assert data["tenant_id"] == str(tenant.id)
    assert data["is_active"] is True


@pytest.mark.asyncio
async def test_create_employee_links_account(client, manager_token, manager_user, employee_user):
    payload = {**EMP_PAYLOAD, "user_id": str(employee_user.id)}
    resp = await client.post(EMPLOYEES_URL, json=payload, headers=auth_headers(manager_token))
    assert resp.status_code == 201
    assert resp.json()["user_id"] == str(employee_user.id)


@pytest.mark.asyncio
async def test_create_employee_unknown_account(client, admin_token, admin_user):
    payload = {**EMP_PAYLOAD, "user_id": str(uuid.uuid4())}
    resp = await client.post(EMPLOYEES_URL, json=payload, headers=auth_headers(admin_token))
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_create_employee_employee_role_forbidden(client, employee_token, employee_user, tenant):
    resp = await client.post(EMPLOYEES_URL, json=EMP_PAYLOAD, headers=auth_headers(employee_token))
    assert resp.status_code == 403


# ── GET /employees ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_list_employees_own_tenant_only(client, db, admin_token, admin_user, tenant, other_tenant):
    await make_employee(db, tenant, first_name="Hier")
    await make_employee(db, other_tenant, first_name="Dort")

    resp = await client.get(EMPLOYEES_URL, headers=auth_headers(admin_token))
    assert resp.status_code == 200
    assert [e["first_name"] for e in resp.json()] == ["Hier"]


@pytest.mark.asyncio
async def test_list_employees_forbidden_for_employee(client, employee_token, employee_user):
    resp = await client.get(EMPLOYEES_URL, headers=auth_headers(employee_token))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_employee_sees_only_own_record(client, db, tenant, employee, employee_token):
    colleague = await make_employee(db, tenant, first_name="Max")

    own = await client.get(f"{EMPLOYEES_URL}/{employee.id}", headers=auth_headers(employee_token))
    assert own.status_code == 200

    other = await client.get(f"{EMPLOYEES_URL}/{colleague.id}", headers=auth_headers(employee_token))
    assert other.status_code == 403


# ── GET /employees/me ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_get_own_employee_linked(client, employee, employee_token):
    resp = await client.get(f"{EMPLOYEES_URL}/me", headers=auth_headers(employee_token))
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == str(employee.id)
    assert data["first_name"] == "Erika"


@pytest.mark.asyncio
async def test_get_own_employee_not_linked(client, admin_user, admin_token):
    resp = await client.get(f"{EMPLOYEES_URL}/me", headers=auth_headers(admin_token))
    assert resp.status_code == 404
