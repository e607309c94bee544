import pytest

from brokerage_service.app.api import access_policy
from brokerage_service.app.main import app
from brokerage_service.tests.factories import bearer, individual_client_payload


def _api_routes():
    # Full mounted paths, whatever way the routers were included
    for path, operations in app.openapi()["paths"].items():
        for method in operations:
            yield method.upper(), path


def test_every_route_has_an_access_rule():
    missing = [(m, p) for m, p in _api_routes() if access_policy.rule_for(m, p) is None]
    assert missing == []


def test_access_table_has_no_stale_entries():
    served = set(_api_routes())
    assert set(access_policy.ACCESS_RULES) <= served


@pytest.mark.parametrize("method,path,route_template,expected", [
    ("POST", "/api/v1/auth/login", "/auth/login", "/api/v1/auth/login"),
    ("POST", "/api/v1/auth/login", "/api/v1/auth/login", "/api/v1/auth/login"),
    ("GET", "/api/v1/clients/type/Corporate", "/clients/type/{client_type}", "/api/v1/clients/type/{client_type}"),
    ("GET", "/api/v1/clients/c-1/policies", None, "/api/v1/clients/{client_id}/policies"),
    ("DELETE", "/api/v1/groups/g-1/members/c-1", "/groups/{group_id}/members/{client_id}", "/api/v1/groups/{group_id}/members/{client_id}"),
])
def test_rule_resolves_from_request_path(method, path, route_template, expected):
    template, rule = access_policy.resolve_rule(method, path, route_template)

    assert template == expected
    assert rule == access_policy.ACCESS_RULES[(method, expected)]


def test_unlisted_method_resolves_to_no_rule():
    assert access_policy.resolve_rule("PATCH", "/api/v1/clients/c-1", "/clients/{client_id}") == (None, None)


def test_login_is_reachable_without_a_token(api_client):
    response = api_client.post("/api/v1/auth/login", json={"phoneNumber": "+15550000000", "password": "wrong-password"})

    # Reaches the handler: bad credentials, not an access refusal
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Invalid credentials"}


def test_protected_route_without_token_is_401(api_client):
    response = api_client.get("/api/v1/clients")

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Not authorized to access this route"}


def test_garbage_token_is_401(api_client):
    response = api_client.get("/api/v1/clients", headers=bearer("not-a-token"))
    assert response.status_code == 401


def test_token_for_deleted_user_is_401(api_client, admin_headers, user_headers, mongo_db):
    agent = user_headers("Agent")
    mongo_db.sync["users"].delete_many({"role": "Agent"})

    assert api_client.get("/api/v1/clients", headers=agent).status_code == 401


def test_support_can_read_but_not_write(api_client, user_headers):
    support = user_headers("Support")

    assert api_client.get("/api/v1/clients", headers=support).status_code == 200
    response = api_client.post("/api/v1/clients", headers=support, json=individual_client_payload())
    assert response.status_code == 403
    assert response.json()["message"] == "User role Support is not authorized to access this route"


@pytest.mark.parametrize("role,status", [("Agent", 403), ("Manager", 404), ("Admin", 404)])
def test_delete_requires_manager_or_admin(api_client, admin_headers, user_headers, role, status):
    headers = admin_headers if role == "Admin" else user_headers(role)
    assert api_client.delete("/api/v1/clients/does-not-exist", headers=headers).status_code == status


def test_only_admins_register_staff(api_client, user_headers):
    manager = user_headers("Manager")
    response = api_client.post("/api/v1/auth/register", headers=manager, json={
        "name": "Someone", "phoneNumber": "+254733000111", "password": "secret1", "role": "Agent",
    })
    assert response.status_code == 403


def test_public_routes_need_no_token(api_client):
    assert api_client.get("/health").status_code == 200
    response = api_client.post("/api/v1/auth/login", json={"phoneNumber": "+254700999999", "password": "whatever"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"
