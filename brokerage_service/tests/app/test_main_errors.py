import asyncio

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError

from brokerage_service.app.config import settings
from brokerage_service.app.main import app
from brokerage_service.app.service import clients as client_service
from brokerage_service.tests.factories import individual_client_payload


@pytest.fixture
def lenient_client(api_client):
    # Shares the database override installed by api_client
    return TestClient(app, raise_server_exceptions=False)


def test_unexpected_error_becomes_500_envelope(lenient_client, admin_headers, mocker):
    mocker.patch.object(client_service, "list_clients", side_effect=RuntimeError("boom"))

    response = lenient_client.get("/api/v1/clients", headers=admin_headers)

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Internal Server Error", "error": "boom"}


def test_production_hides_error_detail(lenient_client, admin_headers, mocker, monkeypatch):
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")
    mocker.patch.object(client_service, "list_clients", side_effect=RuntimeError("boom"))

    response = lenient_client.get("/api/v1/clients", headers=admin_headers)

    assert response.json() == {"success": False, "message": "Internal Server Error"}


def test_store_duplicate_becomes_400(api_client, admin_headers, mocker):
    duplicate = DuplicateKeyError("E11000", code=11000, details={"keyPattern": {"phoneNumber": 1}})
    mocker.patch.object(client_service, "create_client", side_effect=duplicate)

    response = api_client.post("/api/v1/clients", headers=admin_headers, json=individual_client_payload())

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Duplicate value for phoneNumber"}


def test_malformed_body_is_400_with_field_errors(api_client, admin_headers):
    response = api_client.post("/api/v1/clients", headers=admin_headers, json={"firstName": "NoType"})

    body = response.json()
    assert response.status_code == 400
    assert body["message"] == "Validation failed"
    assert any(error["field"] == "clientType" for error in body["errors"])


def test_slow_request_times_out(api_client, admin_headers, mocker, monkeypatch):
    async def slow_listing(db, params):
        await asyncio.sleep(0.5)
        return {"success": True, "data": []}

    monkeypatch.setattr(settings, "REQUEST_TIMEOUT_SECONDS", 0.05)
    mocker.patch.object(client_service, "list_clients", side_effect=slow_listing)

    response = api_client.get("/api/v1/clients", headers=admin_headers)

    assert response.status_code == 504
    assert response.json() == {"success": False, "message": "Request timed out"}


def test_unknown_path_is_404_envelope(api_client):
    response = api_client.get("/api/v1/nothing-here")

    assert response.status_code == 404
    assert response.json()["success"] is False
