import re

import pytest

from brokerage_service.tests.factories import company_payload, individual_client_payload, motor_risk_note_payload

CLAIMS = "/api/v1/claim-policies"


@pytest.fixture
def risk_note(api_client, admin_headers):
    client = api_client.post("/api/v1/clients", headers=admin_headers, json=individual_client_payload()).json()["data"]
    company = api_client.post("/api/v1/insurance-companies", headers=admin_headers, json=company_payload()).json()["data"]
    response = api_client.post("/api/v1/risk-notes", headers=admin_headers, json=motor_risk_note_payload(client["id"], company["id"]))
    assert response.status_code == 201, response.text
    return response.json()["data"]


def _claim_payload(policy_id, **overrides):
    payload = {
        "policyId": policy_id,
        "claimType": "Accident",
        "vehicle": {"registrationNumber": "KDA 123A", "makeModel": "Toyota Axio"},
        "driver": {"fullName": "Peter Kamau", "licenseType": "Full"},
        "accidentDetails": {"place": "Thika Road", "roadSurface": "Wet"},
    }
    payload.update(overrides)
    return payload


def _create(api_client, headers, policy_id, **overrides):
    response = api_client.post(CLAIMS, headers=headers, json=_claim_payload(policy_id, **overrides))
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_claim_numbers_are_sequential_within_the_month(api_client, admin_headers, risk_note):
    first = _create(api_client, admin_headers, risk_note["id"])
    second = _create(api_client, admin_headers, risk_note["id"])

    assert re.fullmatch(r"CL\d{4}\d{5}", first["claimNumber"])
    assert first["claimNumber"][:6] == second["claimNumber"][:6]
    assert int(second["claimNumber"][6:]) == int(first["claimNumber"][6:]) + 1
    assert first["status"] == "Draft"


def test_claim_against_unknown_risk_note_is_404(api_client, admin_headers):
    response = api_client.post(CLAIMS, headers=admin_headers, json=_claim_payload("ghost"))

    assert response.status_code == 404
    assert response.json()["message"] == "The referenced risk note does not exist"


def test_numeric_vehicle_fields_are_stored_as_text(api_client, admin_headers, risk_note):
    vehicle = {"registrationNumber": "KDA 123A", "makeModel": "Toyota Axio", "yearOfManufacture": 2016, "carryingCapacity": 5}

    claim = _create(api_client, admin_headers, risk_note["id"], vehicle=vehicle)

    assert claim["vehicle"]["yearOfManufacture"] == "2016"
    assert claim["vehicle"]["carryingCapacity"] == "5"


def test_claim_enums_are_validated(api_client, admin_headers, risk_note):
    response = api_client.post(CLAIMS, headers=admin_headers, json=_claim_payload(risk_note["id"], claimType="Flood"))
    assert response.status_code == 400


def test_get_claim_embeds_risk_note_chain(api_client, admin_headers, risk_note):
    claim = _create(api_client, admin_headers, risk_note["id"])

    data = api_client.get(f"{CLAIMS}/{claim['id']}", headers=admin_headers).json()["data"]

    note = data["policyId"]
    assert note["policyNumber"] == risk_note["policyNumber"]
    assert note["client"]["firstName"] == "Jane"
    assert note["insuranceCompany"]["companyName"] == "Jubilee Insurance"


def test_patch_status(api_client, admin_headers, risk_note):
    claim = _create(api_client, admin_headers, risk_note["id"])
    url = f"{CLAIMS}/{claim['id']}/status"

    moved = api_client.patch(url, headers=admin_headers, json={"status": "Submitted"})
    invalid = api_client.patch(url, headers=admin_headers, json={"status": "Paid"})
    missing = api_client.patch(f"{CLAIMS}/ghost/status", headers=admin_headers, json={"status": "Approved"})

    assert moved.status_code == 200
    assert moved.json()["data"]["status"] == "Submitted"
    assert moved.json()["data"]["claimNumber"] == claim["claimNumber"]
    assert invalid.status_code == 400
    assert invalid.json()["message"].startswith("Status must be one of: Draft, Submitted")
    assert missing.status_code == 404


def test_update_claim_keeps_number(api_client, admin_headers, risk_note):
    claim = _create(api_client, admin_headers, risk_note["id"])

    response = api_client.put(f"{CLAIMS}/{claim['id']}", headers=admin_headers, json={
        "claimNumber": "CL000000000", "declarationAccepted": True,
    })

    data = response.json()["data"]
    assert data["claimNumber"] == claim["claimNumber"]
    assert data["declarationAccepted"] is True


def test_list_filters_by_risk_note_policy_number(api_client, admin_headers, risk_note):
    _create(api_client, admin_headers, risk_note["id"])
    _create(api_client, admin_headers, risk_note["id"], driver={"fullName": "Mary Njeri"})

    by_note = api_client.get(CLAIMS, headers=admin_headers, params={"policyNumber": risk_note["policyNumber"][:6]}).json()
    no_match = api_client.get(CLAIMS, headers=admin_headers, params={"policyNumber": "does-not-exist"}).json()
    by_driver = api_client.get(CLAIMS, headers=admin_headers, params={"driverName": "njeri"}).json()
    by_plate = api_client.get(CLAIMS, headers=admin_headers, params={"registrationNumber": "kda 123"}).json()

    assert by_note["count"] == 2
    assert no_match["count"] == 0
    assert no_match["data"] == []
    assert [c["driver"]["fullName"] for c in by_driver["data"]] == ["Mary Njeri"]
    assert by_plate["count"] == 2


def test_delete_claim(api_client, admin_headers, risk_note):
    claim = _create(api_client, admin_headers, risk_note["id"])

    assert api_client.delete(f"{CLAIMS}/{claim['id']}", headers=admin_headers).json() == {"success": True, "data": {}}
    assert api_client.get(f"{CLAIMS}/{claim['id']}", headers=admin_headers).status_code == 404
