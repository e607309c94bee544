import re

import pytest

from brokerage_service.tests.factories import (
    company_payload,
    individual_client_payload,
    motor_risk_note_payload,
    premium_breakdown,
    risk_note_payload,
)

RISK_NOTES = "/api/v1/risk-notes"


@pytest.fixture
def parties(api_client, admin_headers):
    client = api_client.post("/api/v1/clients", headers=admin_headers, json=individual_client_payload()).json()["data"]
    company = api_client.post("/api/v1/insurance-companies", headers=admin_headers, json=company_payload()).json()["data"]
    return client["id"], company["id"]


def _create(api_client, headers, payload):
    response = api_client.post(RISK_NOTES, headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_non_motor_note_needs_no_motor_details(api_client, admin_headers, parties):
    note = _create(api_client, admin_headers, risk_note_payload(*parties))

    assert re.fullmatch(r"PN[0-9a-z]{13}", note["policyNumber"])
    assert "motorDetails" not in note
    assert note["premiumBreakdown"]["totalPremium"] == 25000


def test_motor_note_is_accepted_with_full_details(api_client, admin_headers, parties):
    note = _create(api_client, admin_headers, motor_risk_note_payload(*parties))

    assert note["subCategory"] == "Private"
    assert note["motorDetails"]["registrationNumber"] == "KDA 123A"


def test_motor_year_given_as_a_number_is_stored_as_text(api_client, admin_headers, parties):
    details = {"registrationNumber": "KDB 456B", "make": "Mazda", "model": "Demio", "year": 2018}

    note = _create(api_client, admin_headers, motor_risk_note_payload(*parties, motorDetails=details))

    assert note["motorDetails"]["year"] == "2018"


@pytest.mark.parametrize("overrides,field", [
    ({"subCategory": None}, "subCategory"),
    ({"subCategory": "Tractor"}, "subCategory"),
    ({"motorDetails": {"registrationNumber": "KDA 123A", "make": "Toyota"}}, "motorDetails"),
    ({"motorDetails": None}, "motorDetails"),
])
def test_motor_note_rules(api_client, admin_headers, parties, overrides, field):
    response = api_client.post(RISK_NOTES, headers=admin_headers, json=motor_risk_note_payload(*parties, **overrides))

    assert response.status_code == 400
    assert field in [e["field"] for e in response.json()["errors"]]


def test_note_references_must_exist(api_client, admin_headers, parties):
    client_id, company_id = parties

    no_client = api_client.post(RISK_NOTES, headers=admin_headers, json=risk_note_payload("ghost", company_id))
    no_company = api_client.post(RISK_NOTES, headers=admin_headers, json=risk_note_payload(client_id, "ghost"))

    assert no_client.status_code == 404
    assert no_company.json()["message"] == "Insurance company not found with id of ghost"


def test_premium_breakdown_is_required(api_client, admin_headers, parties):
    payload = risk_note_payload(*parties)
    del payload["premiumBreakdown"]

    assert api_client.post(RISK_NOTES, headers=admin_headers, json=payload).status_code == 400


def test_get_note_embeds_client_and_company_contacts(api_client, admin_headers, parties):
    note = _create(api_client, admin_headers, risk_note_payload(*parties))

    data = api_client.get(f"{RISK_NOTES}/{note['id']}", headers=admin_headers).json()["data"]

    assert data["client"]["phoneNumber"] == "+254700000000"
    assert data["insuranceCompany"]["companyName"] == "Jubilee Insurance"


def test_update_switching_to_motor_is_revalidated(api_client, admin_headers, parties):
    note = _create(api_client, admin_headers, risk_note_payload(*parties))

    response = api_client.put(f"{RISK_NOTES}/{note['id']}", headers=admin_headers, json={"policyCategory": "Motor"})

    assert response.status_code == 400


def test_update_note_keeps_policy_number(api_client, admin_headers, parties):
    note = _create(api_client, admin_headers, risk_note_payload(*parties))

    response = api_client.put(f"{RISK_NOTES}/{note['id']}", headers=admin_headers, json={
        "policyNumber": "PNhijack", "riskNoteDocUrl": "notes/rn.pdf",
    })

    data = response.json()["data"]
    assert data["policyNumber"] == note["policyNumber"]
    assert data["riskNoteDocUrl"] == "notes/rn.pdf"


def test_listing_by_client_company_and_premium(api_client, admin_headers, parties):
    client_id, company_id = parties
    _create(api_client, admin_headers, risk_note_payload(client_id, company_id))
    _create(api_client, admin_headers, motor_risk_note_payload(client_id, company_id, premiumBreakdown=premium_breakdown(total=80000)))

    by_client = api_client.get(f"{RISK_NOTES}/client/{client_id}", headers=admin_headers).json()
    by_company = api_client.get(f"{RISK_NOTES}/insurance-company/{company_id}", headers=admin_headers).json()
    expensive = api_client.get(RISK_NOTES, headers=admin_headers, params={"minPremium": 50000}).json()
    by_model = api_client.get(RISK_NOTES, headers=admin_headers, params={"search": "axio"}).json()

    assert by_client["count"] == 2
    assert by_company["count"] == 2
    assert [n["policyCategory"] for n in expensive["data"]] == ["Motor"]
    assert [n["policyCategory"] for n in by_model["data"]] == ["Motor"]
    assert api_client.get(f"{RISK_NOTES}/client/ghost", headers=admin_headers).status_code == 404
    assert api_client.get(f"{RISK_NOTES}/insurance-company/ghost", headers=admin_headers).status_code == 404


def test_delete_note(api_client, admin_headers, parties):
    note = _create(api_client, admin_headers, risk_note_payload(*parties))

    assert api_client.delete(f"{RISK_NOTES}/{note['id']}", headers=admin_headers).status_code == 200
    assert api_client.get(f"{RISK_NOTES}/{note['id']}", headers=admin_headers).status_code == 404
