# Request payloads and helpers shared by the test modules
from typing import Any, Dict

ADMIN_KEY = "test-admin-registration-key"
ADMIN_PHONE = "+254711000001"
ADMIN_PASSWORD = "admin-secret"


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def individual_client_payload(**overrides: Any) -> Dict[str, Any]:
    payload = {"clientType": "Individual", "firstName": "Jane", "lastName": "Doe", "phoneNumber": "+254700000000"}
    payload.update(overrides)
    return payload


def corporate_client_payload(**overrides: Any) -> Dict[str, Any]:
    payload = {"clientType": "Corporate", "companyName": "Acme Logistics", "phoneNumber": "+254722000000"}
    payload.update(overrides)
    return payload


def company_payload(**overrides: Any) -> Dict[str, Any]:
    payload = {"companyName": "Jubilee Insurance", "email": "info@jubilee.co.ke", "phoneNumber": "+254709949000"}
    payload.update(overrides)
    return payload


def premium_breakdown(total: float = 25000, sum_insured: float = 1000000, category: str = "Home") -> Dict[str, Any]:
    return {
        "policyCategory": category,
        "selectedPolicy": "Standard",
        "sumInsured": sum_insured,
        "rate": 2.5,
        "basePremium": total,
        "totalPremium": total,
    }


def risk_note_payload(client_id: str, company_id: str, **overrides: Any) -> Dict[str, Any]:
    payload = {
        "client": client_id,
        "insuranceCompany": company_id,
        "policyCategory": "Home",
        "premiumBreakdown": premium_breakdown(),
    }
    payload.update(overrides)
    return payload


def motor_risk_note_payload(client_id: str, company_id: str, **overrides: Any) -> Dict[str, Any]:
    payload = risk_note_payload(
        client_id, company_id,
        policyCategory="Motor",
        subCategory="Private",
        motorDetails={"registrationNumber": "KDA 123A", "make": "Toyota", "model": "Axio", "year": "2018"},
        premiumBreakdown=premium_breakdown(category="Motor"),
    )
    payload.update(overrides)
    return payload
