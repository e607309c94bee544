"""
Resolves cross-entity references on a page of records.

Lookups for every record run concurrently and the first failure aborts the
whole request. Only the current page is enriched.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from brokerage_service.app.observability import tracer
from brokerage_service.infrastructure.database import collections, entity_store

logger = logging.getLogger(__name__)

# Whitelisted projections for embedded references
CLIENT_SUMMARY = {"id": 1, "firstName": 1, "lastName": 1, "companyName": 1, "clientCode": 1, "clientType": 1}
CLIENT_CONTACT = {"id": 1, "firstName": 1, "lastName": 1, "companyName": 1, "email": 1, "phoneNumber": 1}
GROUP_SUMMARY = {"id": 1, "groupName": 1, "groupCode": 1}
COMPANY_CONTACT = {"id": 1, "companyName": 1, "email": 1, "phoneNumber": 1}
COMPANY_SUMMARY = {"id": 1, "companyName": 1, "code": 1}
RISK_NOTE_SUMMARY = {
    "id": 1, "policyNumber": 1, "policyCategory": 1, "subCategory": 1,
    "client": 1, "insuranceCompany": 1, "startDate": 1, "endDate": 1,
}
CLIENT_POLICY_SUMMARY = {"id": 1, "policyNumber": 1, "policyCategory": 1, "subCategory": 1}


async def _populate(
    db: AsyncIOMotorDatabase,
    record: Dict[str, Any],
    field: str,
    collection: str,
    projection: Dict[str, int],
) -> Optional[Dict[str, Any]]:
    """Replaces the id stored under `field` with the referenced document (None when dangling)."""
    reference = record.get(field)
    if not isinstance(reference, str) or not reference:
        return None
    related = await entity_store.get_record(db, collection, reference, projection)
    if related is None:
        logger.warning(f"Dangling reference {field}={reference} on record {record.get('id')}.")
    record[field] = related
    return related


# --- Client relationships ---

async def client_groups(db: AsyncIOMotorDatabase, client_id: str) -> List[Dict[str, Any]]:
    groups = await entity_store.find_records(db, collections.GROUPS, {"members.clientId": client_id}, GROUP_SUMMARY)
    return [
        {"groupId": g["id"], "groupName": g.get("groupName"), "groupCode": g.get("groupCode")}
        for g in groups
    ]

async def client_policies(db: AsyncIOMotorDatabase, client_id: str) -> List[Dict[str, Any]]:
    notes = await entity_store.find_records(db, collections.RISK_NOTES, {"client": client_id}, CLIENT_POLICY_SUMMARY)
    # TODO: derive status from startDate/endDate and cancellation once policy lifecycle rules are agreed
    return [
        {
            "policyId": n["id"],
            "policyNumber": n.get("policyNumber"),
            "policyCategory": n.get("policyCategory"),
            "subCategory": n.get("subCategory"),
            "status": "Active",
        }
        for n in notes
    ]

async def _enrich_client(db: AsyncIOMotorDatabase, client: Dict[str, Any]) -> None:
    if not client.get("id"):
        return
    client["groups"], client["policies"] = await asyncio.gather(
        client_groups(db, client["id"]),
        client_policies(db, client["id"]),
    )

async def enrich_clients(db: AsyncIOMotorDatabase, clients: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    with tracer.start_as_current_span("enrich_clients") as span:
        span.set_attribute("enrichment.records", len(clients))
        await asyncio.gather(*(_enrich_client(db, c) for c in clients))
    return clients


# --- Group members ---

async def _populate_member(db: AsyncIOMotorDatabase, member: Dict[str, Any]) -> None:
    member["client"] = await entity_store.get_record(db, collections.CLIENTS, member.get("clientId"), CLIENT_SUMMARY)

async def enrich_groups(db: AsyncIOMotorDatabase, groups: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    with tracer.start_as_current_span("enrich_groups") as span:
        span.set_attribute("enrichment.records", len(groups))
        await asyncio.gather(*(
            _populate_member(db, member)
            for group in groups
            for member in group.get("members") or []
        ))
    return groups


# --- Policies, risk notes, claims ---

async def _enrich_policy(db: AsyncIOMotorDatabase, policy: Dict[str, Any]) -> None:
    await asyncio.gather(
        _populate(db, policy, "client", collections.CLIENTS, CLIENT_SUMMARY),
        _populate(db, policy, "group", collections.GROUPS, GROUP_SUMMARY),
    )

async def enrich_policies(db: AsyncIOMotorDatabase, policies: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    with tracer.start_as_current_span("enrich_policies") as span:
        span.set_attribute("enrichment.records", len(policies))
        await asyncio.gather(*(_enrich_policy(db, p) for p in policies))
    return policies

async def _enrich_risk_note(db: AsyncIOMotorDatabase, note: Dict[str, Any]) -> None:
    await asyncio.gather(
        _populate(db, note, "client", collections.CLIENTS, CLIENT_CONTACT),
        _populate(db, note, "insuranceCompany", collections.INSURANCE_COMPANIES, COMPANY_CONTACT),
    )

async def enrich_risk_notes(db: AsyncIOMotorDatabase, notes: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    with tracer.start_as_current_span("enrich_risk_notes") as span:
        span.set_attribute("enrichment.records", len(notes))
        await asyncio.gather(*(_enrich_risk_note(db, n) for n in notes))
    return notes

async def _enrich_claim(db: AsyncIOMotorDatabase, claim: Dict[str, Any]) -> None:
    note = await _populate(db, claim, "policyId", collections.RISK_NOTES, RISK_NOTE_SUMMARY)
    if note is None:
        return
    await asyncio.gather(
        _populate(db, note, "client", collections.CLIENTS, CLIENT_SUMMARY),
        _populate(db, note, "insuranceCompany", collections.INSURANCE_COMPANIES, COMPANY_SUMMARY),
    )

async def enrich_claims(db: AsyncIOMotorDatabase, claims: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    with tracer.start_as_current_span("enrich_claims") as span:
        span.set_attribute("enrichment.records", len(claims))
        await asyncio.gather(*(_enrich_claim(db, c) for c in claims))
    return claims
