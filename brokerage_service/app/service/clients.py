# Client operations
import logging
from typing import Any, Dict, List, Mapping, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from brokerage_service.app.models.base import utc_now
from brokerage_service.app.models.client_db import ClientCreate, ClientDB, ClientType
from brokerage_service.app.service import records
from brokerage_service.app.service.code_generator import generate_client_code, insert_with_unique_code
from brokerage_service.app.service.enrichment import enrich_clients
from brokerage_service.app.service.exceptions import DuplicateEntityError, EntityNotFoundError, EntityValidationError
from brokerage_service.app.service.listing import fetch_page
from brokerage_service.app.service.query_builder import QueryConfig, QuerySpec, build_query, to_bool
from brokerage_service.app.service.validation import client_errors, ensure_valid
from brokerage_service.infrastructure.database import collections, entity_store

logger = logging.getLogger(__name__)

ENTITY = "Client"

CLIENT_QUERY = QueryConfig(
    search_fields=("firstName", "middleName", "lastName", "companyName", "clientCode", "email", "phoneNumber"),
    date_ranges={"created": "createdAt", "updated": "updatedAt", "dob": "dateOfBirth"},
    derived_keys=("policyType", "groupId"),
    virtual_sort_keys=("name", "group"),
    coercions={"isGroup": to_bool},
)


async def _ensure_phone_available(db: AsyncIOMotorDatabase, phone_number: Optional[str], exclude_id: Optional[str] = None) -> None:
    if not phone_number:
        return
    query: Dict[str, Any] = {"phoneNumber": phone_number}
    if exclude_id:
        query["id"] = {"$ne": exclude_id}
    if await entity_store.record_exists(db, collections.CLIENTS, query):
        raise DuplicateEntityError("A client with this phone number already exists", field="phoneNumber")


async def create_client(db: AsyncIOMotorDatabase, payload: ClientCreate) -> Dict[str, Any]:
    ensure_valid(client_errors(payload.client_type, payload.first_name, payload.last_name, payload.company_name))
    await _ensure_phone_available(db, payload.phone_number)
    client = ClientDB(**payload.model_dump())
    document = await insert_with_unique_code(
        db, collections.CLIENTS, client.to_document(), "clientCode",
        lambda: generate_client_code(client.client_type),
    )
    return records.record_created(ENTITY, document)


async def get_client(db: AsyncIOMotorDatabase, client_id: str) -> Dict[str, Any]:
    client = await records.load_or_404(db, collections.CLIENTS, ENTITY, client_id, records.DETAIL_PROJECTION)
    await enrich_clients(db, [client])
    return client


async def update_client(db: AsyncIOMotorDatabase, client_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    existing = await records.load_or_404(db, collections.CLIENTS, ENTITY, client_id)
    client = records.merged_model(existing, changes, ClientDB, protected=("clientCode",))
    ensure_valid(client_errors(client.client_type, client.first_name, client.last_name, client.company_name))
    if client.phone_number != existing.get("phoneNumber"):
        await _ensure_phone_available(db, client.phone_number, exclude_id=client_id)
    return await records.save_update(db, collections.CLIENTS, ENTITY, existing, client)


async def delete_client(db: AsyncIOMotorDatabase, client_id: str) -> None:
    # References from groups, policies and risk notes are left in place
    await records.delete_or_404(db, collections.CLIENTS, ENTITY, client_id)


async def _apply_cross_entity_filters(db: AsyncIOMotorDatabase, spec: QuerySpec) -> None:
    policy_type = spec.derived.get("policyType")
    if policy_type:
        client_ids = await entity_store.distinct_values(db, collections.RISK_NOTES, "client", {"policyCategory": policy_type})
        spec.add_clause({"id": {"$in": client_ids}})
    group_id = spec.derived.get("groupId")
    if group_id:
        group = await entity_store.get_record(db, collections.GROUPS, group_id, {"members": 1})
        member_ids = [m.get("clientId") for m in (group or {}).get("members") or []]
        spec.add_clause({"id": {"$in": member_ids}})


async def list_clients(db: AsyncIOMotorDatabase, params: Mapping[str, str], base_clause: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    spec = build_query(params, CLIENT_QUERY)
    if base_clause:
        spec.add_clause(base_clause)
    await _apply_cross_entity_filters(db, spec)
    return await fetch_page(db, collections.CLIENTS, spec, enrich=enrich_clients)


async def list_clients_by_type(db: AsyncIOMotorDatabase, client_type: str, params: Mapping[str, str]) -> Dict[str, Any]:
    allowed = [t.value for t in ClientType]
    if client_type not in allowed:
        raise EntityValidationError.single("type", f"Invalid client type. Must be one of: {', '.join(allowed)}")
    return await list_clients(db, params, base_clause={"clientType": client_type})


async def add_kyc_documents(db: AsyncIOMotorDatabase, client_id: str, documents: List[str]) -> Dict[str, Any]:
    """Appends uploaded KYC document references to the client."""
    await records.load_or_404(db, collections.CLIENTS, ENTITY, client_id, {"id": 1})
    documents = [d for d in documents if d]
    if not documents:
        raise EntityValidationError.single("documents", "No files were uploaded")
    updated = await entity_store.update_record(
        db, collections.CLIENTS, {"id": client_id},
        {
            "$push": {"kycDocuments": {"$each": documents}},
            "$set": {"updatedAt": utc_now()},
            "$inc": {"version": 1},
        },
    )
    if updated is None:
        raise EntityNotFoundError(ENTITY, client_id)
    logger.info(f"Added {len(documents)} KYC documents to client {client_id}.")
    return records.public_record(updated)
