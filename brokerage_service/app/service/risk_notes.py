# Risk note operations
import logging
from typing import Any, Dict, Mapping, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from brokerage_service.app.models.risk_note_db import RiskNoteCreate, RiskNoteDB
from brokerage_service.app.service import records
from brokerage_service.app.service.code_generator import generate_risk_note_number, insert_with_unique_code
from brokerage_service.app.service.enrichment import enrich_risk_notes
from brokerage_service.app.service.exceptions import EntityNotFoundError
from brokerage_service.app.service.listing import fetch_page
from brokerage_service.app.service.query_builder import QueryConfig, build_query
from brokerage_service.app.service.validation import ensure_valid, motor_errors
from brokerage_service.infrastructure.database import collections, entity_store

logger = logging.getLogger(__name__)

ENTITY = "Risk note"

RISK_NOTE_QUERY = QueryConfig(
    search_fields=(
        "policyNumber",
        "policyCategory",
        "subCategory",
        "motorDetails.registrationNumber",
        "motorDetails.make",
        "motorDetails.model",
    ),
    date_ranges={
        "created": "createdAt",
        "updated": "updatedAt",
        "startDate": "startDate",
        "endDate": "endDate",
    },
    numeric_ranges={
        "Premium": "premiumBreakdown.totalPremium",
        "SumInsured": "premiumBreakdown.sumInsured",
    },
)


async def _ensure_references_exist(db: AsyncIOMotorDatabase, client: str, insurance_company: str) -> None:
    if not await entity_store.record_exists(db, collections.CLIENTS, {"id": client}):
        raise EntityNotFoundError("Client", client)
    if not await entity_store.record_exists(db, collections.INSURANCE_COMPANIES, {"id": insurance_company}):
        raise EntityNotFoundError("Insurance company", insurance_company)


def _validate_note(note: RiskNoteCreate) -> None:
    ensure_valid(motor_errors(note.policy_category, note.sub_category, note.motor_details))


async def create_risk_note(db: AsyncIOMotorDatabase, payload: RiskNoteCreate) -> Dict[str, Any]:
    _validate_note(payload)
    await _ensure_references_exist(db, payload.client, payload.insurance_company)
    note = RiskNoteDB(**payload.model_dump())
    document = await insert_with_unique_code(
        db, collections.RISK_NOTES, note.to_document(), "policyNumber", generate_risk_note_number,
    )
    return records.record_created(ENTITY, document)


async def get_risk_note(db: AsyncIOMotorDatabase, note_id: str) -> Dict[str, Any]:
    note = await records.load_or_404(db, collections.RISK_NOTES, ENTITY, note_id, records.DETAIL_PROJECTION)
    await enrich_risk_notes(db, [note])
    return note


async def update_risk_note(db: AsyncIOMotorDatabase, note_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    existing = await records.load_or_404(db, collections.RISK_NOTES, ENTITY, note_id)
    note = records.merged_model(existing, changes, RiskNoteDB, protected=("policyNumber",))
    _validate_note(note)
    if note.client != existing.get("client") or note.insurance_company != existing.get("insuranceCompany"):
        await _ensure_references_exist(db, note.client, note.insurance_company)
    return await records.save_update(db, collections.RISK_NOTES, ENTITY, existing, note)


async def delete_risk_note(db: AsyncIOMotorDatabase, note_id: str) -> None:
    # Claims filed against the note keep their policyId
    await records.delete_or_404(db, collections.RISK_NOTES, ENTITY, note_id)


async def list_risk_notes(db: AsyncIOMotorDatabase, params: Mapping[str, str], base_clause: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    spec = build_query(params, RISK_NOTE_QUERY)
    if base_clause:
        spec.add_clause(base_clause)
    return await fetch_page(db, collections.RISK_NOTES, spec, enrich=enrich_risk_notes)


async def list_client_risk_notes(db: AsyncIOMotorDatabase, client_id: str, params: Mapping[str, str]) -> Dict[str, Any]:
    await records.load_or_404(db, collections.CLIENTS, "Client", client_id, {"id": 1})
    return await list_risk_notes(db, params, base_clause={"client": client_id})


async def list_company_risk_notes(db: AsyncIOMotorDatabase, company_id: str, params: Mapping[str, str]) -> Dict[str, Any]:
    await records.load_or_404(db, collections.INSURANCE_COMPANIES, "Insurance company", company_id, {"id": 1})
    return await list_risk_notes(db, params, base_clause={"insuranceCompany": company_id})
