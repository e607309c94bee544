"""
Claim policy operations.

Claims reference a risk note through `policyId`. List filters on the risk note's
policy number are resolved to a set of note ids before the claim query runs.
"""
import logging
from typing import Any, Dict, Mapping

from motor.motor_asyncio import AsyncIOMotorDatabase

from brokerage_service.app.models.claim_policy_db import ClaimPolicyCreate, ClaimPolicyDB, ClaimStatus
from brokerage_service.app.service import records
from brokerage_service.app.service.code_generator import generate_claim_number, insert_with_unique_code
from brokerage_service.app.service.enrichment import enrich_claims
from brokerage_service.app.service.exceptions import EntityNotFoundError, EntityValidationError
from brokerage_service.app.service.listing import fetch_page
from brokerage_service.app.service.query_builder import QueryConfig, QuerySpec, build_query, substring_clause
from brokerage_service.infrastructure.database import collections, entity_store

logger = logging.getLogger(__name__)

ENTITY = "Claim policy"

CLAIM_QUERY = QueryConfig(
    search_fields=("claimNumber", "vehicle.registrationNumber", "vehicle.makeModel", "driver.fullName"),
    derived_keys=("policyNumber", "registrationNumber", "driverName"),
)


async def _ensure_risk_note_exists(db: AsyncIOMotorDatabase, note_id: str) -> None:
    if not await entity_store.record_exists(db, collections.RISK_NOTES, {"id": note_id}):
        raise EntityNotFoundError("Risk note", note_id, message="The referenced risk note does not exist")


async def create_claim(db: AsyncIOMotorDatabase, payload: ClaimPolicyCreate) -> Dict[str, Any]:
    await _ensure_risk_note_exists(db, payload.policy_id)
    claim = ClaimPolicyDB(**payload.model_dump())
    document = await insert_with_unique_code(
        db, collections.CLAIM_POLICIES, claim.to_document(), "claimNumber",
        lambda: generate_claim_number(db),
    )
    return records.record_created(ENTITY, document)


async def get_claim(db: AsyncIOMotorDatabase, claim_id: str) -> Dict[str, Any]:
    claim = await records.load_or_404(db, collections.CLAIM_POLICIES, ENTITY, claim_id, records.DETAIL_PROJECTION)
    await enrich_claims(db, [claim])
    return claim


async def update_claim(db: AsyncIOMotorDatabase, claim_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    existing = await records.load_or_404(db, collections.CLAIM_POLICIES, ENTITY, claim_id)
    claim = records.merged_model(existing, changes, ClaimPolicyDB, protected=("claimNumber",))
    if claim.policy_id != existing.get("policyId"):
        await _ensure_risk_note_exists(db, claim.policy_id)
    return await records.save_update(db, collections.CLAIM_POLICIES, ENTITY, existing, claim)


async def update_claim_status(db: AsyncIOMotorDatabase, claim_id: str, status: str) -> Dict[str, Any]:
    allowed = [s.value for s in ClaimStatus]
    if status not in allowed:
        raise EntityValidationError.single("status", f"Status must be one of: {', '.join(allowed)}")
    updated = await update_claim(db, claim_id, {"status": status})
    logger.info(f"Claim {updated.get('claimNumber')} moved to status {status}.")
    return updated


async def delete_claim(db: AsyncIOMotorDatabase, claim_id: str) -> None:
    await records.delete_or_404(db, collections.CLAIM_POLICIES, ENTITY, claim_id)


async def _apply_claim_filters(db: AsyncIOMotorDatabase, spec: QuerySpec) -> None:
    policy_number = spec.derived.get("policyNumber")
    if policy_number:
        note_ids = await entity_store.distinct_values(
            db, collections.RISK_NOTES, "id", substring_clause("policyNumber", policy_number),
        )
        if note_ids:
            spec.add_clause({"policyId": {"$in": note_ids}})
        else:
            spec.match_nothing()
    if spec.derived.get("registrationNumber"):
        spec.add_clause(substring_clause("vehicle.registrationNumber", spec.derived["registrationNumber"]))
    if spec.derived.get("driverName"):
        spec.add_clause(substring_clause("driver.fullName", spec.derived["driverName"]))


async def list_claims(db: AsyncIOMotorDatabase, params: Mapping[str, str]) -> Dict[str, Any]:
    spec = build_query(params, CLAIM_QUERY)
    await _apply_claim_filters(db, spec)
    return await fetch_page(db, collections.CLAIM_POLICIES, spec, enrich=enrich_claims)
