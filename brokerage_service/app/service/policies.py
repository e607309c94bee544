# Policy operations
import datetime
import logging
from typing import Any, Dict, Mapping, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from brokerage_service.app.models.policy_db import PolicyCreate, PolicyDB, PolicyRenewal, PolicyStatus
from brokerage_service.app.service import records
from brokerage_service.app.service.code_generator import generate_policy_number, insert_with_unique_code
from brokerage_service.app.service.enrichment import enrich_policies
from brokerage_service.app.service.exceptions import EntityNotFoundError
from brokerage_service.app.service.listing import fetch_page
from brokerage_service.app.service.query_builder import QueryConfig, build_query
from brokerage_service.app.service.validation import ensure_valid, policy_holder_errors
from brokerage_service.infrastructure.database import collections, entity_store

logger = logging.getLogger(__name__)

ENTITY = "Policy"

POLICY_QUERY = QueryConfig(
    search_fields=("policyNumber", "insuredItem", "description"),
    date_ranges={
        "created": "createdAt",
        "updated": "updatedAt",
        "startDate": "startDate",
        "endDate": "endDate",
    },
    numeric_ranges={"Premium": "premium"},
)


async def _ensure_holders_exist(db: AsyncIOMotorDatabase, client: Optional[str], group: Optional[str]) -> None:
    ensure_valid(policy_holder_errors(client, group))
    if client and not await entity_store.record_exists(db, collections.CLIENTS, {"id": client}):
        raise EntityNotFoundError("Client", client)
    if group and not await entity_store.record_exists(db, collections.GROUPS, {"id": group}):
        raise EntityNotFoundError("Group", group)


def one_year_after(moment: datetime.datetime) -> datetime.datetime:
    try:
        return moment.replace(year=moment.year + 1)
    except ValueError:
        # 29 February
        return moment.replace(year=moment.year + 1, day=28)


async def create_policy(db: AsyncIOMotorDatabase, payload: PolicyCreate) -> Dict[str, Any]:
    await _ensure_holders_exist(db, payload.client, payload.group)
    policy = PolicyDB(**payload.model_dump())
    document = await insert_with_unique_code(
        db, collections.POLICIES, policy.to_document(), "policyNumber",
        lambda: generate_policy_number(policy.policy_type),
    )
    return records.record_created(ENTITY, document)


async def get_policy(db: AsyncIOMotorDatabase, policy_id: str) -> Dict[str, Any]:
    policy = await records.load_or_404(db, collections.POLICIES, ENTITY, policy_id, records.DETAIL_PROJECTION)
    await enrich_policies(db, [policy])
    return policy


async def update_policy(db: AsyncIOMotorDatabase, policy_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    existing = await records.load_or_404(db, collections.POLICIES, ENTITY, policy_id)
    policy = records.merged_model(existing, changes, PolicyDB, protected=("policyNumber",))
    if policy.client != existing.get("client") or policy.group != existing.get("group"):
        await _ensure_holders_exist(db, policy.client, policy.group)
    else:
        ensure_valid(policy_holder_errors(policy.client, policy.group))
    updated = await records.save_update(db, collections.POLICIES, ENTITY, existing, policy)
    await enrich_policies(db, [updated])
    return updated


async def delete_policy(db: AsyncIOMotorDatabase, policy_id: str) -> None:
    await records.delete_or_404(db, collections.POLICIES, ENTITY, policy_id)


async def list_policies(db: AsyncIOMotorDatabase, params: Mapping[str, str], base_clause: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    spec = build_query(params, POLICY_QUERY)
    if base_clause:
        spec.add_clause(base_clause)
    return await fetch_page(db, collections.POLICIES, spec, enrich=enrich_policies)


async def list_client_policies(db: AsyncIOMotorDatabase, client_id: str, params: Mapping[str, str]) -> Dict[str, Any]:
    await records.load_or_404(db, collections.CLIENTS, "Client", client_id, {"id": 1})
    return await list_policies(db, params, base_clause={"client": client_id})


async def list_group_policies(db: AsyncIOMotorDatabase, group_id: str, params: Mapping[str, str]) -> Dict[str, Any]:
    await records.load_or_404(db, collections.GROUPS, "Group", group_id, {"id": 1})
    return await list_policies(db, params, base_clause={"group": group_id})


async def renew_policy(db: AsyncIOMotorDatabase, policy_id: str, renewal: PolicyRenewal) -> Dict[str, Any]:
    """
    Starts a new term for the policy and marks it Active.

    Without explicit dates the new term begins the day after the current one ends
    and runs for one year. The premium only changes when a new one is supplied.
    """
    existing = await records.load_or_404(db, collections.POLICIES, ENTITY, policy_id)
    current = records.merged_model(existing, {}, PolicyDB)
    start_date = renewal.new_start_date or current.end_date + datetime.timedelta(days=1)
    end_date = renewal.new_end_date or one_year_after(start_date)
    changes: Dict[str, Any] = {
        "startDate": start_date,
        "endDate": end_date,
        "status": PolicyStatus.ACTIVE.value,
    }
    if renewal.new_premium:
        changes["premium"] = renewal.new_premium
    policy = records.merged_model(existing, changes, PolicyDB, protected=("policyNumber",))
    renewed = await records.save_update(db, collections.POLICIES, ENTITY, existing, policy)
    logger.info(f"Policy {renewed.get('policyNumber')} renewed until {end_date:%Y-%m-%d}.")
    await enrich_policies(db, [renewed])
    return renewed
