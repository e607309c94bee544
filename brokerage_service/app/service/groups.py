# Group operations and membership
import logging
from typing import Any, Dict, List, Mapping, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from brokerage_service.app.models.base import utc_now
from brokerage_service.app.models.group_db import GroupCreate, GroupDB, GroupMember, MemberClientType
from brokerage_service.app.service import records
from brokerage_service.app.service.code_generator import generate_group_code, insert_with_unique_code
from brokerage_service.app.service.enrichment import enrich_groups
from brokerage_service.app.service.exceptions import DuplicateEntityError, EntityNotFoundError, EntityValidationError
from brokerage_service.app.service.listing import fetch_page
from brokerage_service.app.service.query_builder import QueryConfig, build_query
from brokerage_service.infrastructure.database import collections, entity_store

logger = logging.getLogger(__name__)

ENTITY = "Group"

GROUP_QUERY = QueryConfig(search_fields=("groupName", "description", "groupCode"))


async def _ensure_members_exist(db: AsyncIOMotorDatabase, members: List[GroupMember]) -> None:
    seen = set()
    for member in members:
        if member.client_id in seen:
            raise DuplicateEntityError("Client is already a member of this group", field="members")
        seen.add(member.client_id)
        if not await entity_store.record_exists(db, collections.CLIENTS, {"id": member.client_id}):
            raise EntityNotFoundError("Client", member.client_id)


async def create_group(db: AsyncIOMotorDatabase, payload: GroupCreate) -> Dict[str, Any]:
    await _ensure_members_exist(db, payload.members)
    group = GroupDB(**payload.model_dump())
    document = await insert_with_unique_code(db, collections.GROUPS, group.to_document(), "groupCode", generate_group_code)
    return records.record_created(ENTITY, document)


async def get_group(db: AsyncIOMotorDatabase, group_id: str) -> Dict[str, Any]:
    group = await records.load_or_404(db, collections.GROUPS, ENTITY, group_id, records.DETAIL_PROJECTION)
    await enrich_groups(db, [group])
    return group


async def update_group(db: AsyncIOMotorDatabase, group_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    existing = await records.load_or_404(db, collections.GROUPS, ENTITY, group_id)
    group = records.merged_model(existing, changes, GroupDB, protected=("groupCode",))
    if "members" in changes:
        await _ensure_members_exist(db, group.members)
    return await records.save_update(db, collections.GROUPS, ENTITY, existing, group)


async def delete_group(db: AsyncIOMotorDatabase, group_id: str) -> None:
    await records.delete_or_404(db, collections.GROUPS, ENTITY, group_id)


async def list_groups(db: AsyncIOMotorDatabase, params: Mapping[str, str]) -> Dict[str, Any]:
    spec = build_query(params, GROUP_QUERY)
    return await fetch_page(db, collections.GROUPS, spec)


async def add_member(db: AsyncIOMotorDatabase, group_id: str, client_id: Optional[str], client_type: Optional[str]) -> Dict[str, Any]:
    """
    Adds a client to the group. The push only matches groups that do not already
    list the client, so two concurrent adds cannot both succeed.
    """
    if not client_id or not client_type:
        raise EntityValidationError([
            {"field": name, "message": f"{name} is required"}
            for name, value in (("clientId", client_id), ("clientType", client_type)) if not value
        ])
    member_type = client_type.lower()
    if member_type not in {t.value for t in MemberClientType}:
        raise EntityValidationError.single("clientType", "clientType must be one of: individual, corporate")

    await records.load_or_404(db, collections.GROUPS, ENTITY, group_id, {"id": 1})
    if not await entity_store.record_exists(db, collections.CLIENTS, {"id": client_id}):
        raise EntityNotFoundError("Client", client_id)

    updated = await entity_store.update_record(
        db, collections.GROUPS,
        {"id": group_id, "members.clientId": {"$ne": client_id}},
        {
            "$push": {"members": {"clientId": client_id, "clientType": member_type}},
            "$set": {"updatedAt": utc_now()},
            "$inc": {"version": 1},
        },
    )
    if updated is None:
        raise DuplicateEntityError("Client is already a member of this group", field="clientId")
    logger.info(f"Client {client_id} added to group {group_id}.")
    return records.public_record(updated)


async def remove_member(db: AsyncIOMotorDatabase, group_id: str, client_id: str) -> Dict[str, Any]:
    await records.load_or_404(db, collections.GROUPS, ENTITY, group_id, {"id": 1})
    updated = await entity_store.update_record(
        db, collections.GROUPS,
        {"id": group_id, "members.clientId": client_id},
        {
            "$pull": {"members": {"clientId": client_id}},
            "$set": {"updatedAt": utc_now()},
            "$inc": {"version": 1},
        },
    )
    if updated is None:
        raise EntityValidationError.single("clientId", "Client is not a member of this group")
    logger.info(f"Client {client_id} removed from group {group_id}.")
    return records.public_record(updated)
