# API Router for Groups
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from brokerage_service.app.api.dependencies import list_params
from brokerage_service.app.api.errors import http_error
from brokerage_service.app.models.base import CamelModel
from brokerage_service.app.models.group_db import GroupCreate
from brokerage_service.app.service import groups as group_service
from brokerage_service.app.service import policies as policy_service
from brokerage_service.app.service.exceptions import BrokerageServiceError
from brokerage_service.infrastructure.database.connection import get_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/groups", tags=["Groups"])


class AddMemberRequest(CamelModel):
    client_id: Optional[str] = None
    client_type: Optional[str] = None


@router.post("", status_code=201, summary="Create a group")
async def create_group_api(payload: GroupCreate = Body(...), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        group = await group_service.create_group(db, payload)
    except BrokerageServiceError as e:
        logger.warning(f"Group creation rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": group}


@router.get("", summary="List groups")
async def list_groups_api(params: Dict[str, str] = Depends(list_params), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        return await group_service.list_groups(db, params)
    except BrokerageServiceError as e:
        raise http_error(e)


@router.get("/{group_id}", summary="Get a group with its members")
async def get_group_api(group_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        group = await group_service.get_group(db, group_id)
    except BrokerageServiceError as e:
        raise http_error(e)
    return {"success": True, "data": group}


@router.put("/{group_id}", summary="Update a group")
async def update_group_api(group_id: str, changes: Dict[str, Any] = Body(...), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        group = await group_service.update_group(db, group_id, changes)
    except BrokerageServiceError as e:
        logger.warning(f"Update of group {group_id} rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": group}


@router.delete("/{group_id}", summary="Delete a group")
async def delete_group_api(group_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        await group_service.delete_group(db, group_id)
    except BrokerageServiceError as e:
        raise http_error(e)
    return {"success": True, "data": {}}


@router.post("/{group_id}/members", summary="Add a client to a group")
async def add_member_api(group_id: str, payload: AddMemberRequest = Body(...), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        group = await group_service.add_member(db, group_id, payload.client_id, payload.client_type)
    except BrokerageServiceError as e:
        logger.warning(f"Adding member to group {group_id} rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": group}


@router.delete("/{group_id}/members/{client_id}", summary="Remove a client from a group")
async def remove_member_api(group_id: str, client_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        group = await group_service.remove_member(db, group_id, client_id)
    except BrokerageServiceError as e:
        logger.warning(f"Removing member {client_id} from group {group_id} rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": group}


@router.get("/{group_id}/policies", summary="List policies held by a group")
async def list_group_policies_api(
    group_id: str,
    params: Dict[str, str] = Depends(list_params),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await policy_service.list_group_policies(db, group_id, params)
    except BrokerageServiceError as e:
        raise http_error(e)
