# API Router for Policies
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from brokerage_service.app.api.dependencies import list_params
from brokerage_service.app.api.errors import http_error
from brokerage_service.app.models.policy_db import PolicyCreate, PolicyRenewal
from brokerage_service.app.service import policies as policy_service
from brokerage_service.app.service.exceptions import BrokerageServiceError
from brokerage_service.infrastructure.database.connection import get_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/policies", tags=["Policies"])


@router.post("", status_code=201, summary="Create a policy for a client or group")
async def create_policy_api(payload: PolicyCreate = Body(...), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        policy = await policy_service.create_policy(db, payload)
    except BrokerageServiceError as e:
        logger.warning(f"Policy creation rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": policy}


@router.get("", summary="List policies")
async def list_policies_api(params: Dict[str, str] = Depends(list_params), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        return await policy_service.list_policies(db, params)
    except BrokerageServiceError as e:
        raise http_error(e)


@router.get("/{policy_id}", summary="Get a policy")
async def get_policy_api(policy_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        policy = await policy_service.get_policy(db, policy_id)
    except BrokerageServiceError as e:
        raise http_error(e)
    return {"success": True, "data": policy}


@router.put("/{policy_id}", summary="Update a policy")
async def update_policy_api(policy_id: str, changes: Dict[str, Any] = Body(...), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        policy = await policy_service.update_policy(db, policy_id, changes)
    except BrokerageServiceError as e:
        logger.warning(f"Update of policy {policy_id} rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": policy}


@router.delete("/{policy_id}", summary="Delete a policy")
async def delete_policy_api(policy_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        await policy_service.delete_policy(db, policy_id)
    except BrokerageServiceError as e:
        raise http_error(e)
    return {"success": True, "data": {}}


@router.put("/{policy_id}/renew", summary="Renew a policy for a new term")
async def renew_policy_api(policy_id: str, renewal: Optional[PolicyRenewal] = Body(None), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        policy = await policy_service.renew_policy(db, policy_id, renewal or PolicyRenewal())
    except BrokerageServiceError as e:
        logger.warning(f"Renewal of policy {policy_id} rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": policy}
