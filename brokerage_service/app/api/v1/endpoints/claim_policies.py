# API Router for Claim Policies
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from brokerage_service.app.api.dependencies import list_params
from brokerage_service.app.api.errors import http_error
from brokerage_service.app.models.claim_policy_db import ClaimPolicyCreate, ClaimStatusUpdate
from brokerage_service.app.service import claim_policies as claim_service
from brokerage_service.app.service.exceptions import BrokerageServiceError
from brokerage_service.infrastructure.database.connection import get_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/claim-policies", tags=["Claim Policies"])


@router.post("", status_code=201, summary="File a claim against a risk note")
async def create_claim_api(payload: ClaimPolicyCreate = Body(...), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        claim = await claim_service.create_claim(db, payload)
    except BrokerageServiceError as e:
        logger.warning(f"Claim creation rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": claim}


@router.get("", summary="List claims")
async def list_claims_api(params: Dict[str, str] = Depends(list_params), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        return await claim_service.list_claims(db, params)
    except BrokerageServiceError as e:
        raise http_error(e)


@router.get("/{claim_id}", summary="Get a claim with its risk note")
async def get_claim_api(claim_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        claim = await claim_service.get_claim(db, claim_id)
    except BrokerageServiceError as e:
        raise http_error(e)
    return {"success": True, "data": claim}


@router.put("/{claim_id}", summary="Update a claim")
async def update_claim_api(claim_id: str, changes: Dict[str, Any] = Body(...), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        claim = await claim_service.update_claim(db, claim_id, changes)
    except BrokerageServiceError as e:
        logger.warning(f"Update of claim {claim_id} rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": claim}


@router.patch("/{claim_id}/status", summary="Move a claim to a new status")
async def update_claim_status_api(claim_id: str, payload: ClaimStatusUpdate = Body(...), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        claim = await claim_service.update_claim_status(db, claim_id, payload.status)
    except BrokerageServiceError as e:
        logger.warning(f"Status change of claim {claim_id} rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": claim}


@router.delete("/{claim_id}", summary="Delete a claim")
async def delete_claim_api(claim_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        await claim_service.delete_claim(db, claim_id)
    except BrokerageServiceError as e:
        raise http_error(e)
    return {"success": True, "data": {}}
