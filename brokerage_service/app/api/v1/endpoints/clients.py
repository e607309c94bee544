# API Router for Clients
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import Field

from brokerage_service.app.api.dependencies import list_params
from brokerage_service.app.api.errors import http_error
from brokerage_service.app.models.base import CamelModel
from brokerage_service.app.models.client_db import ClientCreate
from brokerage_service.app.service import clients as client_service
from brokerage_service.app.service import policies as policy_service
from brokerage_service.app.service.exceptions import BrokerageServiceError
from brokerage_service.infrastructure.database.connection import get_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/clients", tags=["Clients"])


class KycDocumentsRequest(CamelModel):
    documents: List[str] = Field(default_factory=list)


@router.post("", status_code=201, summary="Create a client")
async def create_client_api(payload: ClientCreate = Body(...), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        client = await client_service.create_client(db, payload)
    except BrokerageServiceError as e:
        logger.warning(f"Client creation rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": client}


@router.get("", summary="List clients")
async def list_clients_api(params: Dict[str, str] = Depends(list_params), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        return await client_service.list_clients(db, params)
    except BrokerageServiceError as e:
        raise http_error(e)


@router.get("/type/{client_type}", summary="List clients of one type")
async def list_clients_by_type_api(
    client_type: str,
    params: Dict[str, str] = Depends(list_params),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await client_service.list_clients_by_type(db, client_type, params)
    except BrokerageServiceError as e:
        raise http_error(e)


@router.get("/{client_id}", summary="Get a client with its groups and policies")
async def get_client_api(client_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        client = await client_service.get_client(db, client_id)
    except BrokerageServiceError as e:
        raise http_error(e)
    return {"success": True, "data": client}


@router.put("/{client_id}", summary="Update a client")
async def update_client_api(client_id: str, changes: Dict[str, Any] = Body(...), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        client = await client_service.update_client(db, client_id, changes)
    except BrokerageServiceError as e:
        logger.warning(f"Update of client {client_id} rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": client}


@router.delete("/{client_id}", summary="Delete a client")
async def delete_client_api(client_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        await client_service.delete_client(db, client_id)
    except BrokerageServiceError as e:
        raise http_error(e)
    return {"success": True, "data": {}}


@router.post("/{client_id}/kyc", summary="Attach KYC document references to a client")
async def upload_client_kyc_api(client_id: str, payload: KycDocumentsRequest = Body(...), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        client = await client_service.add_kyc_documents(db, client_id, payload.documents)
    except BrokerageServiceError as e:
        logger.warning(f"KYC upload for client {client_id} rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": client}


@router.get("/{client_id}/policies", summary="List policies held by a client")
async def list_client_policies_api(
    client_id: str,
    params: Dict[str, str] = Depends(list_params),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await policy_service.list_client_policies(db, client_id, params)
    except BrokerageServiceError as e:
        raise http_error(e)
