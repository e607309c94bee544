# API Router for Risk Notes
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from brokerage_service.app.api.dependencies import list_params
from brokerage_service.app.api.errors import http_error
from brokerage_service.app.models.risk_note_db import RiskNoteCreate
from brokerage_service.app.service import risk_notes as risk_note_service
from brokerage_service.app.service.exceptions import BrokerageServiceError
from brokerage_service.infrastructure.database.connection import get_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/risk-notes", tags=["Risk Notes"])


@router.post("", status_code=201, summary="Create a risk note")
async def create_risk_note_api(payload: RiskNoteCreate = Body(...), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        note = await risk_note_service.create_risk_note(db, payload)
    except BrokerageServiceError as e:
        logger.warning(f"Risk note creation rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": note}


@router.get("", summary="List risk notes")
async def list_risk_notes_api(params: Dict[str, str] = Depends(list_params), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        return await risk_note_service.list_risk_notes(db, params)
    except BrokerageServiceError as e:
        raise http_error(e)


@router.get("/client/{client_id}", summary="List risk notes for a client")
async def list_client_risk_notes_api(
    client_id: str,
    params: Dict[str, str] = Depends(list_params),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await risk_note_service.list_client_risk_notes(db, client_id, params)
    except BrokerageServiceError as e:
        raise http_error(e)


@router.get("/insurance-company/{company_id}", summary="List risk notes placed with an insurance company")
async def list_company_risk_notes_api(
    company_id: str,
    params: Dict[str, str] = Depends(list_params),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await risk_note_service.list_company_risk_notes(db, company_id, params)
    except BrokerageServiceError as e:
        raise http_error(e)


@router.get("/{note_id}", summary="Get a risk note")
async def get_risk_note_api(note_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        note = await risk_note_service.get_risk_note(db, note_id)
    except BrokerageServiceError as e:
        raise http_error(e)
    return {"success": True, "data": note}


@router.put("/{note_id}", summary="Update a risk note")
async def update_risk_note_api(note_id: str, changes: Dict[str, Any] = Body(...), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        note = await risk_note_service.update_risk_note(db, note_id, changes)
    except BrokerageServiceError as e:
        logger.warning(f"Update of risk note {note_id} rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": note}


@router.delete("/{note_id}", summary="Delete a risk note")
async def delete_risk_note_api(note_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        await risk_note_service.delete_risk_note(db, note_id)
    except BrokerageServiceError as e:
        raise http_error(e)
    return {"success": True, "data": {}}
