# API Router for Insurance Applications
import logging
from typing import Dict

from fastapi import APIRouter, Body, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from brokerage_service.app.api.dependencies import list_params
from brokerage_service.app.api.errors import http_error
from brokerage_service.app.models.application_db import ApplicationCreate
from brokerage_service.app.service import applications as application_service
from brokerage_service.app.service.exceptions import BrokerageServiceError
from brokerage_service.infrastructure.database.connection import get_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/applications", tags=["Applications"])


@router.post("", status_code=201, summary="Submit an insurance application")
async def create_application_api(payload: ApplicationCreate = Body(...), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        application = await application_service.create_application(db, payload)
    except BrokerageServiceError as e:
        raise http_error(e)
    return {"success": True, "data": application}


@router.get("", summary="List insurance applications")
async def list_applications_api(params: Dict[str, str] = Depends(list_params), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        return await application_service.list_applications(db, params)
    except BrokerageServiceError as e:
        raise http_error(e)


@router.get("/{application_id}", summary="Get an insurance application")
async def get_application_api(application_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        application = await application_service.get_application(db, application_id)
    except BrokerageServiceError as e:
        raise http_error(e)
    return {"success": True, "data": application}
