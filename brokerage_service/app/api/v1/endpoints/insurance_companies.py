# API Router for Insurance Companies
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from brokerage_service.app.api.dependencies import list_params
from brokerage_service.app.api.errors import http_error
from brokerage_service.app.models.insurance_company_db import CompanyKycDocuments, InsuranceCompanyCreate
from brokerage_service.app.service import insurance_companies as company_service
from brokerage_service.app.service.exceptions import BrokerageServiceError
from brokerage_service.infrastructure.database.connection import get_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/insurance-companies", tags=["Insurance Companies"])


@router.post("", status_code=201, summary="Register an insurance company")
async def create_company_api(payload: InsuranceCompanyCreate = Body(...), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        company = await company_service.create_company(db, payload)
    except BrokerageServiceError as e:
        logger.warning(f"Insurance company creation rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": company}


@router.get("", summary="List insurance companies")
async def list_companies_api(params: Dict[str, str] = Depends(list_params), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        return await company_service.list_companies(db, params)
    except BrokerageServiceError as e:
        raise http_error(e)


@router.get("/{company_id}", summary="Get an insurance company")
async def get_company_api(company_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        company = await company_service.get_company(db, company_id)
    except BrokerageServiceError as e:
        raise http_error(e)
    return {"success": True, "data": company}


@router.put("/{company_id}", summary="Update an insurance company")
async def update_company_api(company_id: str, changes: Dict[str, Any] = Body(...), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        company = await company_service.update_company(db, company_id, changes)
    except BrokerageServiceError as e:
        logger.warning(f"Update of insurance company {company_id} rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": company}


@router.delete("/{company_id}", summary="Delete an insurance company")
async def delete_company_api(company_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        await company_service.delete_company(db, company_id)
    except BrokerageServiceError as e:
        raise http_error(e)
    return {"success": True, "data": {}}


@router.post("/{company_id}/kyc", summary="Attach KYC document references to an insurance company")
async def upload_company_kyc_api(company_id: str, documents: CompanyKycDocuments = Body(...), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        company = await company_service.upload_kyc_documents(db, company_id, documents)
    except BrokerageServiceError as e:
        logger.warning(f"KYC upload for insurance company {company_id} rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": company}
