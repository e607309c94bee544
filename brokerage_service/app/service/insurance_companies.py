# Insurance company operations
import logging
import re
from typing import Any, Dict, Mapping, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from brokerage_service.app.models.client_db import KycStatus
from brokerage_service.app.models.insurance_company_db import (
    CompanyKycDocuments,
    InsuranceCompanyCreate,
    InsuranceCompanyDB,
)
from brokerage_service.app.service import records
from brokerage_service.app.service.code_generator import generate_company_code, insert_with_unique_code
from brokerage_service.app.service.exceptions import DuplicateEntityError, EntityValidationError
from brokerage_service.app.service.listing import fetch_page
from brokerage_service.app.service.query_builder import QueryConfig, build_query
from brokerage_service.infrastructure.database import collections, entity_store

logger = logging.getLogger(__name__)

ENTITY = "Insurance company"

COMPANY_QUERY = QueryConfig(
    search_fields=("companyName", "code", "phoneNumber", "email", "contactPersons.name", "branches.name"),
)


async def _ensure_name_available(db: AsyncIOMotorDatabase, company_name: str, exclude_id: Optional[str] = None) -> None:
    # Exact name, case-insensitive
    query: Dict[str, Any] = {"companyName": {"$regex": f"^{re.escape(company_name)}$", "$options": "i"}}
    if exclude_id:
        query["id"] = {"$ne": exclude_id}
    if await entity_store.record_exists(db, collections.INSURANCE_COMPANIES, query):
        raise DuplicateEntityError("A company with this name already exists", field="companyName")


def derive_kyc_status(documents: CompanyKycDocuments, current: str) -> str:
    """A complete document bundle moves an incomplete company into review."""
    if documents.is_complete() and current == KycStatus.INCOMPLETE.value:
        return KycStatus.PENDING.value
    return current


async def create_company(db: AsyncIOMotorDatabase, payload: InsuranceCompanyCreate) -> Dict[str, Any]:
    await _ensure_name_available(db, payload.company_name)
    company = InsuranceCompanyDB(**payload.model_dump())
    company.kyc_status = derive_kyc_status(company.kyc_documents, company.kyc_status)
    document = await insert_with_unique_code(
        db, collections.INSURANCE_COMPANIES, company.to_document(), "code",
        lambda: generate_company_code(company.company_name),
    )
    return records.record_created(ENTITY, document)


async def get_company(db: AsyncIOMotorDatabase, company_id: str) -> Dict[str, Any]:
    return await records.load_or_404(db, collections.INSURANCE_COMPANIES, ENTITY, company_id, records.DETAIL_PROJECTION)


async def update_company(db: AsyncIOMotorDatabase, company_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    existing = await records.load_or_404(db, collections.INSURANCE_COMPANIES, ENTITY, company_id)
    company = records.merged_model(existing, changes, InsuranceCompanyDB, protected=("code",))
    if company.company_name != existing.get("companyName"):
        await _ensure_name_available(db, company.company_name, exclude_id=company_id)
    company.kyc_status = derive_kyc_status(company.kyc_documents, company.kyc_status)
    return await records.save_update(db, collections.INSURANCE_COMPANIES, ENTITY, existing, company)


async def delete_company(db: AsyncIOMotorDatabase, company_id: str) -> None:
    await records.delete_or_404(db, collections.INSURANCE_COMPANIES, ENTITY, company_id)


async def list_companies(db: AsyncIOMotorDatabase, params: Mapping[str, str]) -> Dict[str, Any]:
    spec = build_query(params, COMPANY_QUERY)
    return await fetch_page(db, collections.INSURANCE_COMPANIES, spec)


async def upload_kyc_documents(db: AsyncIOMotorDatabase, company_id: str, documents: CompanyKycDocuments) -> Dict[str, Any]:
    """Merges the supplied document references into the company's KYC bundle."""
    existing = await records.load_or_404(db, collections.INSURANCE_COMPANIES, ENTITY, company_id)
    supplied = documents.model_dump(by_alias=True, exclude_none=True)
    if not supplied:
        raise EntityValidationError.single("kycDocuments", "Please upload files")
    bundle = {**(existing.get("kycDocuments") or {}), **supplied}
    company = records.merged_model(existing, {"kycDocuments": bundle}, InsuranceCompanyDB)
    company.kyc_status = derive_kyc_status(company.kyc_documents, company.kyc_status)
    logger.info(f"KYC documents {sorted(supplied)} uploaded for insurance company {company_id}.")
    return await records.save_update(db, collections.INSURANCE_COMPANIES, ENTITY, existing, company)
