# Insurance application intake
import logging
from typing import Any, Dict, Mapping

from motor.motor_asyncio import AsyncIOMotorDatabase

from brokerage_service.app.models.application_db import ApplicationCreate, ApplicationDB
from brokerage_service.app.service import records
from brokerage_service.app.service.listing import fetch_page
from brokerage_service.app.service.query_builder import QueryConfig, build_query
from brokerage_service.infrastructure.database import collections, entity_store

logger = logging.getLogger(__name__)

ENTITY = "Application"

APPLICATION_QUERY = QueryConfig(
    search_fields=("clientName", "clientEmail"),
    date_ranges={"created": "createdAt", "applied": "applicationDate"},
    numeric_ranges={"Premium": "premiumAmount"},
)


async def create_application(db: AsyncIOMotorDatabase, payload: ApplicationCreate) -> Dict[str, Any]:
    application = ApplicationDB(**payload.model_dump())
    document = await entity_store.insert_record(db, collections.APPLICATIONS, application.to_document())
    return records.record_created(ENTITY, document)


async def get_application(db: AsyncIOMotorDatabase, application_id: str) -> Dict[str, Any]:
    return await records.load_or_404(db, collections.APPLICATIONS, ENTITY, application_id, records.DETAIL_PROJECTION)


async def list_applications(db: AsyncIOMotorDatabase, params: Mapping[str, str]) -> Dict[str, Any]:
    spec = build_query(params, APPLICATION_QUERY)
    return await fetch_page(db, collections.APPLICATIONS, spec)
