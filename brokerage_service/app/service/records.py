# Load / update / delete steps shared by every entity service
import logging
from typing import Any, Dict, Iterable, Optional, Type

from motor.motor_asyncio import AsyncIOMotorDatabase

from brokerage_service.app.models.base import DocumentBase, utc_now
from brokerage_service.app.observability import records_created_counter
from brokerage_service.app.service.exceptions import EntityNotFoundError
from brokerage_service.app.service.query_builder import INTERNAL_FIELDS
from brokerage_service.app.service.validation import merge_update, validate_model
from brokerage_service.infrastructure.database import entity_store

logger = logging.getLogger(__name__)

DETAIL_PROJECTION = {name: 0 for name in INTERNAL_FIELDS}


def public_record(document: Dict[str, Any], hidden: Iterable[str] = ()) -> Dict[str, Any]:
    blocked = set(INTERNAL_FIELDS) | set(hidden) | {"_id"}
    return {k: v for k, v in document.items() if k not in blocked}


async def load_or_404(
    db: AsyncIOMotorDatabase,
    collection: str,
    entity: str,
    record_id: str,
    projection: Optional[Dict[str, int]] = None,
) -> Dict[str, Any]:
    record = await entity_store.get_record(db, collection, record_id, projection)
    if record is None:
        raise EntityNotFoundError(entity, record_id)
    return record


def merged_model(existing: Dict[str, Any], changes: Dict[str, Any], model_cls: Type[DocumentBase], protected: Iterable[str] = ()) -> DocumentBase:
    """Validates the stored record with the update applied, through the same model used on create."""
    return validate_model(model_cls, merge_update(existing, changes, protected))


async def save_update(
    db: AsyncIOMotorDatabase,
    collection: str,
    entity: str,
    existing: Dict[str, Any],
    model: DocumentBase,
) -> Dict[str, Any]:
    document = model.to_document()
    document["version"] = int(existing.get("version") or 0) + 1
    document["updatedAt"] = utc_now()
    if not await entity_store.replace_record(db, collection, existing["id"], document):
        raise EntityNotFoundError(entity, existing["id"])
    return public_record(document)


async def delete_or_404(db: AsyncIOMotorDatabase, collection: str, entity: str, record_id: str) -> None:
    if not await entity_store.delete_record(db, collection, record_id):
        raise EntityNotFoundError(entity, record_id)


def record_created(entity: str, document: Dict[str, Any]) -> Dict[str, Any]:
    records_created_counter.add(1, {"entity": entity})
    logger.info(f"{entity} {document.get('id')} created.")
    return public_record(document)
