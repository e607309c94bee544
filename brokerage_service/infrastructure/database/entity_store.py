# Generic document operations shared by all brokerage collections
import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

logger = logging.getLogger(__name__)

# Documents are addressed by their string "id"; Mongo's own _id never leaves the store.
BASE_PROJECTION: Dict[str, int] = {"_id": 0}


def _projection(projection: Optional[Dict[str, int]]) -> Dict[str, int]:
    if not projection:
        return dict(BASE_PROJECTION)
    merged = dict(projection)
    merged["_id"] = 0
    return merged


async def insert_record(db: AsyncIOMotorDatabase, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
    # insert_one mutates its argument with _id
    await db[collection].insert_one(dict(document))
    logger.info(f"Inserted record {document.get('id')} into '{collection}'.")
    return document


async def get_record(
    db: AsyncIOMotorDatabase,
    collection: str,
    record_id: str,
    projection: Optional[Dict[str, int]] = None,
) -> Optional[Dict[str, Any]]:
    return await db[collection].find_one({"id": record_id}, _projection(projection))


async def find_one_record(
    db: AsyncIOMotorDatabase,
    collection: str,
    query: Dict[str, Any],
    projection: Optional[Dict[str, int]] = None,
) -> Optional[Dict[str, Any]]:
    return await db[collection].find_one(query, _projection(projection))


async def record_exists(db: AsyncIOMotorDatabase, collection: str, query: Dict[str, Any]) -> bool:
    return await db[collection].find_one(query, {"_id": 1}) is not None


async def find_records(
    db: AsyncIOMotorDatabase,
    collection: str,
    query: Dict[str, Any],
    projection: Optional[Dict[str, int]] = None,
    sort: Optional[Sequence[Tuple[str, int]]] = None,
) -> List[Dict[str, Any]]:
    cursor = db[collection].find(query, _projection(projection))
    if sort:
        cursor = cursor.sort(list(sort))
    return await cursor.to_list(length=None)


async def find_page(
    db: AsyncIOMotorDatabase,
    collection: str,
    query: Dict[str, Any],
    sort: Sequence[Tuple[str, int]],
    skip: int,
    limit: int,
    projection: Optional[Dict[str, int]] = None,
) -> List[Dict[str, Any]]:
    cursor = db[collection].find(query, _projection(projection)).sort(list(sort)).skip(skip).limit(limit)
    return await cursor.to_list(length=limit)


async def count_records(db: AsyncIOMotorDatabase, collection: str, query: Dict[str, Any]) -> int:
    return await db[collection].count_documents(query)


async def distinct_values(db: AsyncIOMotorDatabase, collection: str, key: str, query: Dict[str, Any]) -> List[Any]:
    return await db[collection].distinct(key, query)


async def replace_record(db: AsyncIOMotorDatabase, collection: str, record_id: str, document: Dict[str, Any]) -> bool:
    result = await db[collection].replace_one({"id": record_id}, dict(document))
    if result.matched_count == 0:
        logger.warning(f"Record {record_id} not found in '{collection}' for replace.")
        return False
    logger.info(f"Replaced record {record_id} in '{collection}'.")
    return True


async def update_record(
    db: AsyncIOMotorDatabase,
    collection: str,
    query: Dict[str, Any],
    update: Dict[str, Any],
) -> Optional[Dict[str, Any]]:
    """Applies an atomic update and returns the document as it is afterwards, or None if nothing matched."""
    updated = await db[collection].find_one_and_update(
        query,
        update,
        projection=BASE_PROJECTION,
        return_document=ReturnDocument.AFTER,
    )
    if updated is not None:
        logger.info(f"Updated record {updated.get('id')} in '{collection}'.")
    return updated


async def delete_record(db: AsyncIOMotorDatabase, collection: str, record_id: str) -> bool:
    result = await db[collection].delete_one({"id": record_id})
    if result.deleted_count == 0:
        logger.warning(f"Record {record_id} not found in '{collection}' for delete.")
        return False
    logger.info(f"Deleted record {record_id} from '{collection}'.")
    return True


async def delete_all_records(db: AsyncIOMotorDatabase, collection: str) -> int:
    result = await db[collection].delete_many({})
    logger.info(f"Deleted {result.deleted_count} records from '{collection}'.")
    return result.deleted_count


def duplicate_key_field(error: DuplicateKeyError) -> Optional[str]:
    """Names the field whose unique index rejected a write, when the server reports it."""
    details = error.details or {}
    for key in ("keyPattern", "keyValue"):
        if details.get(key):
            return next(iter(details[key]))
    match = re.search(r"index: ([\w.]+?)_-?1\b", str(error))
    return match.group(1) if match else None
