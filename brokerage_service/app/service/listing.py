# Executes a QuerySpec against a collection and shapes the list envelope
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from brokerage_service.app.observability import list_query_latency_histogram
from brokerage_service.app.service.query_builder import QuerySpec, apply_virtual_sort, pagination_metadata
from brokerage_service.infrastructure.database import entity_store

logger = logging.getLogger(__name__)

Enricher = Callable[[AsyncIOMotorDatabase, List[Dict[str, Any]]], Awaitable[Any]]


def list_response(records: List[Dict[str, Any]], total: int, spec: QuerySpec) -> Dict[str, Any]:
    return {
        "success": True,
        "count": len(records),
        "pagination": pagination_metadata(total, spec.page, spec.limit),
        "data": records,
    }


async def fetch_page(
    db: AsyncIOMotorDatabase,
    collection: str,
    spec: QuerySpec,
    enrich: Optional[Enricher] = None,
) -> Dict[str, Any]:
    """Counts and fetches with the same filter, enriches the page, then applies any in-memory sort."""
    started = time.perf_counter()
    query_filter = spec.filter
    total = await entity_store.count_records(db, collection, query_filter)
    records = await entity_store.find_page(db, collection, query_filter, spec.sort, spec.skip, spec.limit, spec.projection)
    if enrich is not None and records:
        await enrich(db, records)
    apply_virtual_sort(records, spec.virtual_sort)
    elapsed = time.perf_counter() - started
    list_query_latency_histogram.record(elapsed, {"collection": collection})
    logger.info(f"Listed {len(records)}/{total} records from '{collection}' (page {spec.page}, limit {spec.limit}) in {elapsed:.3f}s.")
    return list_response(records, total, spec)
