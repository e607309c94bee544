# Atomic sequence counters backed by the "counters" collection
import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from . import collections

logger = logging.getLogger(__name__)

async def next_sequence_value(db: AsyncIOMotorDatabase, counter_name: str) -> int:
    """
    Atomically increments and returns the named counter, creating it at 1 on first use.
    Concurrent callers always receive distinct values.
    """
    counter = await db[collections.COUNTERS].find_one_and_update(
        {"_id": counter_name},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    value = int(counter["seq"])
    logger.debug(f"Counter '{counter_name}' advanced to {value}.")
    return value
