# Index definitions applied at application startup
import logging
from typing import Any, Dict, List, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from . import collections

logger = logging.getLogger(__name__)

# (collection, key, options)
INDEX_SPECS: List[Tuple[str, str, Dict[str, Any]]] = [
    (collections.CLIENTS, "id", {"unique": True}),
    (collections.CLIENTS, "clientCode", {"unique": True}),
    (collections.CLIENTS, "phoneNumber", {"unique": True, "sparse": True}),
    (collections.GROUPS, "id", {"unique": True}),
    (collections.GROUPS, "groupCode", {"unique": True}),
    (collections.GROUPS, "members.clientId", {}),
    (collections.INSURANCE_COMPANIES, "id", {"unique": True}),
    (collections.INSURANCE_COMPANIES, "companyName", {"unique": True}),
    (collections.INSURANCE_COMPANIES, "code", {"unique": True}),
    (collections.POLICIES, "id", {"unique": True}),
    (collections.POLICIES, "policyNumber", {"unique": True}),
    (collections.RISK_NOTES, "id", {"unique": True}),
    (collections.RISK_NOTES, "policyNumber", {"unique": True}),
    (collections.RISK_NOTES, "client", {}),
    (collections.CLAIM_POLICIES, "id", {"unique": True}),
    (collections.CLAIM_POLICIES, "claimNumber", {"unique": True}),
    (collections.CLAIM_POLICIES, "policyId", {}),
    (collections.USERS, "id", {"unique": True}),
    (collections.USERS, "phoneNumber", {"unique": True}),
    (collections.APPLICATIONS, "id", {"unique": True}),
]

async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    for collection_name, key, options in INDEX_SPECS:
        await db[collection_name].create_index(key, **options)
    logger.info(f"Ensured {len(INDEX_SPECS)} indexes across brokerage collections.")
