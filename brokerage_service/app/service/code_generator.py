"""
Human-readable identifiers assigned to records at creation time.

Random-suffix codes are inserted optimistically and regenerated when the unique
index rejects them. Claim numbers come from an atomic per-month counter, so
concurrent creates in the same month never read the same "last" value.
"""
import asyncio
import datetime
import inspect
import logging
import random
import re
import string
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from brokerage_service.app.config import settings
from brokerage_service.app.models.claim_policy_db import claim_month_prefix
from brokerage_service.app.observability import tracer, code_collisions_counter
from brokerage_service.app.service.exceptions import CodeGenerationError
from brokerage_service.infrastructure.database import entity_store
from brokerage_service.infrastructure.database.counters import next_sequence_value

logger = logging.getLogger(__name__)

BASE36_ALPHABET = string.digits + string.ascii_lowercase

CodeFactory = Callable[[], Union[str, Awaitable[str]]]


def _random_digits(low: int, high: int) -> int:
    return random.randint(low, high)

def generate_client_code(client_type: str) -> str:
    return f"CLT-{client_type[:1].upper()}-{_random_digits(100000, 999999)}"

def generate_group_code() -> str:
    return f"GRP-{_random_digits(100000, 999999)}"

def company_name_prefix(company_name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "", company_name)[:3].upper()

def generate_company_code(company_name: str) -> str:
    return f"INS-{company_name_prefix(company_name)}-{_random_digits(1000, 9999)}"

def generate_policy_number(policy_type: str) -> str:
    return f"POL-{policy_type[:1].upper()}-{_random_digits(100000, 999999)}"

def generate_risk_note_number() -> str:
    return "PN" + "".join(random.choice(BASE36_ALPHABET) for _ in range(13))

async def generate_claim_number(db: AsyncIOMotorDatabase, moment: Optional[datetime.datetime] = None) -> str:
    prefix = claim_month_prefix(moment)
    sequence = await next_sequence_value(db, f"claimNumber:{prefix}")
    return f"{prefix}{sequence:05d}"


async def _produce(factory: CodeFactory) -> str:
    value = factory()
    if inspect.isawaitable(value):
        value = await value
    return value


async def insert_with_unique_code(
    db: AsyncIOMotorDatabase,
    collection: str,
    document: Dict[str, Any],
    field: str,
    factory: CodeFactory,
) -> Dict[str, Any]:
    """
    Inserts `document`, filling `field` from `factory` when the caller left it empty.

    A duplicate-key rejection on `field` triggers a fresh code and a short backoff,
    up to CODE_GENERATION_MAX_RETRIES attempts. Caller-supplied codes are never
    replaced; their collisions propagate like any other duplicate.
    """
    if document.get(field):
        return await entity_store.insert_record(db, collection, document)

    max_attempts = max(1, settings.CODE_GENERATION_MAX_RETRIES)
    with tracer.start_as_current_span("allocate_unique_code") as span:
        span.set_attribute("code.field", field)
        span.set_attribute("code.collection", collection)
        for attempt in range(1, max_attempts + 1):
            document[field] = await _produce(factory)
            try:
                inserted = await entity_store.insert_record(db, collection, document)
                span.set_attribute("code.attempts", attempt)
                return inserted
            except DuplicateKeyError as e:
                if entity_store.duplicate_key_field(e) != field:
                    raise
                code_collisions_counter.add(1, {"field": field})
                logger.warning(f"Generated {field} '{document[field]}' already taken (attempt {attempt}/{max_attempts}).")
                if attempt < max_attempts:
                    await asyncio.sleep(settings.CODE_GENERATION_RETRY_BACKOFF_SECONDS * attempt)
    raise CodeGenerationError(field, max_attempts)
