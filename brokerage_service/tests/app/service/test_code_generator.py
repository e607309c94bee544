import datetime
import re
from unittest.mock import AsyncMock, patch

import pytest
from pymongo.errors import DuplicateKeyError

from brokerage_service.app.config import settings
from brokerage_service.app.service import code_generator
from brokerage_service.app.service.code_generator import (
    company_name_prefix,
    generate_claim_number,
    generate_client_code,
    generate_company_code,
    generate_group_code,
    generate_policy_number,
    generate_risk_note_number,
    insert_with_unique_code,
)
from brokerage_service.app.service.exceptions import CodeGenerationError


def _duplicate(field: str) -> DuplicateKeyError:
    return DuplicateKeyError(
        f"E11000 duplicate key error collection: brokerage_db.x index: {field}_1 dup key",
        code=11000,
        details={"keyPattern": {field: 1}, "keyValue": {field: "taken"}},
    )


@pytest.mark.parametrize("client_type,letter", [("Individual", "I"), ("Corporate", "C"), ("Group", "G")])
def test_client_code_format(client_type, letter):
    assert re.fullmatch(rf"CLT-{letter}-\d{{6}}", generate_client_code(client_type))


def test_other_code_formats():
    assert re.fullmatch(r"GRP-\d{6}", generate_group_code())
    assert re.fullmatch(r"POL-H-\d{6}", generate_policy_number("Home"))
    assert re.fullmatch(r"PN[0-9a-z]{13}", generate_risk_note_number())
    assert re.fullmatch(r"INS-JUB-\d{4}", generate_company_code("Jubilee Insurance"))


def test_company_prefix_strips_punctuation():
    assert company_name_prefix("A&B Assurance") == "ABA"
    assert company_name_prefix("Q") == "Q"


@pytest.mark.asyncio
async def test_claim_numbers_increment_within_a_month(mongo_db):
    moment = datetime.datetime(2026, 3, 15)

    first = await generate_claim_number(mongo_db, moment)
    second = await generate_claim_number(mongo_db, moment)
    next_month = await generate_claim_number(mongo_db, datetime.datetime(2026, 4, 1))

    assert first == "CL260300001"
    assert second == "CL260300002"
    assert next_month == "CL260400001"


@pytest.mark.asyncio
async def test_insert_keeps_caller_supplied_code(mongo_db):
    factory = AsyncMock(return_value="unused")

    document = await insert_with_unique_code(mongo_db, "clients", {"id": "c1", "clientCode": "MANUAL-1"}, "clientCode", factory)

    assert document["clientCode"] == "MANUAL-1"
    factory.assert_not_called()


@pytest.mark.asyncio
async def test_insert_retries_on_code_collision(mongo_db):
    await mongo_db["groups"].create_index("groupCode", unique=True)
    await mongo_db["groups"].insert_one({"id": "existing", "groupCode": "GRP-111111"})
    codes = iter(["GRP-111111", "GRP-222222"])

    document = await insert_with_unique_code(mongo_db, "groups", {"id": "g2"}, "groupCode", lambda: next(codes))

    assert document["groupCode"] == "GRP-222222"
    assert await mongo_db["groups"].count_documents({}) == 2


@pytest.mark.asyncio
async def test_insert_gives_up_after_retry_budget(monkeypatch):
    monkeypatch.setattr(settings, "CODE_GENERATION_MAX_RETRIES", 3)
    factory_calls = []

    def factory():
        factory_calls.append(1)
        return "POL-H-000000"

    with patch.object(code_generator.entity_store, "insert_record", new=AsyncMock(side_effect=_duplicate("policyNumber"))):
        with pytest.raises(CodeGenerationError) as exc_info:
            await insert_with_unique_code(None, "policies", {"id": "p1"}, "policyNumber", factory)

    assert exc_info.value.attempts == 3
    assert len(factory_calls) == 3


@pytest.mark.asyncio
async def test_collision_on_other_field_is_not_retried():
    insert = AsyncMock(side_effect=_duplicate("phoneNumber"))
    with patch.object(code_generator.entity_store, "insert_record", new=insert):
        with pytest.raises(DuplicateKeyError):
            await insert_with_unique_code(None, "clients", {"id": "c1"}, "clientCode", lambda: "CLT-I-123456")
    assert insert.await_count == 1
