import pytest

from brokerage_service.app.service import enrichment
from brokerage_service.infrastructure.database import collections


@pytest.fixture
async def seeded_db(mongo_db):
    await mongo_db[collections.CLIENTS].insert_one({
        "id": "c1", "clientType": "Individual", "firstName": "Jane", "lastName": "Doe",
        "clientCode": "CLT-I-100001", "phoneNumber": "+254700000000", "email": "jane@example.com",
        "kraPin": "A000000001Z",
    })
    await mongo_db[collections.GROUPS].insert_one({
        "id": "g1", "groupName": "Umoja Sacco", "groupCode": "GRP-200002",
        "members": [{"clientId": "c1", "clientType": "Individual"}, {"clientId": "gone", "clientType": "Individual"}],
    })
    await mongo_db[collections.INSURANCE_COMPANIES].insert_one({
        "id": "ic1", "companyName": "Jubilee Insurance", "code": "INS-JUB-1234",
        "email": "info@jubilee.co.ke", "phoneNumber": "+254709949000", "kraPin": "P000000001Q",
    })
    await mongo_db[collections.RISK_NOTES].insert_one({
        "id": "rn1", "client": "c1", "insuranceCompany": "ic1", "policyNumber": "PNabc",
        "policyCategory": "Home", "premiumBreakdown": {"totalPremium": 100},
    })
    return mongo_db


@pytest.mark.asyncio
async def test_clients_get_groups_and_policies(seeded_db):
    client = {"id": "c1"}

    await enrichment.enrich_clients(seeded_db, [client])

    assert client["groups"] == [{"groupId": "g1", "groupName": "Umoja Sacco", "groupCode": "GRP-200002"}]
    assert client["policies"] == [{
        "policyId": "rn1", "policyNumber": "PNabc", "policyCategory": "Home", "subCategory": None, "status": "Active",
    }]


@pytest.mark.asyncio
async def test_group_members_are_populated_and_dangling_ones_become_none(seeded_db):
    group = await seeded_db[collections.GROUPS].find_one({"id": "g1"}, {"_id": 0})

    await enrichment.enrich_groups(seeded_db, [group])

    first, second = group["members"]
    assert first["client"]["clientCode"] == "CLT-I-100001"
    assert "kraPin" not in first["client"]
    assert second["client"] is None


@pytest.mark.asyncio
async def test_risk_notes_embed_contact_projections(seeded_db):
    note = {"id": "rn1", "client": "c1", "insuranceCompany": "ic1"}

    await enrichment.enrich_risk_notes(seeded_db, [note])

    assert note["client"]["email"] == "jane@example.com"
    assert note["insuranceCompany"] == {
        "id": "ic1", "companyName": "Jubilee Insurance", "email": "info@jubilee.co.ke", "phoneNumber": "+254709949000",
    }


@pytest.mark.asyncio
async def test_claims_populate_risk_note_then_its_references(seeded_db):
    claim = {"id": "cl1", "policyId": "rn1"}

    await enrichment.enrich_claims(seeded_db, [claim])

    note = claim["policyId"]
    assert note["policyNumber"] == "PNabc"
    assert note["client"]["clientType"] == "Individual"
    assert note["insuranceCompany"] == {"id": "ic1", "companyName": "Jubilee Insurance", "code": "INS-JUB-1234"}


@pytest.mark.asyncio
async def test_dangling_claim_reference_is_null(seeded_db):
    claim = {"id": "cl2", "policyId": "missing"}

    await enrichment.enrich_claims(seeded_db, [claim])

    assert claim["policyId"] is None


@pytest.mark.asyncio
async def test_policies_without_group_keep_none(seeded_db):
    policy = {"id": "p1", "client": "c1", "group": None}

    await enrichment.enrich_policies(seeded_db, [policy])

    assert policy["client"]["firstName"] == "Jane"
    assert policy["group"] is None
