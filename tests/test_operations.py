"""Tests for the DML examples, run against the in-memory record service."""
from datetime import date
from decimal import Decimal

import pytest

from db.models import Account, Case, Contact, Lead, Opportunity
from db.repositories.records import RecordNotFound
from dml import operations
from schemas.records import OpportunityDefaults


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_account_populates_id(service):
    account = await operations.create_account(service, "Acme", industry="Technology")
    assert account.id is not None
    assert await service.count(Account, name="Acme") == 1
    assert (await service.find(Account, name="Acme"))[0].industry == "Technology"


@pytest.mark.asyncio
async def test_create_accounts_bulk(service):
    accounts = await operations.create_accounts(service, ["A", "B", "C"])
    assert [a.name for a in accounts] == ["A", "B", "C"]
    assert all(a.id is not None for a in accounts)
    assert await service.count(Account) == 3


@pytest.mark.asyncio
async def test_create_account_missing_name_propagates(service):
    with pytest.raises(ValueError):
        await operations.create_account(service, None)
    assert await service.count(Account) == 0


@pytest.mark.asyncio
async def test_update_account(service):
    await operations.create_account(service, "Acme")
    account = await operations.update_account(
        service, "Acme", industry="Energy", description="Updated"
    )
    stored = (await service.find(Account, name="Acme"))[0]
    assert stored is account
    assert stored.industry == "Energy"
    assert stored.description == "Updated"


@pytest.mark.asyncio
async def test_update_missing_account_raises(service):
    with pytest.raises(RecordNotFound):
        await operations.update_account(service, "Nobody", industry="Energy")


@pytest.mark.asyncio
async def test_upsert_accounts_doe_jane(service):
    doe = await operations.create_account(service, "Doe")

    accounts = await operations.upsert_accounts_by_name(service, ["Doe", "Jane"])

    assert len(accounts) == 2
    assert accounts[0] is doe
    assert accounts[1].name == "Jane"
    assert accounts[1].id is not None
    assert await service.count(Account) == 2


@pytest.mark.asyncio
async def test_upsert_accounts_uses_one_bulk_fetch(service):
    await operations.upsert_accounts_by_name(service, ["a", "b", "c", "d"])
    account_queries = [c for c in service.find_calls if c[0] is Account]
    assert len(account_queries) == 1
    assert account_queries[0][1]["name"] == ["a", "b", "c", "d"]


@pytest.mark.asyncio
async def test_upsert_accounts_is_idempotent(service):
    first = await operations.upsert_accounts_by_name(service, ["Doe", "Jane"])
    second = await operations.upsert_accounts_by_name(service, ["Doe", "Jane"])

    assert await service.count(Account) == 2
    assert [a.id for a in first] == [a.id for a in second]


@pytest.mark.asyncio
async def test_delete_accounts_by_name(service):
    await operations.create_accounts(service, ["Keep", "Drop1", "Drop2"])
    deleted = await operations.delete_accounts_by_name(service, ["Drop1", "Drop2", "Ghost"])
    assert deleted == 2
    assert [a.name for a in await service.find(Account)] == ["Keep"]


# ---------------------------------------------------------------------------
# Contacts
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_contact_for_account(service):
    account = await operations.create_account(service, "Acme")
    contact = await operations.create_contact_for_account(
        service, account, "Doe", first_name="John", title="CTO"
    )
    assert contact.id is not None
    assert contact.account_id == account.id
    assert await service.count(Contact, account_id=account.id) == 1


@pytest.mark.asyncio
async def test_upsert_contacts_updates_and_inserts(service):
    account = await operations.create_account(service, "Acme")
    existing = await operations.create_contact_for_account(service, account, "Doe")

    changed = Contact(id=existing.id, last_name="Doe", title="VP Sales")
    fresh = Contact(last_name="Roe", account_id=account.id)
    result = await operations.upsert_contacts(service, [changed, fresh])

    assert [c.last_name for c in result] == ["Doe", "Roe"]
    assert fresh.id is not None
    assert existing.title == "VP Sales"
    assert await service.count(Contact) == 2


@pytest.mark.asyncio
async def test_upsert_contacts_unknown_id_raises(service):
    import uuid

    with pytest.raises(RecordNotFound):
        await operations.upsert_contacts(
            service, [Contact(id=uuid.uuid4(), last_name="Ghost")]
        )


# ---------------------------------------------------------------------------
# Opportunities
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_upsert_opportunities_applies_defaults(service):
    account = await operations.create_account(service, "Acme")
    defaults = OpportunityDefaults(close_date=date(2027, 1, 15))

    opps = await operations.upsert_opportunities(
        service, account, ["Renewal", "Expansion"], defaults=defaults
    )

    assert len(opps) == 2
    for opp in opps:
        assert opp.account_id == account.id
        assert opp.stage_name == "Qualification"
        assert opp.close_date == date(2027, 1, 15)
        assert opp.amount == Decimal("50000")
    assert await service.count(Opportunity, account_id=account.id) == 2


@pytest.mark.asyncio
async def test_upsert_opportunities_overwrites_existing_stage(service):
    account = await operations.create_account(service, "Acme")
    (renewal,) = await operations.upsert_opportunities(service, account, ["Renewal"])
    renewal.stage_name = "Closed Won"
    await service.update([renewal])

    again = await operations.upsert_opportunities(service, account, ["Renewal", "New"])

    assert again[0] is renewal
    assert renewal.stage_name == "Qualification"
    assert await service.count(Opportunity) == 2


@pytest.mark.asyncio
async def test_upsert_opportunities_matches_within_account_only(service):
    acme = await operations.create_account(service, "Acme")
    globex = await operations.create_account(service, "Globex")
    await operations.upsert_opportunities(service, acme, ["Renewal"])

    (globex_renewal,) = await operations.upsert_opportunities(service, globex, ["Renewal"])

    assert globex_renewal.account_id == globex.id
    assert await service.count(Opportunity, name="Renewal") == 2


@pytest.mark.asyncio
async def test_create_opportunities_for_accounts(service):
    await operations.create_account(service, "Doe")

    opps = await operations.create_opportunities_for_accounts(service, ["Doe", "Jane"])

    assert [o.name for o in opps] == ["Doe Opportunity", "Jane Opportunity"]
    assert await service.count(Account) == 2
    accounts = {a.id: a.name for a in await service.find(Account)}
    assert [accounts[o.account_id] for o in opps] == ["Doe", "Jane"]
    assert all(o.stage_name == "Qualification" for o in opps)


@pytest.mark.asyncio
async def test_create_opportunities_for_accounts_is_idempotent(service):
    first = await operations.create_opportunities_for_accounts(service, ["Doe", "Jane"])
    second = await operations.create_opportunities_for_accounts(service, ["Doe", "Jane"])

    assert await service.count(Account) == 2
    assert await service.count(Opportunity) == 2
    assert [o.id for o in first] == [o.id for o in second]


# ---------------------------------------------------------------------------
# Insert-then-delete
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_insert_and_delete_leads_leaves_nothing(service):
    before = await service.count(Lead)
    ids = await operations.insert_and_delete_leads(service, ["Smith", "Jones"], "Acme")
    assert len(ids) == 2
    assert all(i is not None for i in ids)
    assert await service.count(Lead) == before == 0


@pytest.mark.asyncio
async def test_insert_and_delete_cases_leaves_nothing(service):
    account = await operations.create_account(service, "Acme")
    ids = await operations.insert_and_delete_cases(
        service, ["Login broken", "Billing"], origin="Email", account=account
    )
    assert len(ids) == 2
    assert await service.count(Case) == 0


@pytest.mark.asyncio
async def test_insert_and_delete_cases_empty(service):
    assert await operations.insert_and_delete_cases(service, []) == []
