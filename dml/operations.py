"""DML examples: create, update, upsert and delete CRM records.

Each function is independent: it takes the record service to run against,
builds or fetches records, assigns fields and makes one persist call per
batch. Nothing is shared between calls and failures from the service are
not caught.
"""
import logging
from typing import Iterable, Optional
from uuid import UUID

from db.models import Account, Case, Contact, Lead, Opportunity
from db.repositories.records import RecordNotFound, RecordService
from dml.defaults import apply_defaults
from dml.matching import build_lookup, resolve
from schemas.records import OpportunityDefaults

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


async def create_account(
    service: RecordService,
    name: str,
    industry: Optional[str] = None,
    description: Optional[str] = None,
) -> Account:
    """Insert one account and return it with its id populated."""
    account = Account(name=name, industry=industry, description=description)
    await service.insert([account])
    logger.info("Created account %r (%s)", name, account.id)
    return account


async def create_accounts(service: RecordService, names: Iterable[str]) -> list[Account]:
    """Insert one account per name in a single batch."""
    accounts = [Account(name=name) for name in names]
    await service.insert(accounts)
    logger.info("Created %d accounts", len(accounts))
    return accounts


async def update_account(service: RecordService, name: str, **fields) -> Account:
    """Find an account by name, assign ``fields`` and write it back.

    Raises RecordNotFound when no account has this name.
    """
    matches = await service.find(Account, name=name)
    if not matches:
        raise RecordNotFound(Account, name)
    account = matches[0]
    for field, value in fields.items():
        setattr(account, field, value)
    await service.update([account])
    return account


async def upsert_accounts_by_name(
    service: RecordService, names: Iterable[str]
) -> list[Account]:
    """Find-or-create one account per name.

    Existing accounts are fetched in one query and reused; only the missing
    names become new records, so running this twice creates nothing new.
    """
    names = list(names)
    existing = build_lookup(await service.find(Account, name=names), "name")
    accounts = resolve(names, existing, Account, "name")
    await service.save(accounts)
    logger.info(
        "Upserted %d accounts (%d already existed)",
        len(accounts),
        sum(1 for a in accounts if a.name in existing),
    )
    return accounts


async def delete_accounts_by_name(service: RecordService, names: Iterable[str]) -> int:
    """Delete every account whose name is in ``names``; return how many went."""
    accounts = await service.find(Account, name=list(names))
    await service.delete(accounts)
    logger.info("Deleted %d accounts", len(accounts))
    return len(accounts)


# ---------------------------------------------------------------------------
# Contacts
# ---------------------------------------------------------------------------


async def create_contact_for_account(
    service: RecordService,
    account: Account,
    last_name: str,
    first_name: Optional[str] = None,
    title: Optional[str] = None,
) -> Contact:
    """Insert a contact attached to ``account``."""
    contact = Contact(
        account_id=account.id,
        last_name=last_name,
        first_name=first_name,
        title=title,
    )
    await service.insert([contact])
    return contact


async def upsert_contacts(
    service: RecordService, contacts: Iterable[Contact]
) -> list[Contact]:
    """Upsert by id: contacts with an id are updated, the others inserted."""
    contacts = list(contacts)
    await service.upsert(contacts)
    return contacts


# ---------------------------------------------------------------------------
# Opportunities
# ---------------------------------------------------------------------------


def _default_fields(defaults: Optional[OpportunityDefaults]) -> dict:
    return (defaults or OpportunityDefaults()).as_fields()


async def upsert_opportunities(
    service: RecordService,
    account: Account,
    names: Iterable[str],
    defaults: Optional[OpportunityDefaults] = None,
) -> list[Opportunity]:
    """Find-or-create opportunities by name within one account.

    Every resolved opportunity, new or existing, gets the default stage,
    close date and amount before the batch is saved.
    """
    names = list(names)
    existing = build_lookup(
        await service.find(Opportunity, account_id=account.id, name=names), "name"
    )
    opportunities = resolve(names, existing, Opportunity, "name")
    for opportunity in opportunities:
        opportunity.account_id = account.id
    apply_defaults(opportunities, _default_fields(defaults))
    await service.save(opportunities)
    return opportunities


async def create_opportunities_for_accounts(
    service: RecordService,
    account_names: Iterable[str],
    defaults: Optional[OpportunityDefaults] = None,
) -> list[Opportunity]:
    """Find-or-create the named accounts, then one opportunity per account.

    Each opportunity is named "<account name> Opportunity". Opportunities
    already present under that name are reused rather than duplicated.
    """
    accounts = await upsert_accounts_by_name(service, account_names)
    account_ids = [a.id for a in accounts]
    existing = {}
    for opportunity in await service.find(Opportunity, account_id=account_ids):
        existing.setdefault((opportunity.account_id, opportunity.name), opportunity)

    opportunities = []
    for account_id, name in [(a.id, f"{a.name} Opportunity") for a in accounts]:
        opportunity = existing.get((account_id, name))
        if opportunity is None:
            opportunity = Opportunity(account_id=account_id, name=name)
        opportunities.append(opportunity)
    apply_defaults(opportunities, _default_fields(defaults))
    await service.save(opportunities)
    logger.info("Saved %d opportunities across %d accounts", len(opportunities), len(accounts))
    return opportunities


# ---------------------------------------------------------------------------
# Insert-then-delete: leads and cases
# ---------------------------------------------------------------------------


async def insert_and_delete_leads(
    service: RecordService, last_names: Iterable[str], company: str
) -> list[UUID]:
    """Insert a lead per last name, then delete the whole batch.

    Returns the ids the leads had while they existed.
    """
    leads = [Lead(last_name=last_name, company=company) for last_name in last_names]
    ids = await service.insert(leads)
    await service.delete(leads)
    logger.info("Inserted and deleted %d leads", len(ids))
    return ids


async def insert_and_delete_cases(
    service: RecordService,
    subjects: Iterable[str],
    origin: str = "Web",
    account: Optional[Account] = None,
) -> list[UUID]:
    """Insert a case per subject, then delete the whole batch."""
    cases = []
    for subject in subjects:
        case = Case(
            subject=subject,
            status="New",
            origin=origin,
            account_id=account.id if account is not None else None,
        )
        cases.append(case)
    ids = await service.insert(cases)
    await service.delete(cases)
    logger.info("Inserted and deleted %d cases", len(ids))
    return ids
