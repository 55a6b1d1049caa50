"""Command-line runner for the CRM DML examples.

Runs one example per invocation inside a single database session, which
commits on success and rolls back on any error.

Usage:
  # Insert a single account
  python dml_cli.py create-account --name "Acme" --industry Technology

  # Find-or-create accounts by name (safe to re-run)
  python dml_cli.py upsert-accounts --names Doe Jane

  # One Qualification-stage opportunity per account
  python dml_cli.py create-opportunities --names Doe Jane --amount 75000

  # Insert leads, then delete them again
  python dml_cli.py leads --last-names Smith Jones --company "Acme"
"""
import argparse
import asyncio
import logging
import os
import sys
from decimal import Decimal

from db.connection import dispose_engine, get_db
from db.models import Account
from db.repositories.records import RecordNotFound, SqlRecordService
from dml import operations
from schemas.records import OpportunityDefaults, OperationResult, RecordRef

logger = logging.getLogger(__name__)


async def run_command(args: argparse.Namespace) -> OperationResult:
    """Dispatch one subcommand against a fresh session."""
    result = OperationResult(command=args.command)
    logger.info("Running %s", args.command)
    async with get_db() as session:
        service = SqlRecordService(session)

        if args.command == "create-account":
            account = await operations.create_account(
                service, args.name, industry=args.industry, description=args.description
            )
            result.records = [RecordRef.of(account)]

        elif args.command == "update-account":
            fields = {}
            if args.industry is not None:
                fields["industry"] = args.industry
            if args.description is not None:
                fields["description"] = args.description
            account = await operations.update_account(service, args.name, **fields)
            result.records = [RecordRef.of(account)]

        elif args.command == "upsert-accounts":
            accounts = await operations.upsert_accounts_by_name(service, args.names)
            result.records = [RecordRef.of(a) for a in accounts]

        elif args.command == "add-contact":
            matches = await service.find(Account, name=args.account)
            if not matches:
                raise RecordNotFound(Account, args.account)
            contact = await operations.create_contact_for_account(
                service,
                matches[0],
                last_name=args.last_name,
                first_name=args.first_name,
                title=args.title,
            )
            result.records = [RecordRef.of(contact)]

        elif args.command == "create-opportunities":
            defaults = OpportunityDefaults(stage_name=args.stage, amount=args.amount)
            opportunities = await operations.create_opportunities_for_accounts(
                service, args.names, defaults=defaults
            )
            result.records = [RecordRef.of(o) for o in opportunities]

        elif args.command == "delete-accounts":
            result.count = await operations.delete_accounts_by_name(service, args.names)

        elif args.command == "leads":
            ids = await operations.insert_and_delete_leads(
                service, args.last_names, company=args.company
            )
            result.count = len(ids)

        elif args.command == "cases":
            ids = await operations.insert_and_delete_cases(
                service, args.subjects, origin=args.origin
            )
            result.count = len(ids)

    return result


async def main(args: argparse.Namespace) -> OperationResult:
    try:
        return await run_command(args)
    finally:
        await dispose_engine()


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="CRM record DML examples")
    sub = parser.add_subparsers(dest="command")

    create = sub.add_parser("create-account", help="Insert one account")
    create.add_argument("--name", required=True)
    create.add_argument("--industry", default=None)
    create.add_argument("--description", default=None)

    update = sub.add_parser("update-account", help="Update an account found by name")
    update.add_argument("--name", required=True)
    update.add_argument("--industry", default=None)
    update.add_argument("--description", default=None)

    upsert = sub.add_parser("upsert-accounts", help="Find-or-create accounts by name")
    upsert.add_argument("--names", nargs="+", required=True)

    contact = sub.add_parser("add-contact", help="Insert a contact under an account")
    contact.add_argument("--account", required=True, help="Account name")
    contact.add_argument("--last-name", required=True)
    contact.add_argument("--first-name", default=None)
    contact.add_argument("--title", default=None)

    opps = sub.add_parser(
        "create-opportunities", help="Find-or-create accounts and one opportunity each"
    )
    opps.add_argument("--names", nargs="+", required=True, help="Account names")
    opps.add_argument("--stage", default="Qualification")
    opps.add_argument("--amount", type=Decimal, default=Decimal("50000"))

    delete = sub.add_parser("delete-accounts", help="Delete accounts by name")
    delete.add_argument("--names", nargs="+", required=True)

    leads = sub.add_parser("leads", help="Insert leads, then delete them")
    leads.add_argument("--last-names", nargs="+", required=True)
    leads.add_argument("--company", required=True)

    cases = sub.add_parser("cases", help="Insert cases, then delete them")
    cases.add_argument("--subjects", nargs="+", required=True)
    cases.add_argument("--origin", default="Web", choices=["Phone", "Email", "Web"])

    return parser


if __name__ == "__main__":
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        format="%(levelname)s %(name)s %(message)s",
    )
    parser = _build_arg_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    outcome = asyncio.run(main(args))
    print(outcome.model_dump_json(indent=2))
