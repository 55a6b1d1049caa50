"""Initial schema: crm accounts, contacts, opportunities, leads, cases.

Revision ID: 001
Revises:
Create Date: 2026-10-16

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("CREATE SCHEMA IF NOT EXISTS crm")

    op.create_table(
        "accounts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("industry", sa.Text, nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        schema="crm",
    )
    op.create_index("ix_crm_accounts_name", "accounts", ["name"], schema="crm")

    op.create_table(
        "contacts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("account_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("last_name", sa.Text, nullable=False),
        sa.Column("first_name", sa.Text, nullable=True),
        sa.Column("title", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["account_id"], ["crm.accounts.id"], ondelete="SET NULL"),
        schema="crm",
    )

    op.create_table(
        "opportunities",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("account_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("stage_name", sa.Text, nullable=False),
        sa.Column("close_date", sa.Date, nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["account_id"], ["crm.accounts.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "stage_name IN ('Prospecting','Qualification','Needs Analysis',"
            "'Proposal','Negotiation','Closed Won','Closed Lost')",
            name="ck_opportunity_stage_name",
        ),
        schema="crm",
    )

    op.create_table(
        "leads",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("last_name", sa.Text, nullable=False),
        sa.Column("first_name", sa.Text, nullable=True),
        sa.Column("company", sa.Text, nullable=False),
        sa.Column("status", sa.Text, nullable=False, server_default="Open - Not Contacted"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        schema="crm",
    )

    op.create_table(
        "cases",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("account_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("subject", sa.Text, nullable=True),
        sa.Column("status", sa.Text, nullable=False, server_default="New"),
        sa.Column("origin", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["account_id"], ["crm.accounts.id"], ondelete="SET NULL"),
        sa.CheckConstraint(
            "status IN ('New','Working','Escalated','Closed')",
            name="ck_case_status",
        ),
        sa.CheckConstraint("origin IN ('Phone','Email','Web')", name="ck_case_origin"),
        schema="crm",
    )


def downgrade() -> None:
    # Drop in reverse dependency order
    op.drop_table("cases", schema="crm")
    op.drop_table("leads", schema="crm")
    op.drop_table("opportunities", schema="crm")
    op.drop_table("contacts", schema="crm")
    op.drop_index("ix_crm_accounts_name", table_name="accounts", schema="crm")
    op.drop_table("accounts", schema="crm")
