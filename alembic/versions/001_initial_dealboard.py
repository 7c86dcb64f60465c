"""Initial record store: deals, documents, activities, contacts, buying
parties, deal-buyer matches and checklists.

Revision ID: 001_initial_dealboard
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial_dealboard"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now())


def upgrade() -> None:
    # ── deals ──────────────────────────────────────────────────────────────
    op.create_table(
        "deals",
        _id_column(),
        sa.Column("company_name", sa.String(300), nullable=False),
        sa.Column("revenue", sa.Float(), nullable=False),
        sa.Column("sde", sa.Float(), nullable=True),
        sa.Column("valuation_min", sa.Float(), nullable=True),
        sa.Column("valuation_max", sa.Float(), nullable=True),
        sa.Column("sde_multiple", sa.Float(), nullable=True),
        sa.Column("revenue_multiple", sa.Float(), nullable=True),
        sa.Column("commission", sa.Float(), nullable=True),
        sa.Column("stage", sa.String(50), server_default=sa.text("'onboarding'")),
        sa.Column("priority", sa.String(20), server_default=sa.text("'medium'")),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("next_step_days", sa.Integer(), nullable=True),
        sa.Column("touches", sa.Integer(), server_default=sa.text("0")),
        sa.Column("age_in_stage", sa.Integer(), server_default=sa.text("0")),
        sa.Column("health_score", sa.Integer(), server_default=sa.text("85")),
        sa.Column("owner", sa.String(200), nullable=False),
        _created_at(),
    )
    op.create_index("ix_deals_stage", "deals", ["stage"])

    # ── documents ──────────────────────────────────────────────────────────
    op.create_table(
        "documents",
        _id_column(),
        sa.Column("deal_id", sa.String(36), nullable=True),
        sa.Column("buying_party_id", sa.String(36), nullable=True),
        sa.Column("name", sa.String(500), nullable=False),
        sa.Column("status", sa.String(20), server_default=sa.text("'draft'")),
        sa.Column("url", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_documents_deal", "documents", ["deal_id"])
    op.create_index("ix_documents_buying_party", "documents", ["buying_party_id"])

    # ── activities ─────────────────────────────────────────────────────────
    op.create_table(
        "activities",
        _id_column(),
        sa.Column("deal_id", sa.String(36), nullable=True),
        sa.Column("buying_party_id", sa.String(36), nullable=True),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), server_default=sa.text("'pending'")),
        sa.Column("assigned_to", sa.String(200), nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index("ix_activities_deal", "activities", ["deal_id"])
    op.create_index("ix_activities_buying_party", "activities", ["buying_party_id"])

    # ── contacts ───────────────────────────────────────────────────────────
    op.create_table(
        "contacts",
        _id_column(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("role", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("entity_id", sa.String(36), nullable=False),
        sa.Column("entity_type", sa.String(20), nullable=False),
    )
    op.create_index("ix_contacts_entity", "contacts", ["entity_type", "entity_id"])

    # ── buying_parties ─────────────────────────────────────────────────────
    op.create_table(
        "buying_parties",
        _id_column(),
        sa.Column("name", sa.String(300), nullable=False),
        sa.Column("target_acquisition_min", sa.Integer(), nullable=True),
        sa.Column("target_acquisition_max", sa.Integer(), nullable=True),
        sa.Column("budget_min", sa.Float(), nullable=True),
        sa.Column("budget_max", sa.Float(), nullable=True),
        sa.Column("timeline", sa.String(200), nullable=True),
        sa.Column("status", sa.String(50), server_default=sa.text("'evaluating'")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("target_industries", sa.JSON(), nullable=True),
        sa.Column("is_operational", sa.Boolean(), nullable=True),
        _created_at(),
    )

    # ── deal_buyer_matches ─────────────────────────────────────────────────
    op.create_table(
        "deal_buyer_matches",
        _id_column(),
        sa.Column("deal_id", sa.String(36), nullable=False),
        sa.Column("buying_party_id", sa.String(36), nullable=False),
        sa.Column("target_acquisition", sa.Integer(), nullable=True),
        sa.Column("budget", sa.Float(), nullable=True),
        sa.Column("status", sa.String(50), server_default=sa.text("'interested'")),
        sa.Column("stage", sa.String(50), server_default=sa.text("'new'")),
        _created_at(),
    )
    op.create_index("ix_matches_deal", "deal_buyer_matches", ["deal_id"])
    op.create_index("ix_matches_buying_party", "deal_buyer_matches", ["buying_party_id"])

    # ── checklists ─────────────────────────────────────────────────────────
    op.create_table(
        "checklists",
        _id_column(),
        sa.Column("owner_kind", sa.String(20), nullable=False),
        sa.Column("owner_id", sa.String(36), nullable=False),
        sa.Column("items", sa.JSON(), nullable=True),
        sa.Column("version", sa.Integer(), server_default=sa.text("1")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("owner_kind", "owner_id", name="uq_checklist_owner"),
    )


def downgrade() -> None:
    op.drop_table("checklists")
    op.drop_index("ix_matches_buying_party", table_name="deal_buyer_matches")
    op.drop_index("ix_matches_deal", table_name="deal_buyer_matches")
    op.drop_table("deal_buyer_matches")
    op.drop_table("buying_parties")
    op.drop_index("ix_contacts_entity", table_name="contacts")
    op.drop_table("contacts")
    op.drop_index("ix_activities_buying_party", table_name="activities")
    op.drop_index("ix_activities_deal", table_name="activities")
    op.drop_table("activities")
    op.drop_index("ix_documents_buying_party", table_name="documents")
    op.drop_index("ix_documents_deal", table_name="documents")
    op.drop_table("documents")
    op.drop_index("ix_deals_stage", table_name="deals")
    op.drop_table("deals")
