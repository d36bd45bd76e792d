"""ledger core tables

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa


revision = "1a2b3c4d5e6f"
down_revision = None
branch_labels = None
depends_on = None


def _table_exists(bind, table_name: str) -> bool:
    insp = sa.inspect(bind)
    return table_name in insp.get_table_names()


def _uuid():
    return sa.dialects.postgresql.UUID(as_uuid=True)


def _timestamps():
    return [
        sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
        sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
    ]


def upgrade() -> None:
    bind = op.get_bind()

    if not _table_exists(bind, "accounts"):
        op.create_table(
            "accounts",
            sa.Column("id", _uuid(), primary_key=True, nullable=False),
            sa.Column("team", sa.String(length=50), nullable=False),
            sa.Column("identifier", sa.String(length=100), nullable=False),
            sa.Column("full_name", sa.String(length=200), nullable=True),
            sa.Column("points_latam", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("points_smiles", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("points_livelo", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("points_esfera", sa.Integer(), nullable=False, server_default="0"),
            *_timestamps(),
            sa.CheckConstraint("points_latam >= 0", name="ck_accounts_points_latam_non_negative"),
            sa.CheckConstraint("points_smiles >= 0", name="ck_accounts_points_smiles_non_negative"),
            sa.CheckConstraint("points_livelo >= 0", name="ck_accounts_points_livelo_non_negative"),
            sa.CheckConstraint("points_esfera >= 0", name="ck_accounts_points_esfera_non_negative"),
        )
        op.create_index("ix_accounts_team", "accounts", ["team"], unique=False)

    if not _table_exists(bind, "purchases"):
        op.create_table(
            "purchases",
            sa.Column("id", _uuid(), primary_key=True, nullable=False),
            sa.Column("team", sa.String(length=50), nullable=False),
            sa.Column("account_id", _uuid(), sa.ForeignKey("accounts.id"), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="OPEN"),
            sa.Column("note", sa.String(length=500), nullable=True),
            sa.Column("vendor_commission_bps", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("account_pay_cents", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("target_markup_cents", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("subtotal_cents", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("commission_cents", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("total_cents", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("points_total", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("cost_per_thousand_cents", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("target_per_thousand_cents", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("closed_at", sa.TIMESTAMP(), nullable=True),
            sa.Column("closed_by", sa.String(length=100), nullable=True),
            *_timestamps(),
        )
        op.create_index("ix_purchases_team", "purchases", ["team"], unique=False)
        op.create_index("ix_purchases_account_id", "purchases", ["account_id"], unique=False)

    if not _table_exists(bind, "purchase_items"):
        op.create_table(
            "purchase_items",
            sa.Column("id", _uuid(), primary_key=True, nullable=False),
            sa.Column("purchase_id", _uuid(), sa.ForeignKey("purchases.id"), nullable=False),
            sa.Column("type", sa.String(length=20), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="PENDING"),
            sa.Column("title", sa.String(length=200), nullable=False),
            sa.Column("details", sa.String(length=2000), nullable=True),
            sa.Column("program_from", sa.String(length=20), nullable=True),
            sa.Column("program_to", sa.String(length=20), nullable=True),
            sa.Column("points_base", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("bonus_mode", sa.String(length=20), nullable=True),
            sa.Column("bonus_value", sa.Integer(), nullable=True),
            sa.Column("points_final", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("transfer_mode", sa.String(length=20), nullable=True),
            sa.Column("points_debited_from_origin", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("amount_cents", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("released_at", sa.TIMESTAMP(), nullable=True),
            sa.Column("canceled_at", sa.TIMESTAMP(), nullable=True),
            *_timestamps(),
        )
        op.create_index("ix_purchase_items_purchase_id", "purchase_items", ["purchase_id"], unique=False)

    if not _table_exists(bind, "emission_events"):
        op.create_table(
            "emission_events",
            sa.Column("id", _uuid(), primary_key=True, nullable=False),
            sa.Column("team", sa.String(length=50), nullable=False),
            sa.Column("account_id", _uuid(), sa.ForeignKey("accounts.id"), nullable=False),
            sa.Column("program", sa.String(length=20), nullable=False),
            sa.Column("issued_at", sa.Date(), nullable=False),
            sa.Column("passengers_count", sa.Integer(), nullable=False),
            sa.Column("source", sa.String(length=20), nullable=False, server_default="MANUAL"),
            sa.Column("note", sa.String(length=500), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
        )
        op.create_index(
            "ix_emission_events_account_program_issued_at",
            "emission_events",
            ["account_id", "program", "issued_at"],
            unique=False,
        )

    if not _table_exists(bind, "club_subscriptions"):
        op.create_table(
            "club_subscriptions",
            sa.Column("id", _uuid(), primary_key=True, nullable=False),
            sa.Column("team", sa.String(length=50), nullable=False),
            sa.Column("account_id", _uuid(), sa.ForeignKey("accounts.id"), nullable=False),
            sa.Column("program", sa.String(length=20), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="ACTIVE"),
            sa.Column("subscribed_at", sa.Date(), nullable=False),
            sa.Column("last_renewed_at", sa.Date(), nullable=True),
            sa.Column("renewal_day", sa.Integer(), nullable=False, server_default="1"),
            sa.Column("price_cents", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("notes", sa.String(length=1000), nullable=True),
            *_timestamps(),
            sa.UniqueConstraint("account_id", "program", name="uq_club_subscriptions_account_program"),
        )
        op.create_index("ix_club_subscriptions_team", "club_subscriptions", ["team"], unique=False)


def downgrade() -> None:
    bind = op.get_bind()

    for table_name in ("club_subscriptions", "emission_events", "purchase_items", "purchases", "accounts"):
        if _table_exists(bind, table_name):
            op.drop_table(table_name)
