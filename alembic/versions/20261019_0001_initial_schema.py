"""initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


user_role = postgresql.ENUM("super_admin", "village_user", name="user_role", create_type=False)
payment_type = postgresql.ENUM("tunai", "transfer", "setoran", name="payment_type", create_type=False)


def upgrade() -> None:
    user_role.create(op.get_bind(), checkfirst=True)
    payment_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "villages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "hamlets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("village_id", sa.Integer(), sa.ForeignKey("villages.id"), nullable=False),
        sa.Column("slot_no", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("head_name", sa.String(length=255), nullable=False),
        sa.Column("sppt_target", sa.Integer(), nullable=False),
        sa.Column("pbb_target", sa.Numeric(15, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("sppt_target >= 0", name="ck_hamlets_sppt_target_non_negative"),
        sa.CheckConstraint("pbb_target >= 0", name="ck_hamlets_pbb_target_non_negative"),
        sa.CheckConstraint("slot_no >= 1 AND slot_no <= 5", name="ck_hamlets_slot_no_within_capacity"),
        sa.UniqueConstraint("village_id", "slot_no", name="uq_hamlets_village_slot"),
    )
    op.create_index("ix_hamlets_village_id", "hamlets", ["village_id"])

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=64), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("village_id", sa.Integer(), sa.ForeignKey("villages.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "((role = 'super_admin' AND village_id IS NULL) "
            "OR (role <> 'super_admin' AND village_id IS NOT NULL))",
            name="ck_users_village_matches_role",
        ),
    )
    op.create_index("ix_users_village_id", "users", ["village_id"])

    op.create_table(
        "pbb_payments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("village_id", sa.Integer(), sa.ForeignKey("villages.id"), nullable=False),
        sa.Column("hamlet_id", sa.Integer(), sa.ForeignKey("hamlets.id"), nullable=False),
        sa.Column("payment_amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("sppt_paid_count", sa.Integer(), nullable=False),
        sa.Column("payment_type", payment_type, nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("payment_amount > 0", name="ck_pbb_payments_amount_positive"),
        sa.CheckConstraint("sppt_paid_count > 0", name="ck_pbb_payments_sppt_paid_count_positive"),
    )
    op.create_index("ix_pbb_payments_village_date", "pbb_payments", ["village_id", "payment_date"])
    op.create_index("ix_pbb_payments_hamlet_id", "pbb_payments", ["hamlet_id"])


def downgrade() -> None:
    op.drop_index("ix_pbb_payments_hamlet_id", table_name="pbb_payments")
    op.drop_index("ix_pbb_payments_village_date", table_name="pbb_payments")
    op.drop_table("pbb_payments")

    op.drop_index("ix_users_village_id", table_name="users")
    op.drop_table("users")

    op.drop_index("ix_hamlets_village_id", table_name="hamlets")
    op.drop_table("hamlets")

    op.drop_table("villages")

    payment_type.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
