"""ORM entities for the PBB collection schema."""

from __future__ import annotations

import enum
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from pbb_monitor.db.base import Base

MAX_HAMLETS_PER_VILLAGE = 5


class UserRole(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    VILLAGE_USER = "village_user"


class PaymentType(str, enum.Enum):
    CASH = "tunai"
    TRANSFER = "transfer"
    DEPOSIT = "setoran"


class Village(Base):
    __tablename__ = "villages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)


class Hamlet(Base):
    __tablename__ = "hamlets"
    __table_args__ = (
        CheckConstraint("sppt_target >= 0", name="ck_hamlets_sppt_target_non_negative"),
        CheckConstraint("pbb_target >= 0", name="ck_hamlets_pbb_target_non_negative"),
        CheckConstraint(
            f"slot_no >= 1 AND slot_no <= {MAX_HAMLETS_PER_VILLAGE}",
            name="ck_hamlets_slot_no_within_capacity",
        ),
        # One slot per hamlet, five slots per village: concurrent creates that
        # both passed the count check cannot both commit.
        UniqueConstraint("village_id", "slot_no", name="uq_hamlets_village_slot"),
        Index("ix_hamlets_village_id", "village_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    village_id: Mapped[int] = mapped_column(Integer, ForeignKey("villages.id"), nullable=False)
    slot_no: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    head_name: Mapped[str] = mapped_column(String(255), nullable=False)
    sppt_target: Mapped[int] = mapped_column(Integer, nullable=False)
    pbb_target: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "((role = 'super_admin' AND village_id IS NULL) "
            "OR (role <> 'super_admin' AND village_id IS NOT NULL))",
            name="ck_users_village_matches_role",
        ),
        Index("ix_users_village_id", "village_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(
            UserRole,
            name="user_role",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    village_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("villages.id"), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)


class PbbPayment(Base):
    __tablename__ = "pbb_payments"
    __table_args__ = (
        CheckConstraint("payment_amount > 0", name="ck_pbb_payments_amount_positive"),
        CheckConstraint("sppt_paid_count > 0", name="ck_pbb_payments_sppt_paid_count_positive"),
        Index("ix_pbb_payments_village_date", "village_id", "payment_date"),
        Index("ix_pbb_payments_hamlet_id", "hamlet_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    village_id: Mapped[int] = mapped_column(Integer, ForeignKey("villages.id"), nullable=False)
    hamlet_id: Mapped[int] = mapped_column(Integer, ForeignKey("hamlets.id"), nullable=False)
    payment_amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    sppt_paid_count: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_type: Mapped[PaymentType] = mapped_column(
        SQLEnum(
            PaymentType,
            name="payment_type",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
