"""Seed helpers shared by the API and service tests."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from pbb_monitor.core.auth import EXTERNAL_PRINCIPAL_HASH, RequestUserContext
from pbb_monitor.models.entities import Hamlet, PaymentType, PbbPayment, User, UserRole, Village

ADMIN_USERNAME = "super.admin"


def auth_headers(username: str = ADMIN_USERNAME) -> dict[str, str]:
    return {"X-PBB-USERNAME": username}


def context_for(user: User) -> RequestUserContext:
    return RequestUserContext(
        user_id=user.id,
        username=user.username,
        full_name=user.full_name,
        role=user.role,
        village_id=user.village_id,
    )


def create_village(db: Session, *, name: str, code: str) -> Village:
    now = datetime.utcnow()
    village = Village(name=name, code=code, created_at=now, updated_at=now)
    db.add(village)
    db.commit()
    db.refresh(village)
    return village


def create_hamlet(
    db: Session,
    *,
    village: Village,
    name: str,
    slot_no: int,
    sppt_target: int = 100,
    pbb_target: Decimal = Decimal("50000.00"),
) -> Hamlet:
    now = datetime.utcnow()
    hamlet = Hamlet(
        village_id=village.id,
        slot_no=slot_no,
        name=name,
        head_name=f"Kepala {name}",
        sppt_target=sppt_target,
        pbb_target=pbb_target,
        created_at=now,
        updated_at=now,
    )
    db.add(hamlet)
    db.commit()
    db.refresh(hamlet)
    return hamlet


def create_user(
    db: Session,
    *,
    username: str,
    role: UserRole = UserRole.VILLAGE_USER,
    village: Village | None = None,
    is_active: bool = True,
) -> User:
    now = datetime.utcnow()
    user = User(
        username=username,
        password_hash=EXTERNAL_PRINCIPAL_HASH,
        full_name=username.replace(".", " ").title(),
        role=role,
        village_id=village.id if village is not None else None,
        is_active=is_active,
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_payment(
    db: Session,
    *,
    hamlet: Hamlet,
    created_by: User,
    amount: Decimal,
    sppt_paid_count: int,
    payment_date: date = date(2026, 3, 1),
    payment_type: PaymentType = PaymentType.CASH,
) -> PbbPayment:
    now = datetime.utcnow()
    payment = PbbPayment(
        payment_date=payment_date,
        village_id=hamlet.village_id,
        hamlet_id=hamlet.id,
        payment_amount=amount,
        sppt_paid_count=sppt_paid_count,
        payment_type=payment_type,
        created_by=created_by.id,
        created_at=now,
        updated_at=now,
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)
    return payment
