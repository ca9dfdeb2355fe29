"""Repository helpers for the village, hamlet, user and payment domain."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import and_, func, select
from sqlalchemy.engine import Row
from sqlalchemy.orm import Session

from pbb_monitor.models.entities import Hamlet, PaymentType, PbbPayment, User, Village

ZERO = Decimal("0.00")


@dataclass(slots=True)
class PaymentFilter:
    village_id: int | None = None
    hamlet_id: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    payment_type: PaymentType | None = None


class PbbRepository:
    """Persistence operations used by registry, payment and dashboard services."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ---------- Villages ----------
    def get_village(self, village_id: int) -> Village | None:
        return self.db.scalar(select(Village).where(Village.id == village_id))

    def lock_village(self, village_id: int) -> Village | None:
        # FOR UPDATE serializes hamlet creation per village on PostgreSQL;
        # SQLite ignores it and relies on the slot constraint alone.
        return self.db.scalar(select(Village).where(Village.id == village_id).with_for_update())

    def get_village_by_code(self, code: str) -> Village | None:
        return self.db.scalar(select(Village).where(Village.code == code))

    def list_villages(self, *, village_id: int | None = None) -> list[Village]:
        query = select(Village)
        if village_id is not None:
            query = query.where(Village.id == village_id)
        return self.db.scalars(query.order_by(Village.name.asc(), Village.id.asc())).all()

    def add_village(self, village: Village) -> Village:
        self.db.add(village)
        self.db.flush()
        return village

    # ---------- Hamlets ----------
    def get_hamlet(self, hamlet_id: int) -> Hamlet | None:
        return self.db.scalar(select(Hamlet).where(Hamlet.id == hamlet_id))

    def list_hamlets(self, *, village_id: int | None = None) -> list[Hamlet]:
        query = select(Hamlet).join(Village, Village.id == Hamlet.village_id)
        if village_id is not None:
            query = query.where(Hamlet.village_id == village_id)
        return self.db.scalars(query.order_by(Hamlet.village_id.asc(), Hamlet.slot_no.asc())).all()

    def hamlet_count_for_village(self, village_id: int) -> int:
        return int(
            self.db.scalar(select(func.count()).select_from(Hamlet).where(Hamlet.village_id == village_id))
            or 0
        )

    def used_hamlet_slots(self, village_id: int) -> set[int]:
        return set(self.db.scalars(select(Hamlet.slot_no).where(Hamlet.village_id == village_id)).all())

    def add_hamlet(self, hamlet: Hamlet) -> Hamlet:
        self.db.add(hamlet)
        self.db.flush()
        return hamlet

    def payment_count_for_hamlet(self, hamlet_id: int) -> int:
        return int(
            self.db.scalar(
                select(func.count()).select_from(PbbPayment).where(PbbPayment.hamlet_id == hamlet_id)
            )
            or 0
        )

    # ---------- Users ----------
    def get_user(self, user_id: int) -> User | None:
        return self.db.scalar(select(User).where(User.id == user_id))

    def get_user_by_username(self, username: str) -> User | None:
        return self.db.scalar(select(User).where(User.username == username))

    def list_users(self) -> list[User]:
        return self.db.scalars(select(User).order_by(User.username.asc())).all()

    def add_user(self, user: User) -> User:
        self.db.add(user)
        self.db.flush()
        return user

    # ---------- Payments ----------
    def get_payment(self, payment_id: int) -> PbbPayment | None:
        return self.db.scalar(select(PbbPayment).where(PbbPayment.id == payment_id))

    def add_payment(self, payment: PbbPayment) -> PbbPayment:
        self.db.add(payment)
        self.db.flush()
        return payment

    def delete_payment(self, payment: PbbPayment) -> None:
        self.db.delete(payment)
        self.db.flush()

    @staticmethod
    def _payment_conditions(payment_filter: PaymentFilter) -> list:
        conditions = []
        if payment_filter.village_id is not None:
            conditions.append(PbbPayment.village_id == payment_filter.village_id)
        if payment_filter.hamlet_id is not None:
            conditions.append(PbbPayment.hamlet_id == payment_filter.hamlet_id)
        if payment_filter.start_date is not None:
            conditions.append(PbbPayment.payment_date >= payment_filter.start_date)
        if payment_filter.end_date is not None:
            conditions.append(PbbPayment.payment_date <= payment_filter.end_date)
        if payment_filter.payment_type is not None:
            conditions.append(PbbPayment.payment_type == payment_filter.payment_type)
        return conditions

    def list_payments(self, payment_filter: PaymentFilter) -> list[PbbPayment]:
        query = (
            select(PbbPayment)
            .join(Village, Village.id == PbbPayment.village_id)
            .join(Hamlet, Hamlet.id == PbbPayment.hamlet_id)
        )
        conditions = self._payment_conditions(payment_filter)
        if conditions:
            query = query.where(and_(*conditions))
        return self.db.scalars(
            query.order_by(PbbPayment.payment_date.desc(), PbbPayment.id.desc())
        ).all()

    def list_payment_report_rows(self, payment_filter: PaymentFilter) -> list[Row]:
        query = (
            select(
                PbbPayment.id.label("payment_id"),
                PbbPayment.payment_date,
                PbbPayment.village_id,
                Village.name.label("village_name"),
                PbbPayment.hamlet_id,
                Hamlet.name.label("hamlet_name"),
                PbbPayment.payment_amount,
                PbbPayment.sppt_paid_count,
                PbbPayment.payment_type,
                Hamlet.pbb_target,
            )
            .join(Hamlet, Hamlet.id == PbbPayment.hamlet_id)
            .join(Village, Village.id == PbbPayment.village_id)
        )
        conditions = self._payment_conditions(payment_filter)
        if conditions:
            query = query.where(and_(*conditions))
        return self.db.execute(
            query.order_by(PbbPayment.payment_date.desc(), PbbPayment.id.desc())
        ).all()

    # ---------- Aggregates ----------
    def village_totals(self, *, village_id: int | None = None) -> list[Row]:
        """Per-village target and paid totals.

        Hamlet targets and payment sums are grouped in separate subqueries and
        only then joined to villages, so each total is counted once per
        village no matter how many hamlets and payments exist.
        """

        hamlet_totals = (
            select(
                Hamlet.village_id.label("village_id"),
                func.sum(Hamlet.sppt_target).label("total_sppt_target"),
                func.sum(Hamlet.pbb_target).label("total_pbb_target"),
            )
            .group_by(Hamlet.village_id)
            .subquery("hamlet_totals")
        )
        payment_totals = (
            select(
                PbbPayment.village_id.label("village_id"),
                func.sum(PbbPayment.sppt_paid_count).label("total_sppt_paid"),
                func.sum(PbbPayment.payment_amount).label("total_pbb_paid"),
            )
            .group_by(PbbPayment.village_id)
            .subquery("payment_totals")
        )

        query = (
            select(
                Village.id.label("village_id"),
                Village.name.label("village_name"),
                func.coalesce(hamlet_totals.c.total_sppt_target, 0).label("total_sppt_target"),
                func.coalesce(hamlet_totals.c.total_pbb_target, ZERO).label("total_pbb_target"),
                func.coalesce(payment_totals.c.total_sppt_paid, 0).label("total_sppt_paid"),
                func.coalesce(payment_totals.c.total_pbb_paid, ZERO).label("total_pbb_paid"),
            )
            .outerjoin(hamlet_totals, hamlet_totals.c.village_id == Village.id)
            .outerjoin(payment_totals, payment_totals.c.village_id == Village.id)
        )
        if village_id is not None:
            query = query.where(Village.id == village_id)
        return self.db.execute(query.order_by(Village.name.asc(), Village.id.asc())).all()

    def hamlet_totals(self, *, village_id: int | None = None) -> list[Row]:
        query = (
            select(
                Hamlet.id.label("hamlet_id"),
                Hamlet.name.label("hamlet_name"),
                Hamlet.village_id.label("village_id"),
                Village.name.label("village_name"),
                Hamlet.sppt_target,
                Hamlet.pbb_target,
                func.coalesce(func.sum(PbbPayment.sppt_paid_count), 0).label("sppt_paid"),
                func.coalesce(func.sum(PbbPayment.payment_amount), ZERO).label("pbb_paid"),
            )
            .join(Village, Village.id == Hamlet.village_id)
            .outerjoin(PbbPayment, PbbPayment.hamlet_id == Hamlet.id)
            .group_by(
                Hamlet.id,
                Hamlet.name,
                Hamlet.village_id,
                Village.name,
                Hamlet.sppt_target,
                Hamlet.pbb_target,
            )
        )
        if village_id is not None:
            query = query.where(Hamlet.village_id == village_id)
        return self.db.execute(
            query.order_by(Village.name.asc(), Hamlet.name.asc(), Hamlet.id.asc())
        ).all()
