"""Achievement dashboards and the per-payment report."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.orm import Session

from pbb_monitor.core.auth import RequestUserContext
from pbb_monitor.core.scope import resolve_village_scope
from pbb_monitor.models.entities import PaymentType
from pbb_monitor.repositories.pbb_repository import PaymentFilter, PbbRepository
from pbb_monitor.services.payment_service import scoped_payment_filter

ZERO = Decimal("0.00")
Q2 = Decimal("0.01")
HUNDRED = Decimal("100")


def _q2(value: Decimal | int | float) -> Decimal:
    return Decimal(str(value)).quantize(Q2, rounding=ROUND_HALF_UP)


def achievement_percentage(paid: Decimal, target: Decimal) -> Decimal:
    """Paid over target as a percentage, rounded half-up to 2 places.

    A zero target yields exactly 0 whatever was paid; that is the reporting
    policy, not a division guard.
    """

    if target <= ZERO:
        return ZERO
    return _q2(Decimal(paid) / Decimal(target) * HUNDRED)


@dataclass(slots=True)
class VillageDashboardRow:
    village_id: int
    village_name: str
    total_sppt_target: int
    total_pbb_target: Decimal
    total_sppt_paid: int
    total_pbb_paid: Decimal
    achievement_percentage: Decimal


@dataclass(slots=True)
class HamletDashboardRow:
    hamlet_id: int
    hamlet_name: str
    village_id: int
    village_name: str
    sppt_target: int
    pbb_target: Decimal
    sppt_paid: int
    pbb_paid: Decimal
    achievement_percentage: Decimal


@dataclass(slots=True)
class PaymentReportRow:
    payment_id: int
    payment_date: date
    village_id: int
    village_name: str
    hamlet_id: int
    hamlet_name: str
    payment_amount: Decimal
    sppt_paid_count: int
    payment_type: PaymentType
    achievement_percentage: Decimal


class DashboardService:
    """Read-only aggregation over targets and recorded payments."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = PbbRepository(db)

    # ---------- Serialization ----------
    @staticmethod
    def serialize_village_row(row: VillageDashboardRow) -> dict[str, object]:
        return {
            "village_id": row.village_id,
            "village_name": row.village_name,
            "total_sppt_target": row.total_sppt_target,
            "total_pbb_target": str(row.total_pbb_target),
            "total_sppt_paid": row.total_sppt_paid,
            "total_pbb_paid": str(row.total_pbb_paid),
            "achievement_percentage": str(row.achievement_percentage),
        }

    @staticmethod
    def serialize_hamlet_row(row: HamletDashboardRow) -> dict[str, object]:
        return {
            "hamlet_id": row.hamlet_id,
            "hamlet_name": row.hamlet_name,
            "village_id": row.village_id,
            "village_name": row.village_name,
            "sppt_target": row.sppt_target,
            "pbb_target": str(row.pbb_target),
            "sppt_paid": row.sppt_paid,
            "pbb_paid": str(row.pbb_paid),
            "achievement_percentage": str(row.achievement_percentage),
        }

    @staticmethod
    def serialize_report_row(row: PaymentReportRow) -> dict[str, object]:
        return {
            "payment_id": row.payment_id,
            "payment_date": row.payment_date.isoformat(),
            "village_id": row.village_id,
            "village_name": row.village_name,
            "hamlet_id": row.hamlet_id,
            "hamlet_name": row.hamlet_name,
            "payment_amount": str(row.payment_amount),
            "sppt_paid_count": row.sppt_paid_count,
            "payment_type": row.payment_type.value,
            "achievement_percentage": str(row.achievement_percentage),
        }

    # ---------- Dashboards ----------
    def village_dashboard(self, *, context: RequestUserContext) -> list[VillageDashboardRow]:
        # Scope is applied as a pre-filter on the village rows.
        village_id = resolve_village_scope(context, None)

        rows = []
        for record in self.repo.village_totals(village_id=village_id):
            total_pbb_target = _q2(record.total_pbb_target)
            total_pbb_paid = _q2(record.total_pbb_paid)
            rows.append(
                VillageDashboardRow(
                    village_id=record.village_id,
                    village_name=record.village_name,
                    total_sppt_target=int(record.total_sppt_target),
                    total_pbb_target=total_pbb_target,
                    total_sppt_paid=int(record.total_sppt_paid),
                    total_pbb_paid=total_pbb_paid,
                    achievement_percentage=achievement_percentage(total_pbb_paid, total_pbb_target),
                )
            )
        return rows

    def hamlet_dashboard(self, *, context: RequestUserContext, village_id: int | None) -> list[HamletDashboardRow]:
        effective_village_id = resolve_village_scope(context, village_id)

        rows = []
        for record in self.repo.hamlet_totals(village_id=effective_village_id):
            pbb_target = _q2(record.pbb_target)
            pbb_paid = _q2(record.pbb_paid)
            rows.append(
                HamletDashboardRow(
                    hamlet_id=record.hamlet_id,
                    hamlet_name=record.hamlet_name,
                    village_id=record.village_id,
                    village_name=record.village_name,
                    sppt_target=int(record.sppt_target),
                    pbb_target=pbb_target,
                    sppt_paid=int(record.sppt_paid),
                    pbb_paid=pbb_paid,
                    achievement_percentage=achievement_percentage(pbb_paid, pbb_target),
                )
            )
        return rows

    # ---------- Report ----------
    def payment_report(self, *, context: RequestUserContext, payment_filter: PaymentFilter) -> list[PaymentReportRow]:
        """One row per matching payment, not aggregated.

        ``achievement_percentage`` is this single payment's share of its
        hamlet's whole target, not a running total.
        """

        effective_filter = scoped_payment_filter(context, payment_filter)

        rows = []
        for record in self.repo.list_payment_report_rows(effective_filter):
            payment_amount = _q2(record.payment_amount)
            rows.append(
                PaymentReportRow(
                    payment_id=record.payment_id,
                    payment_date=record.payment_date,
                    village_id=record.village_id,
                    village_name=record.village_name,
                    hamlet_id=record.hamlet_id,
                    hamlet_name=record.hamlet_name,
                    payment_amount=payment_amount,
                    sppt_paid_count=record.sppt_paid_count,
                    payment_type=record.payment_type,
                    achievement_percentage=achievement_percentage(payment_amount, _q2(record.pbb_target)),
                )
            )
        return rows
