"""Application service for PBB payment records."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from pbb_monitor.core.auth import RequestUserContext
from pbb_monitor.core.errors import InvalidError, NotFoundError
from pbb_monitor.core.scope import ensure_village_in_scope, resolve_village_scope
from pbb_monitor.models.entities import PaymentType, PbbPayment
from pbb_monitor.repositories.pbb_repository import PaymentFilter, PbbRepository
from pbb_monitor.services.integrity_validator import IntegrityValidator

logger = logging.getLogger(__name__)

Q2 = Decimal("0.01")


def _q2(value: Decimal) -> Decimal:
    return value.quantize(Q2)


@dataclass(slots=True)
class PaymentCreateData:
    payment_date: date
    village_id: int | None
    hamlet_id: int
    payment_amount: Decimal
    sppt_paid_count: int
    payment_type: PaymentType
    created_by: int
    notes: str | None = None


@dataclass(slots=True)
class PaymentUpdateData:
    payment_date: date | None = None
    village_id: int | None = None
    hamlet_id: int | None = None
    payment_amount: Decimal | None = None
    sppt_paid_count: int | None = None
    payment_type: PaymentType | None = None
    notes: str | None = None
    clear_notes: bool = False


def scoped_payment_filter(context: RequestUserContext, payment_filter: PaymentFilter) -> PaymentFilter:
    """Intersect a caller-supplied payment filter with the caller's village scope."""

    if (
        payment_filter.start_date is not None
        and payment_filter.end_date is not None
        and payment_filter.start_date > payment_filter.end_date
    ):
        raise InvalidError("start_date must be less than or equal to end_date.")

    return PaymentFilter(
        village_id=resolve_village_scope(context, payment_filter.village_id),
        hamlet_id=payment_filter.hamlet_id,
        start_date=payment_filter.start_date,
        end_date=payment_filter.end_date,
        payment_type=payment_filter.payment_type,
    )


class PaymentService:
    """Service implementing payment mutations and the raw payment listing."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = PbbRepository(db)
        self.validator = IntegrityValidator(self.repo)

    @staticmethod
    def serialize_payment(payment: PbbPayment) -> dict[str, object]:
        return {
            "id": payment.id,
            "payment_date": payment.payment_date.isoformat(),
            "village_id": payment.village_id,
            "hamlet_id": payment.hamlet_id,
            "payment_amount": str(_q2(payment.payment_amount)),
            "sppt_paid_count": payment.sppt_paid_count,
            "payment_type": payment.payment_type.value,
            "notes": payment.notes,
            "created_by": payment.created_by,
            "created_at": payment.created_at.isoformat(),
            "updated_at": payment.updated_at.isoformat(),
        }

    def _validate_values(
        self,
        *,
        payment_amount: Decimal | None,
        sppt_paid_count: int | None,
    ) -> None:
        if payment_amount is not None:
            self.validator.validate_positive_amount(payment_amount, "payment_amount")
            self.validator.validate_money_scale(payment_amount, "payment_amount")
        if sppt_paid_count is not None:
            self.validator.validate_positive_count(sppt_paid_count, "sppt_paid_count")

    def _require_payment(self, payment_id: int) -> PbbPayment:
        payment = self.repo.get_payment(payment_id)
        if payment is None:
            raise NotFoundError("PBB payment not found.", details={"payment_id": payment_id})
        return payment

    def list_payments(self, *, context: RequestUserContext, payment_filter: PaymentFilter) -> list[PbbPayment]:
        return self.repo.list_payments(scoped_payment_filter(context, payment_filter))

    def create_payment(self, *, context: RequestUserContext, data: PaymentCreateData) -> PbbPayment:
        village_id = resolve_village_scope(context, data.village_id)
        if village_id is None:
            raise InvalidError("village_id is required.")
        self._validate_values(payment_amount=data.payment_amount, sppt_paid_count=data.sppt_paid_count)
        self.validator.validate_payment_references(village_id, data.hamlet_id, data.created_by)

        now = datetime.utcnow()
        payment = PbbPayment(
            payment_date=data.payment_date,
            village_id=village_id,
            hamlet_id=data.hamlet_id,
            payment_amount=_q2(data.payment_amount),
            sppt_paid_count=data.sppt_paid_count,
            payment_type=data.payment_type,
            notes=data.notes,
            created_by=data.created_by,
            created_at=now,
            updated_at=now,
        )
        self.repo.add_payment(payment)
        self.db.commit()
        self.db.refresh(payment)
        logger.info(
            "Recorded payment %s: village=%s hamlet=%s amount=%s",
            payment.id,
            payment.village_id,
            payment.hamlet_id,
            payment.payment_amount,
        )
        return payment

    def update_payment(
        self,
        *,
        context: RequestUserContext,
        payment_id: int,
        data: PaymentUpdateData,
    ) -> PbbPayment:
        requested_village_id = None
        if data.village_id is not None:
            requested_village_id = resolve_village_scope(context, data.village_id)

        payment = self._require_payment(payment_id)
        ensure_village_in_scope(context, payment.village_id)
        self._validate_values(payment_amount=data.payment_amount, sppt_paid_count=data.sppt_paid_count)

        target_village_id = requested_village_id if requested_village_id is not None else payment.village_id
        target_hamlet_id = data.hamlet_id if data.hamlet_id is not None else payment.hamlet_id
        if target_village_id != payment.village_id or target_hamlet_id != payment.hamlet_id:
            self.validator.require_village(target_village_id)
            self.validator.validate_hamlet_belongs_to_village(target_hamlet_id, target_village_id)

        if data.payment_date is not None:
            payment.payment_date = data.payment_date
        payment.village_id = target_village_id
        payment.hamlet_id = target_hamlet_id
        if data.payment_amount is not None:
            payment.payment_amount = _q2(data.payment_amount)
        if data.sppt_paid_count is not None:
            payment.sppt_paid_count = data.sppt_paid_count
        if data.payment_type is not None:
            payment.payment_type = data.payment_type
        if data.clear_notes:
            payment.notes = None
        elif data.notes is not None:
            payment.notes = data.notes
        payment.updated_at = datetime.utcnow()

        self.db.commit()
        self.db.refresh(payment)
        logger.info("Updated payment %s", payment.id)
        return payment

    def delete_payment(self, *, context: RequestUserContext, payment_id: int) -> None:
        payment = self._require_payment(payment_id)
        ensure_village_in_scope(context, payment.village_id)
        self.repo.delete_payment(payment)
        self.db.commit()
        logger.info("Deleted payment %s", payment_id)
