"""PBB payment recording endpoints."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from pbb_monitor.core.auth import RequestUserContext, get_current_user_context
from pbb_monitor.db.dependencies import get_db_session
from pbb_monitor.models.entities import PaymentType
from pbb_monitor.repositories.pbb_repository import PaymentFilter
from pbb_monitor.services.payment_service import PaymentCreateData, PaymentService, PaymentUpdateData

router = APIRouter(prefix="/payments", tags=["payments"])


class PaymentCreatePayload(BaseModel):
    payment_date: date
    village_id: int | None = None
    hamlet_id: int
    payment_amount: Decimal = Field(gt=0, max_digits=15, decimal_places=2)
    sppt_paid_count: int = Field(gt=0)
    payment_type: PaymentType
    notes: str | None = Field(default=None, max_length=2000)


class PaymentUpdatePayload(BaseModel):
    payment_date: date | None = None
    village_id: int | None = None
    hamlet_id: int | None = None
    payment_amount: Decimal | None = Field(default=None, gt=0, max_digits=15, decimal_places=2)
    sppt_paid_count: int | None = Field(default=None, gt=0)
    payment_type: PaymentType | None = None
    notes: str | None = Field(default=None, max_length=2000)


@router.get("")
def list_payments(
    village_id: int | None = None,
    hamlet_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    payment_type: PaymentType | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = PaymentService(db)
    items = service.list_payments(
        context=context,
        payment_filter=PaymentFilter(
            village_id=village_id,
            hamlet_id=hamlet_id,
            start_date=start_date,
            end_date=end_date,
            payment_type=payment_type,
        ),
    )
    return {"items": [service.serialize_payment(payment) for payment in items]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_payment(
    payload: PaymentCreatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = PaymentService(db)
    # Village users may omit village_id; scope resolution fills in their home village.
    payment = service.create_payment(
        context=context,
        data=PaymentCreateData(
            payment_date=payload.payment_date,
            village_id=payload.village_id,
            hamlet_id=payload.hamlet_id,
            payment_amount=payload.payment_amount,
            sppt_paid_count=payload.sppt_paid_count,
            payment_type=payload.payment_type,
            created_by=context.user_id,
            notes=payload.notes,
        ),
    )
    return service.serialize_payment(payment)


@router.patch("/{payment_id}")
def update_payment(
    payment_id: int,
    payload: PaymentUpdatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = PaymentService(db)
    payment = service.update_payment(
        context=context,
        payment_id=payment_id,
        data=PaymentUpdateData(
            payment_date=payload.payment_date,
            village_id=payload.village_id,
            hamlet_id=payload.hamlet_id,
            payment_amount=payload.payment_amount,
            sppt_paid_count=payload.sppt_paid_count,
            payment_type=payload.payment_type,
            notes=payload.notes,
            clear_notes="notes" in payload.model_fields_set and payload.notes is None,
        ),
    )
    return service.serialize_payment(payment)


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payment(
    payment_id: int,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    service = PaymentService(db)
    service.delete_payment(context=context, payment_id=payment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
