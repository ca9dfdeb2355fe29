"""Per-payment report endpoint."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pbb_monitor.core.auth import RequestUserContext, get_current_user_context
from pbb_monitor.db.dependencies import get_db_session
from pbb_monitor.models.entities import PaymentType
from pbb_monitor.repositories.pbb_repository import PaymentFilter
from pbb_monitor.services.dashboard_service import DashboardService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/payments")
def get_payment_report(
    village_id: int | None = None,
    hamlet_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    payment_type: PaymentType | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = DashboardService(db)
    rows = service.payment_report(
        context=context,
        payment_filter=PaymentFilter(
            village_id=village_id,
            hamlet_id=hamlet_id,
            start_date=start_date,
            end_date=end_date,
            payment_type=payment_type,
        ),
    )
    return {
        "filters": {
            "village_id": village_id,
            "hamlet_id": hamlet_id,
            "start_date": start_date.isoformat() if start_date else None,
            "end_date": end_date.isoformat() if end_date else None,
            "payment_type": payment_type.value if payment_type else None,
        },
        "items": [service.serialize_report_row(row) for row in rows],
    }
