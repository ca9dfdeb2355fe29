"""Target achievement dashboards."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pbb_monitor.core.auth import RequestUserContext, get_current_user_context
from pbb_monitor.db.dependencies import get_db_session
from pbb_monitor.services.dashboard_service import DashboardService

router = APIRouter(prefix="/dashboards", tags=["dashboards"])


@router.get("/villages")
def get_village_dashboard(
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = DashboardService(db)
    rows = service.village_dashboard(context=context)
    return {"items": [service.serialize_village_row(row) for row in rows]}


@router.get("/hamlets")
def get_hamlet_dashboard(
    village_id: int | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = DashboardService(db)
    rows = service.hamlet_dashboard(context=context, village_id=village_id)
    return {"items": [service.serialize_hamlet_row(row) for row in rows]}
