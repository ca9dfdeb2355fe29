"""Hamlet registry endpoints."""

from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from pbb_monitor.core.auth import RequestUserContext, get_current_user_context
from pbb_monitor.db.dependencies import get_db_session
from pbb_monitor.services.registry_service import HamletCreateData, HamletUpdateData, RegistryService

router = APIRouter(prefix="/hamlets", tags=["hamlets"])


class HamletCreatePayload(BaseModel):
    village_id: int
    name: str = Field(min_length=1, max_length=255)
    head_name: str = Field(min_length=1, max_length=255)
    sppt_target: int = Field(ge=0)
    pbb_target: Decimal = Field(gt=0, max_digits=15, decimal_places=2)


class HamletUpdatePayload(BaseModel):
    village_id: int | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    head_name: str | None = Field(default=None, min_length=1, max_length=255)
    sppt_target: int | None = Field(default=None, ge=0)
    pbb_target: Decimal | None = Field(default=None, ge=0, max_digits=15, decimal_places=2)


@router.get("")
def list_hamlets(
    village_id: int | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = RegistryService(db)
    items = service.list_hamlets(context=context, village_id=village_id)
    return {"items": [service.serialize_hamlet(hamlet) for hamlet in items]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_hamlet(
    payload: HamletCreatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = RegistryService(db)
    hamlet = service.create_hamlet(
        context=context,
        data=HamletCreateData(
            village_id=payload.village_id,
            name=payload.name,
            head_name=payload.head_name,
            sppt_target=payload.sppt_target,
            pbb_target=payload.pbb_target,
        ),
    )
    return service.serialize_hamlet(hamlet)


@router.patch("/{hamlet_id}")
def update_hamlet(
    hamlet_id: int,
    payload: HamletUpdatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = RegistryService(db)
    hamlet = service.update_hamlet(
        context=context,
        hamlet_id=hamlet_id,
        data=HamletUpdateData(
            village_id=payload.village_id,
            name=payload.name,
            head_name=payload.head_name,
            sppt_target=payload.sppt_target,
            pbb_target=payload.pbb_target,
        ),
    )
    return service.serialize_hamlet(hamlet)
