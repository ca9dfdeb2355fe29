"""Village registry endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from pbb_monitor.core.auth import RequestUserContext, get_current_user_context
from pbb_monitor.db.dependencies import get_db_session
from pbb_monitor.services.registry_service import RegistryService, VillageCreateData

router = APIRouter(prefix="/villages", tags=["villages"])


class VillageCreatePayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    code: str = Field(min_length=1, max_length=32)


@router.get("")
def list_villages(
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = RegistryService(db)
    items = service.list_villages(context=context)
    return {"items": [service.serialize_village(village) for village in items]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_village(
    payload: VillageCreatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = RegistryService(db)
    village = service.create_village(
        context=context,
        data=VillageCreateData(name=payload.name, code=payload.code),
    )
    return service.serialize_village(village)
