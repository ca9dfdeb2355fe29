"""User administration endpoints (super admin only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from pbb_monitor.core.auth import RequestUserContext, get_current_user_context
from pbb_monitor.db.dependencies import get_db_session
from pbb_monitor.models.entities import UserRole
from pbb_monitor.services.registry_service import RegistryService, UserCreateData, UserUpdateData

router = APIRouter(prefix="/users", tags=["users"])


class UserCreatePayload(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password_hash: str = Field(min_length=1, max_length=255)
    full_name: str = Field(min_length=1, max_length=255)
    role: UserRole = UserRole.VILLAGE_USER
    village_id: int | None = None


class UserUpdatePayload(BaseModel):
    username: str | None = Field(default=None, min_length=1, max_length=64)
    password_hash: str | None = Field(default=None, min_length=1, max_length=255)
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    role: UserRole | None = None
    village_id: int | None = None
    is_active: bool | None = None


@router.get("")
def list_users(
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = RegistryService(db)
    items = service.list_users(context=context)
    return {"items": [service.serialize_user(user) for user in items]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = RegistryService(db)
    user = service.create_user(
        context=context,
        data=UserCreateData(
            username=payload.username,
            password_hash=payload.password_hash,
            full_name=payload.full_name,
            role=payload.role,
            village_id=payload.village_id,
        ),
    )
    return service.serialize_user(user)


@router.patch("/{user_id}")
def update_user(
    user_id: int,
    payload: UserUpdatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = RegistryService(db)
    user = service.update_user(
        context=context,
        user_id=user_id,
        data=UserUpdateData(
            username=payload.username,
            password_hash=payload.password_hash,
            full_name=payload.full_name,
            role=payload.role,
            village_id=payload.village_id,
            is_active=payload.is_active,
        ),
    )
    return service.serialize_user(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    service = RegistryService(db)
    service.delete_user(context=context, user_id=user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
