"""Current user endpoint."""

from fastapi import APIRouter, Depends

from pbb_monitor.core.auth import RequestUserContext, get_current_user_context

router = APIRouter(prefix="/me", tags=["me"])


@router.get("")
def get_me(context: RequestUserContext = Depends(get_current_user_context)) -> dict[str, object]:
    """Return current authenticated user and the village scope it resolves to."""

    return {
        "id": context.user_id,
        "username": context.username,
        "full_name": context.full_name,
        "role": context.role.value,
        "village_id": context.village_id,
        "scope": "all_villages" if context.is_super_admin else "village",
    }
