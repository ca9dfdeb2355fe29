from __future__ import annotations

import pytest

from pbb_monitor.core.auth import RequestUserContext
from pbb_monitor.core.errors import ForbiddenError
from pbb_monitor.core.scope import ensure_super_admin, ensure_village_in_scope, resolve_village_scope
from pbb_monitor.models.entities import UserRole


def _context(role: UserRole, village_id: int | None) -> RequestUserContext:
    return RequestUserContext(
        user_id=1,
        username="someone",
        full_name="Someone",
        role=role,
        village_id=village_id,
    )


def test_super_admin_filter_passes_through() -> None:
    context = _context(UserRole.SUPER_ADMIN, None)

    assert resolve_village_scope(context, None) is None
    assert resolve_village_scope(context, 9) == 9


def test_village_user_gets_home_village_when_filter_empty() -> None:
    context = _context(UserRole.VILLAGE_USER, 7)

    assert context.home_village_id == 7
    assert resolve_village_scope(context, None) == 7
    assert resolve_village_scope(context, 7) == 7


def test_village_user_cannot_name_other_village() -> None:
    context = _context(UserRole.VILLAGE_USER, 7)

    with pytest.raises(ForbiddenError) as exc_info:
        resolve_village_scope(context, 9)
    assert exc_info.value.kind == "forbidden"
    assert exc_info.value.details == {"village_id": 9}

    with pytest.raises(ForbiddenError):
        ensure_village_in_scope(context, 9)


def test_village_user_without_assignment_is_forbidden() -> None:
    context = _context(UserRole.VILLAGE_USER, None)

    with pytest.raises(ForbiddenError):
        resolve_village_scope(context, None)


def test_super_admin_home_village_is_none_even_if_stored() -> None:
    context = _context(UserRole.SUPER_ADMIN, 3)

    assert context.home_village_id is None
    ensure_super_admin(context)


def test_ensure_super_admin_rejects_village_user() -> None:
    with pytest.raises(ForbiddenError):
        ensure_super_admin(_context(UserRole.VILLAGE_USER, 7))
