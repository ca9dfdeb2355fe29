"""Village scope resolution for request actors.

Every engine entry point narrows its village filter through
``resolve_village_scope`` once, before any store access, so role branching
lives here and nowhere else.
"""

from __future__ import annotations

from pbb_monitor.core.auth import RequestUserContext
from pbb_monitor.core.errors import ForbiddenError


def resolve_village_scope(context: RequestUserContext, village_id: int | None) -> int | None:
    """Return the effective village filter for ``context``.

    Platform administrators pass through unchanged (``None`` means all
    villages). Village-scoped users get their home village injected when the
    filter is empty and are rejected when it names any other village.
    """

    if context.is_super_admin:
        return village_id

    home_village_id = context.home_village_id
    if home_village_id is None:
        raise ForbiddenError("Village user has no village assignment.")
    if village_id is None:
        return home_village_id
    if village_id != home_village_id:
        raise ForbiddenError(
            "Village users may only access their own village.",
            details={"village_id": village_id},
        )
    return village_id


def ensure_village_in_scope(context: RequestUserContext, village_id: int) -> None:
    """Reject access to a stored row whose village lies outside the caller's scope."""

    resolve_village_scope(context, village_id)


def ensure_super_admin(context: RequestUserContext) -> None:
    if not context.is_super_admin:
        raise ForbiddenError("Only super_admin can perform this operation.")
