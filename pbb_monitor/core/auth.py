"""Authentication context extraction from trusted proxy headers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from pbb_monitor.core.config import get_settings
from pbb_monitor.db.dependencies import get_db_session
from pbb_monitor.models.entities import User, UserRole

logger = logging.getLogger(__name__)

# Credentials are verified upstream; the marker keeps the NOT NULL column honest
# for principals that never log in with a password.
EXTERNAL_PRINCIPAL_HASH = "!external"


@dataclass(frozen=True)
class RequestUserContext:
    """Authenticated request actor resolved from headers and DB state."""

    user_id: int
    username: str
    full_name: str
    role: UserRole
    village_id: int | None

    @property
    def is_super_admin(self) -> bool:
        """Whether current user is a platform administrator."""

        return self.role is UserRole.SUPER_ADMIN

    @property
    def home_village_id(self) -> int | None:
        """Village the caller is bound to; ``None`` for platform administrators."""

        if self.is_super_admin:
            return None
        return self.village_id


def _context_from_user(user: User) -> RequestUserContext:
    return RequestUserContext(
        user_id=user.id,
        username=user.username,
        full_name=user.full_name,
        role=user.role,
        village_id=user.village_id,
    )


def ensure_dev_principal(db: Session, *, username: str, full_name: str) -> User:
    """Ensure the development super-admin exists and return it.

    Utility exported for tests and seed helpers.
    """

    normalized = username.strip()
    user = db.scalar(select(User).where(User.username == normalized))
    if user is not None:
        return user

    now = datetime.utcnow()
    user = User(
        username=normalized,
        password_hash=EXTERNAL_PRINCIPAL_HASH,
        full_name=full_name.strip() or normalized,
        role=UserRole.SUPER_ADMIN,
        village_id=None,
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created development principal %s", normalized)
    return user


def _resolve_user(db: Session, x_pbb_username: str | None) -> User:
    settings = get_settings()
    if x_pbb_username and x_pbb_username.strip():
        user = db.scalar(select(User).where(User.username == x_pbb_username.strip()))
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Unknown user for X-PBB-USERNAME header.",
            )
        return user

    if settings.auth_allow_dev_principal:
        return ensure_dev_principal(
            db,
            username=settings.auth_dev_username,
            full_name=settings.auth_dev_full_name,
        )

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Missing identity header. Expected X-PBB-USERNAME or enable development principal fallback.",
    )


def get_current_user_context(
    x_pbb_username: str | None = Header(default=None, alias="X-PBB-USERNAME"),
    db: Session = Depends(get_db_session),
) -> RequestUserContext:
    """Resolve current request user.

    Header strategy: trusted username header set by the login proxy, which
    owns password verification.
    """

    user = _resolve_user(db, x_pbb_username)
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account is not active.",
        )
    return _context_from_user(user)

