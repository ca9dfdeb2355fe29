"""Application service for villages, hamlets and user administration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pbb_monitor.core.auth import RequestUserContext
from pbb_monitor.core.errors import CapacityExceededError, ConflictError
from pbb_monitor.core.scope import ensure_super_admin, resolve_village_scope
from pbb_monitor.models.entities import MAX_HAMLETS_PER_VILLAGE, Hamlet, User, UserRole, Village
from pbb_monitor.repositories.pbb_repository import PbbRepository
from pbb_monitor.services.integrity_validator import IntegrityValidator

logger = logging.getLogger(__name__)

Q2 = Decimal("0.01")


def _q2(value: Decimal) -> Decimal:
    return value.quantize(Q2)


@dataclass(slots=True)
class VillageCreateData:
    name: str
    code: str


@dataclass(slots=True)
class HamletCreateData:
    village_id: int
    name: str
    head_name: str
    sppt_target: int
    pbb_target: Decimal


@dataclass(slots=True)
class HamletUpdateData:
    village_id: int | None = None
    name: str | None = None
    head_name: str | None = None
    sppt_target: int | None = None
    pbb_target: Decimal | None = None


@dataclass(slots=True)
class UserCreateData:
    username: str
    password_hash: str
    full_name: str
    role: UserRole
    village_id: int | None = None


@dataclass(slots=True)
class UserUpdateData:
    username: str | None = None
    password_hash: str | None = None
    full_name: str | None = None
    role: UserRole | None = None
    village_id: int | None = None
    is_active: bool | None = None


class RegistryService:
    """Service for the administrative hierarchy and its users."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = PbbRepository(db)
        self.validator = IntegrityValidator(self.repo)

    # ---------- Serialization ----------
    @staticmethod
    def serialize_village(village: Village) -> dict[str, object]:
        return {
            "id": village.id,
            "name": village.name,
            "code": village.code,
            "created_at": village.created_at.isoformat(),
            "updated_at": village.updated_at.isoformat(),
        }

    @staticmethod
    def serialize_hamlet(hamlet: Hamlet) -> dict[str, object]:
        return {
            "id": hamlet.id,
            "village_id": hamlet.village_id,
            "name": hamlet.name,
            "head_name": hamlet.head_name,
            "sppt_target": hamlet.sppt_target,
            "pbb_target": str(_q2(hamlet.pbb_target)),
            "created_at": hamlet.created_at.isoformat(),
            "updated_at": hamlet.updated_at.isoformat(),
        }

    @staticmethod
    def serialize_user(user: User) -> dict[str, object]:
        return {
            "id": user.id,
            "username": user.username,
            "full_name": user.full_name,
            "role": user.role.value,
            "village_id": user.village_id,
            "is_active": user.is_active,
            "created_at": user.created_at.isoformat(),
            "updated_at": user.updated_at.isoformat(),
        }

    # ---------- Villages ----------
    def list_villages(self, *, context: RequestUserContext) -> list[Village]:
        village_id = resolve_village_scope(context, None)
        return self.repo.list_villages(village_id=village_id)

    def create_village(self, *, context: RequestUserContext, data: VillageCreateData) -> Village:
        ensure_super_admin(context)

        code = data.code.strip()
        self.validator.validate_village_code_unique(code)

        now = datetime.utcnow()
        village = Village(name=data.name.strip(), code=code, created_at=now, updated_at=now)
        try:
            self.repo.add_village(village)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError(f"Village with code '{code}' already exists.") from exc

        self.db.refresh(village)
        logger.info("Created village %s (%s) id=%s", village.name, village.code, village.id)
        return village

    # ---------- Hamlets ----------
    def list_hamlets(self, *, context: RequestUserContext, village_id: int | None) -> list[Hamlet]:
        effective_village_id = resolve_village_scope(context, village_id)
        return self.repo.list_hamlets(village_id=effective_village_id)

    def _capacity_race_error(self, village_id: int, exc: IntegrityError) -> Exception:
        self.db.rollback()
        if self.repo.hamlet_count_for_village(village_id) >= MAX_HAMLETS_PER_VILLAGE:
            return CapacityExceededError(
                f"Village can have maximum {MAX_HAMLETS_PER_VILLAGE} hamlets.",
                details={"village_id": village_id},
            )
        logger.warning("Concurrent hamlet write lost slot race for village %s: %s", village_id, exc.orig)
        return ConflictError(
            "Hamlet slot was taken by a concurrent request; retry the operation.",
            details={"village_id": village_id},
        )

    def create_hamlet(self, *, context: RequestUserContext, data: HamletCreateData) -> Hamlet:
        ensure_super_admin(context)

        self.validator.validate_non_negative_count(data.sppt_target, "sppt_target")
        self.validator.validate_positive_amount(data.pbb_target, "pbb_target")
        self.validator.validate_money_scale(data.pbb_target, "pbb_target")
        slot_no = self.validator.validate_hamlet_create(data.village_id)

        now = datetime.utcnow()
        hamlet = Hamlet(
            village_id=data.village_id,
            slot_no=slot_no,
            name=data.name.strip(),
            head_name=data.head_name.strip(),
            sppt_target=data.sppt_target,
            pbb_target=_q2(data.pbb_target),
            created_at=now,
            updated_at=now,
        )
        try:
            self.repo.add_hamlet(hamlet)
            self.db.commit()
        except IntegrityError as exc:
            raise self._capacity_race_error(data.village_id, exc) from exc

        self.db.refresh(hamlet)
        logger.info("Created hamlet %s in village %s (slot %s)", hamlet.id, hamlet.village_id, hamlet.slot_no)
        return hamlet

    def update_hamlet(self, *, context: RequestUserContext, hamlet_id: int, data: HamletUpdateData) -> Hamlet:
        ensure_super_admin(context)

        hamlet = self.validator.require_hamlet(hamlet_id)
        if data.sppt_target is not None:
            self.validator.validate_non_negative_count(data.sppt_target, "sppt_target")
        if data.pbb_target is not None:
            self.validator.validate_non_negative_amount(data.pbb_target, "pbb_target")
            self.validator.validate_money_scale(data.pbb_target, "pbb_target")

        target_village_id = hamlet.village_id
        if data.village_id is not None and data.village_id != hamlet.village_id:
            hamlet.slot_no = self.validator.validate_hamlet_reassignment(hamlet, data.village_id)
            target_village_id = data.village_id
            hamlet.village_id = data.village_id

        if data.name is not None:
            hamlet.name = data.name.strip()
        if data.head_name is not None:
            hamlet.head_name = data.head_name.strip()
        if data.sppt_target is not None:
            hamlet.sppt_target = data.sppt_target
        if data.pbb_target is not None:
            hamlet.pbb_target = _q2(data.pbb_target)
        hamlet.updated_at = datetime.utcnow()

        try:
            self.db.commit()
        except IntegrityError as exc:
            raise self._capacity_race_error(target_village_id, exc) from exc

        self.db.refresh(hamlet)
        logger.info("Updated hamlet %s", hamlet.id)
        return hamlet

    # ---------- Users ----------
    def list_users(self, *, context: RequestUserContext) -> list[User]:
        ensure_super_admin(context)
        return self.repo.list_users()

    def create_user(self, *, context: RequestUserContext, data: UserCreateData) -> User:
        ensure_super_admin(context)

        username = data.username.strip()
        self.validator.validate_username_unique(username)
        self.validator.validate_user_scope(data.role, data.village_id)

        now = datetime.utcnow()
        user = User(
            username=username,
            password_hash=data.password_hash,
            full_name=data.full_name.strip(),
            role=data.role,
            village_id=data.village_id,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        try:
            self.repo.add_user(user)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError(f"Username '{username}' already exists.") from exc

        self.db.refresh(user)
        logger.info("Created %s user %s", user.role.value, user.username)
        return user

    def update_user(self, *, context: RequestUserContext, user_id: int, data: UserUpdateData) -> User:
        ensure_super_admin(context)
        user = self.validator.require_user(user_id)

        target_role = data.role or user.role
        if target_role is UserRole.SUPER_ADMIN:
            target_village_id = data.village_id
        else:
            target_village_id = data.village_id if data.village_id is not None else user.village_id
        self.validator.validate_user_scope(target_role, target_village_id)

        if data.username is not None:
            username = data.username.strip()
            self.validator.validate_username_unique(username, exclude_user_id=user.id)
            user.username = username
        if data.password_hash is not None:
            user.password_hash = data.password_hash
        if data.full_name is not None:
            user.full_name = data.full_name.strip()
        if data.is_active is not None:
            user.is_active = data.is_active
        user.role = target_role
        user.village_id = target_village_id
        user.updated_at = datetime.utcnow()

        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("Username already exists.") from exc

        self.db.refresh(user)
        logger.info("Updated user %s", user.username)
        return user

    def delete_user(self, *, context: RequestUserContext, user_id: int) -> None:
        """Soft delete: the row stays and keeps authoring its payments."""

        ensure_super_admin(context)
        user = self.validator.require_user(user_id)
        user.is_active = False
        user.updated_at = datetime.utcnow()
        self.db.commit()
        logger.info("Deactivated user %s", user.username)
