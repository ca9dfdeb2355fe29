"""Structural invariants of the village / hamlet / payment graph.

All checks are read-only and run before a write is flushed. When several
references are invalid at once the first failing check wins, in this fixed
order for payments: village, creator user, hamlet, hamlet/village agreement.
"""

from __future__ import annotations

from decimal import Decimal

from pbb_monitor.core.errors import (
    CapacityExceededError,
    ConflictError,
    InvalidError,
    MismatchError,
    NotFoundError,
)
from pbb_monitor.models.entities import MAX_HAMLETS_PER_VILLAGE, Hamlet, User, UserRole, Village
from pbb_monitor.repositories.pbb_repository import PbbRepository

ZERO = Decimal("0.00")
# Numeric(15, 2) leaves 13 integer digits, i.e. values below 10**13.
MONEY_MAX_ADJUSTED_EXPONENT = 12


class IntegrityValidator:
    """Read-only invariant checks consulted on every write path."""

    def __init__(self, repo: PbbRepository) -> None:
        self.repo = repo

    # ---------- References ----------
    def require_village(self, village_id: int, *, lock: bool = False) -> Village:
        village = self.repo.lock_village(village_id) if lock else self.repo.get_village(village_id)
        if village is None:
            raise NotFoundError("Village not found.", details={"village_id": village_id})
        return village

    def require_hamlet(self, hamlet_id: int) -> Hamlet:
        hamlet = self.repo.get_hamlet(hamlet_id)
        if hamlet is None:
            raise NotFoundError("Hamlet not found.", details={"hamlet_id": hamlet_id})
        return hamlet

    def require_user(self, user_id: int) -> User:
        user = self.repo.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found.", details={"user_id": user_id})
        return user

    # ---------- Hamlets ----------
    def validate_hamlet_create(self, village_id: int) -> int:
        """Check the village exists and has room; return the hamlet slot to occupy.

        The village row is locked for the rest of the transaction where the
        store supports it. The returned slot is additionally protected by the
        ``(village_id, slot_no)`` unique constraint, which is what ultimately
        stops two concurrent creates from both committing.
        """

        self.require_village(village_id, lock=True)
        used_slots = self.repo.used_hamlet_slots(village_id)
        if len(used_slots) >= MAX_HAMLETS_PER_VILLAGE:
            raise CapacityExceededError(
                f"Village can have maximum {MAX_HAMLETS_PER_VILLAGE} hamlets.",
                details={"village_id": village_id},
            )
        return min(slot for slot in range(1, MAX_HAMLETS_PER_VILLAGE + 1) if slot not in used_slots)

    def validate_hamlet_belongs_to_village(self, hamlet_id: int, village_id: int) -> Hamlet:
        hamlet = self.require_hamlet(hamlet_id)
        if hamlet.village_id != village_id:
            raise MismatchError(
                "Hamlet does not belong to the specified village.",
                details={"hamlet_id": hamlet_id, "village_id": village_id},
            )
        return hamlet

    def validate_hamlet_reassignment(self, hamlet: Hamlet, new_village_id: int) -> int:
        """Validate moving ``hamlet`` to another village; return its slot there.

        Checks run in the order destination village, recorded payments,
        capacity. Payments keep their own ``village_id``, so a hamlet with recorded
        payments cannot move without breaking the payment/hamlet agreement.
        """

        self.require_village(new_village_id, lock=True)
        if self.repo.payment_count_for_hamlet(hamlet.id) > 0:
            raise MismatchError(
                "Hamlet has payments recorded under its current village and cannot be reassigned.",
                details={"hamlet_id": hamlet.id, "village_id": hamlet.village_id},
            )
        return self.validate_hamlet_create(new_village_id)

    # ---------- Payments ----------
    def validate_payment_references(self, village_id: int, hamlet_id: int, created_by: int) -> Hamlet:
        self.require_village(village_id)
        self.require_user(created_by)
        return self.validate_hamlet_belongs_to_village(hamlet_id, village_id)

    # ---------- Uniqueness ----------
    def validate_village_code_unique(self, code: str) -> None:
        if self.repo.get_village_by_code(code) is not None:
            raise ConflictError(f"Village with code '{code}' already exists.")

    def validate_username_unique(self, username: str, *, exclude_user_id: int | None = None) -> None:
        existing = self.repo.get_user_by_username(username)
        if existing is not None and existing.id != exclude_user_id:
            raise ConflictError(f"Username '{username}' already exists.")

    def validate_user_scope(self, role: UserRole, village_id: int | None) -> None:
        if role is UserRole.SUPER_ADMIN:
            if village_id is not None:
                raise InvalidError("super_admin users must not include village_id.")
            return
        if village_id is None:
            raise InvalidError("village_user users require village_id.")
        self.require_village(village_id)

    # ---------- Schema-level values ----------
    @staticmethod
    def validate_positive_amount(value: Decimal, field_name: str) -> None:
        if value <= ZERO:
            raise InvalidError(f"{field_name} must be greater than zero.")

    @staticmethod
    def validate_non_negative_amount(value: Decimal, field_name: str) -> None:
        if value < ZERO:
            raise InvalidError(f"{field_name} must be greater than or equal to zero.")

    @staticmethod
    def validate_positive_count(value: int, field_name: str) -> None:
        if value <= 0:
            raise InvalidError(f"{field_name} must be greater than zero.")

    @staticmethod
    def validate_non_negative_count(value: int, field_name: str) -> None:
        if value < 0:
            raise InvalidError(f"{field_name} must be greater than or equal to zero.")

    @staticmethod
    def validate_money_scale(value: Decimal, field_name: str) -> None:
        """Reject amounts that do not fit ``Numeric(15, 2)``; inspects digits, never quantizes."""

        if not value.is_finite():
            raise InvalidError(f"{field_name} must be a finite number.")
        if value.adjusted() > MONEY_MAX_ADJUSTED_EXPONENT:
            raise InvalidError(f"{field_name} must have at most 13 integer digits.")
        _, digits, exponent = value.as_tuple()
        if exponent < -2 and any(digits[exponent + 2 :]):
            raise InvalidError(f"{field_name} must have at most 2 fractional digits.")
