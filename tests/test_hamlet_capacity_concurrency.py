from __future__ import annotations

import threading
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import create_engine, event, func, select
from sqlalchemy.orm import Session, sessionmaker

from pbb_monitor.core.errors import CapacityExceededError, ConflictError
from pbb_monitor.db.base import Base
from pbb_monitor.models.entities import Hamlet, PbbPayment, User, UserRole, Village
from pbb_monitor.repositories.pbb_repository import PbbRepository
from pbb_monitor.services.registry_service import HamletCreateData, RegistryService
from tests.factories import context_for, create_hamlet, create_user, create_village

TABLES = [Village.__table__, User.__table__, Hamlet.__table__, PbbPayment.__table__]


def _hamlet_data(village_id: int, name: str) -> HamletCreateData:
    return HamletCreateData(
        village_id=village_id,
        name=name,
        head_name=f"Kepala {name}",
        sppt_target=10,
        pbb_target=Decimal("1000.00"),
    )


def _hamlet_count(db: Session, village_id: int) -> int:
    return db.scalar(select(func.count()).select_from(Hamlet).where(Hamlet.village_id == village_id))


def test_stale_capacity_read_on_full_village_reports_capacity(
    db_session: Session, admin: User, monkeypatch: pytest.MonkeyPatch
) -> None:
    village = create_village(db_session, name="Alpha", code="ALP")
    for slot_no in range(1, 6):
        create_hamlet(db_session, village=village, name=f"Dusun {slot_no}", slot_no=slot_no)

    # Simulates a capacity read taken before a concurrent writer filled slot 5.
    monkeypatch.setattr(PbbRepository, "used_hamlet_slots", lambda self, village_id: {1, 2, 3, 4})

    with pytest.raises(CapacityExceededError):
        RegistryService(db_session).create_hamlet(context=context_for(admin), data=_hamlet_data(village.id, "Dusun 6"))

    assert _hamlet_count(db_session, village.id) == 5


def test_stale_slot_read_with_room_left_reports_retryable_conflict(
    db_session: Session, admin: User, monkeypatch: pytest.MonkeyPatch
) -> None:
    village = create_village(db_session, name="Alpha", code="ALP")
    for slot_no in range(1, 4):
        create_hamlet(db_session, village=village, name=f"Dusun {slot_no}", slot_no=slot_no)

    monkeypatch.setattr(PbbRepository, "used_hamlet_slots", lambda self, village_id: {1, 2})

    with pytest.raises(ConflictError):
        RegistryService(db_session).create_hamlet(context=context_for(admin), data=_hamlet_data(village.id, "Dusun 4"))

    assert _hamlet_count(db_session, village.id) == 3


def test_concurrent_creates_for_last_slot_admit_exactly_one(tmp_path: Path) -> None:
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'pbb.db'}",
        connect_args={"check_same_thread": False, "timeout": 15},
        future=True,
    )

    # SQLite ignores FOR UPDATE; an immediate write transaction takes the
    # place of the village row lock.
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(bind=engine, tables=TABLES)
    SessionFactory = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    with SessionFactory() as seed:
        admin = create_user(seed, username="super.admin", role=UserRole.SUPER_ADMIN)
        village = create_village(seed, name="Alpha", code="ALP")
        for slot_no in range(1, 5):
            create_hamlet(seed, village=village, name=f"Dusun {slot_no}", slot_no=slot_no)
        context = context_for(admin)
        village_id = village.id

    start = threading.Barrier(2)

    outcomes: list[object] = []
    lock = threading.Lock()

    def worker(name: str) -> None:
        start.wait(timeout=10)
        with SessionFactory() as session:
            try:
                hamlet = RegistryService(session).create_hamlet(context=context, data=_hamlet_data(village_id, name))
                result: object = hamlet.slot_no
            except (CapacityExceededError, ConflictError) as exc:
                result = exc
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=worker, args=(f"Dusun Baru {index}",)) for index in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert len(outcomes) == 2
    assert sorted(outcome for outcome in outcomes if isinstance(outcome, int)) == [5]
    failures = [outcome for outcome in outcomes if not isinstance(outcome, int)]
    assert len(failures) == 1
    assert isinstance(failures[0], CapacityExceededError)

    with SessionFactory() as check:
        assert _hamlet_count(check, village_id) == 5

    engine.dispose()
