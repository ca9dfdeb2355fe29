from __future__ import annotations

from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from pbb_monitor.models.entities import User, UserRole
from tests.factories import auth_headers, create_hamlet, create_payment, create_user, create_village


def _hamlet_payload(village_id: int, name: str, **overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "village_id": village_id,
        "name": name,
        "head_name": f"Kepala {name}",
        "sppt_target": 100,
        "pbb_target": "50000.00",
    }
    payload.update(overrides)
    return payload


def test_village_create_and_duplicate_code(client: TestClient, admin: User) -> None:
    headers = auth_headers()

    created = client.post("/api/v1/villages", json={"name": "Alpha", "code": "ALP"}, headers=headers)
    assert created.status_code == 201
    assert created.json()["code"] == "ALP"

    duplicate = client.post("/api/v1/villages", json={"name": "Alpha Dua", "code": "ALP"}, headers=headers)
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "conflict"

    listing = client.get("/api/v1/villages", headers=headers)
    assert listing.status_code == 200
    assert [item["name"] for item in listing.json()["items"]] == ["Alpha"]


def test_village_user_sees_only_home_village_and_cannot_create(
    client: TestClient, db_session: Session
) -> None:
    alpha = create_village(db_session, name="Alpha", code="ALP")
    create_village(db_session, name="Beta", code="BET")
    create_user(db_session, username="operator.alpha", village=alpha)

    listing = client.get("/api/v1/villages", headers=auth_headers("operator.alpha"))
    assert listing.status_code == 200
    assert [item["id"] for item in listing.json()["items"]] == [alpha.id]

    forbidden = client.post(
        "/api/v1/villages",
        json={"name": "Gamma", "code": "GAM"},
        headers=auth_headers("operator.alpha"),
    )
    assert forbidden.status_code == 403
    assert forbidden.json()["error"] == "forbidden"


def test_hamlet_capacity_is_five_per_village(client: TestClient, db_session: Session, admin: User) -> None:
    village = create_village(db_session, name="Alpha", code="ALP")
    headers = auth_headers()

    for index in range(1, 6):
        response = client.post("/api/v1/hamlets", json=_hamlet_payload(village.id, f"Dusun {index}"), headers=headers)
        assert response.status_code == 201, response.text

    sixth = client.post("/api/v1/hamlets", json=_hamlet_payload(village.id, "Dusun 6"), headers=headers)
    assert sixth.status_code == 409
    assert sixth.json()["error"] == "capacity_exceeded"

    listing = client.get("/api/v1/hamlets", params={"village_id": village.id}, headers=headers)
    assert len(listing.json()["items"]) == 5


def test_hamlet_create_validates_village_and_targets(client: TestClient, db_session: Session, admin: User) -> None:
    village = create_village(db_session, name="Alpha", code="ALP")
    headers = auth_headers()

    missing_village = client.post("/api/v1/hamlets", json=_hamlet_payload(999, "Dusun X"), headers=headers)
    assert missing_village.status_code == 404
    assert missing_village.json()["error"] == "not_found"

    zero_target = client.post(
        "/api/v1/hamlets",
        json=_hamlet_payload(village.id, "Dusun Nol", pbb_target="0"),
        headers=headers,
    )
    assert zero_target.status_code == 422
    assert zero_target.json()["error"] == "invalid"

    fractional = client.post(
        "/api/v1/hamlets",
        json=_hamlet_payload(village.id, "Dusun Pecahan", pbb_target="100.005"),
        headers=headers,
    )
    assert fractional.status_code == 422
    assert fractional.json()["error"] == "invalid"

    oversized = client.post(
        "/api/v1/hamlets",
        json=_hamlet_payload(village.id, "Dusun Raksasa", pbb_target="1e30"),
        headers=headers,
    )
    assert oversized.status_code == 422
    assert oversized.json()["error"] == "invalid"


def test_hamlet_update_allows_zero_target_and_rejects_full_destination(
    client: TestClient, db_session: Session, admin: User
) -> None:
    alpha = create_village(db_session, name="Alpha", code="ALP")
    beta = create_village(db_session, name="Beta", code="BET")
    hamlet = create_hamlet(db_session, village=alpha, name="Dusun A", slot_no=1)
    for slot_no in range(1, 6):
        create_hamlet(db_session, village=beta, name=f"Dusun B{slot_no}", slot_no=slot_no)
    headers = auth_headers()

    zeroed = client.patch(f"/api/v1/hamlets/{hamlet.id}", json={"pbb_target": "0"}, headers=headers)
    assert zeroed.status_code == 200
    assert zeroed.json()["pbb_target"] == "0.00"

    moved = client.patch(f"/api/v1/hamlets/{hamlet.id}", json={"village_id": beta.id}, headers=headers)
    assert moved.status_code == 409
    assert moved.json()["error"] == "capacity_exceeded"


def test_hamlet_reassignment(client: TestClient, db_session: Session, admin: User) -> None:
    alpha = create_village(db_session, name="Alpha", code="ALP")
    beta = create_village(db_session, name="Beta", code="BET")
    quiet = create_hamlet(db_session, village=alpha, name="Dusun Sepi", slot_no=1)
    busy = create_hamlet(db_session, village=alpha, name="Dusun Ramai", slot_no=2)
    create_payment(db_session, hamlet=busy, created_by=admin, amount=Decimal("1000.00"), sppt_paid_count=1)
    headers = auth_headers()

    moved = client.patch(f"/api/v1/hamlets/{quiet.id}", json={"village_id": beta.id}, headers=headers)
    assert moved.status_code == 200
    assert moved.json()["village_id"] == beta.id

    blocked = client.patch(f"/api/v1/hamlets/{busy.id}", json={"village_id": beta.id}, headers=headers)
    assert blocked.status_code == 422
    assert blocked.json()["error"] == "mismatch"

    missing = client.patch(f"/api/v1/hamlets/{quiet.id}", json={"village_id": 999}, headers=headers)
    assert missing.status_code == 404


def test_user_admin_flow(client: TestClient, db_session: Session, admin: User) -> None:
    village = create_village(db_session, name="Alpha", code="ALP")
    headers = auth_headers()

    created = client.post(
        "/api/v1/users",
        json={
            "username": "operator.alpha",
            "password_hash": "$2b$10$abcdefghijklmnopqrstuv",
            "full_name": "Operator Alpha",
            "role": "village_user",
            "village_id": village.id,
        },
        headers=headers,
    )
    assert created.status_code == 201
    payload = created.json()
    assert payload["village_id"] == village.id
    assert "password_hash" not in payload

    duplicate = client.post(
        "/api/v1/users",
        json={
            "username": "operator.alpha",
            "password_hash": "x",
            "full_name": "Someone Else",
            "role": "village_user",
            "village_id": village.id,
        },
        headers=headers,
    )
    assert duplicate.status_code == 409

    admin_with_village = client.post(
        "/api/v1/users",
        json={
            "username": "second.admin",
            "password_hash": "x",
            "full_name": "Second Admin",
            "role": "super_admin",
            "village_id": village.id,
        },
        headers=headers,
    )
    assert admin_with_village.status_code == 422

    village_user_without_village = client.post(
        "/api/v1/users",
        json={"username": "orphan", "password_hash": "x", "full_name": "Orphan", "role": "village_user"},
        headers=headers,
    )
    assert village_user_without_village.status_code == 422

    user_id = payload["id"]
    promoted = client.patch(f"/api/v1/users/{user_id}", json={"role": "super_admin"}, headers=headers)
    assert promoted.status_code == 200
    assert promoted.json()["role"] == "super_admin"
    assert promoted.json()["village_id"] is None

    deleted = client.delete(f"/api/v1/users/{user_id}", headers=headers)
    assert deleted.status_code == 204

    listing = client.get("/api/v1/users", headers=headers)
    deactivated = next(item for item in listing.json()["items"] if item["id"] == user_id)
    assert deactivated["is_active"] is False

    locked_out = client.get("/api/v1/me", headers=auth_headers("operator.alpha"))
    assert locked_out.status_code == 401


def test_user_admin_requires_super_admin(client: TestClient, db_session: Session) -> None:
    village = create_village(db_session, name="Alpha", code="ALP")
    create_user(db_session, username="operator.alpha", role=UserRole.VILLAGE_USER, village=village)

    response = client.get("/api/v1/users", headers=auth_headers("operator.alpha"))

    assert response.status_code == 403
