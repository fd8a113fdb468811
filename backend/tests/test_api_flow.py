from datetime import datetime

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.models.base import BaseModel
from app.api.dependencies import get_db
from app.api.auth import create_access_token
from app.models import Signature, User, UserRole
from app.services import booking_lifecycle


def setup_app():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    BaseModel.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, expire_on_commit=False)

    def override_db():
        db = Session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_db
    return Session


def _seed_users(Session):
    db = Session()
    users = {
        "admin": User(email="admin@test.com", password="x", first_name="Ada", last_name="Admin", role=UserRole.ADMIN),
        "client": User(email="client@test.com", password="x", first_name="Cy", last_name="Client", role=UserRole.CLIENT),
        "a": User(email="a@test.com", password="x", first_name="Ana", last_name="Alpha", role=UserRole.TALENT),
        "b": User(email="b@test.com", password="x", first_name="Ben", last_name="Beta", role=UserRole.TALENT),
        "c": User(email="c@test.com", password="x", first_name="Cleo", last_name="Gamma", role=UserRole.TALENT),
    }
    db.add_all(users.values())
    db.commit()
    for user in users.values():
        db.refresh(user)
    db.close()
    return users


def _auth(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}


def _create_booking(client, users):
    return client.post(
        "/api/v1/bookings",
        json={
            "title": "Spring Shoot",
            "start_date": "2024-03-15T09:00:00",
            "end_date": "2024-03-17T18:00:00",
            "client_id": users["client"].id,
        },
        headers=_auth(users["admin"]),
    )


def test_booking_to_signed_contract_end_to_end():
    Session = setup_app()
    users = _seed_users(Session)
    admin = _auth(users["admin"])
    client = TestClient(app)

    # Booking opens in inquiry with a sequential code
    res = _create_booking(client, users)
    assert res.status_code == 201
    booking = res.json()
    assert booking["status"] == "inquiry"
    assert booking["code"] == f"BK-{datetime.utcnow().year}-0001"
    booking_id = booking["id"]

    # Fan-out to A and B, then A and C: only C is new
    res = client.post(
        f"/api/v1/bookings/{booking_id}/send-requests",
        json={"talent_ids": [users["a"].id, users["b"].id]},
        headers=admin,
    )
    assert res.status_code == 200
    created = {row["talent_id"]: row for row in res.json()["created"]}
    assert set(created) == {users["a"].id, users["b"].id}
    assert {row["request_status"] for row in created.values()} == {"pending"}

    res = client.post(
        f"/api/v1/bookings/{booking_id}/send-requests",
        json={"talent_ids": [users["a"].id, users["c"].id]},
        headers=admin,
    )
    body = res.json()
    assert [row["talent_id"] for row in body["created"]] == [users["c"].id]
    assert body["skipped_talent_ids"] == [users["a"].id]
    link_a = created[users["a"].id]["id"]
    link_b = created[users["b"].id]["id"]

    # Talent A accepts
    res = client.post(
        f"/api/v1/booking-requests/{link_a}/respond",
        json={"status": "accepted", "message": "Count me in"},
        headers=_auth(users["a"]),
    )
    assert res.status_code == 200
    assert res.json()["request_status"] == "accepted"

    # B is still pending, so no contract for B
    res = client.post(
        "/api/v1/contracts",
        json={"booking_id": booking_id, "booking_talent_id": link_b},
        headers=admin,
    )
    assert res.status_code == 409
    assert res.json()["detail"]["field_errors"] == {"booking_talent_id": "not_accepted"}

    res = client.post(
        "/api/v1/contracts",
        json={"booking_id": booking_id, "booking_talent_id": link_a},
        headers=admin,
    )
    assert res.status_code == 201
    contract = res.json()
    assert contract["status"] == "draft"
    assert contract["signatures"] == []

    res = client.post(f"/api/v1/contracts/{contract['id']}/send", headers=admin)
    assert res.status_code == 200
    sent = res.json()
    assert sent["status"] == "sent"
    assert [(s["signer_id"], s["status"]) for s in sent["signatures"]] == [(users["a"].id, "pending")]

    res = client.post(
        f"/api/v1/contracts/{contract['id']}/sign",
        json={"signature_image_url": "data:image/png;base64,AAAA"},
        headers={**_auth(users["a"]), "User-Agent": "flow-test/1.0"},
    )
    assert res.status_code == 200
    signed = res.json()
    assert signed["status"] == "signed"
    signature = signed["signatures"][0]
    assert signature["status"] == "signed"
    assert signature["signed_at"] is not None
    assert signature["user_agent"] == "flow-test/1.0"
    assert signature["ip_address"]

    # Signing twice is rejected and leaves the signature untouched
    res = client.post(
        f"/api/v1/contracts/{contract['id']}/sign",
        json={"signature_image_url": "data:image/png;base64,BBBB"},
        headers=_auth(users["a"]),
    )
    assert res.status_code == 409
    db = Session()
    assert db.query(Signature).one().signature_image_url == "data:image/png;base64,AAAA"
    db.close()

    res = client.get(f"/api/v1/bookings/{booking_id}", headers=_auth(users["client"]))
    assert res.json()["status"] == "signed"
    app.dependency_overrides.clear()


def test_booking_create_permissions_and_validation():
    Session = setup_app()
    users = _seed_users(Session)
    client = TestClient(app)
    payload = {"title": "Gig", "start_date": "2030-01-02T10:00:00", "end_date": "2030-01-02T12:00:00"}

    res = client.post("/api/v1/bookings", json=payload, headers=_auth(users["a"]))
    assert res.status_code == 403
    res = client.post("/api/v1/bookings", json=payload, headers=_auth(users["admin"]))
    assert res.status_code == 422
    res = client.post(
        "/api/v1/bookings", json={**payload, "client_id": users["b"].id}, headers=_auth(users["admin"])
    )
    assert res.status_code == 404
    res = client.post(
        "/api/v1/bookings",
        json={**payload, "end_date": "2030-01-01T10:00:00"},
        headers=_auth(users["client"]),
    )
    assert res.status_code == 422

    res = client.post("/api/v1/bookings", json=payload, headers=_auth(users["client"]))
    assert res.status_code == 201
    assert res.json()["client_id"] == users["client"].id
    app.dependency_overrides.clear()


def test_booking_visibility_and_status_updates():
    Session = setup_app()
    users = _seed_users(Session)
    client = TestClient(app)
    admin = _auth(users["admin"])
    booking_id = _create_booking(client, users).json()["id"]
    client.post(
        f"/api/v1/bookings/{booking_id}/send-requests",
        json={"talent_ids": [users["a"].id, users["b"].id]},
        headers=admin,
    )

    res = client.get("/api/v1/bookings", headers=_auth(users["client"]))
    assert res.json()["total"] == 1
    res = client.get("/api/v1/bookings", headers=_auth(users["c"]))
    assert res.json()["total"] == 0
    assert client.get(f"/api/v1/bookings/{booking_id}", headers=_auth(users["c"])).status_code == 403
    assert client.get("/api/v1/bookings/999", headers=admin).status_code == 404

    res = client.get(f"/api/v1/bookings/{booking_id}", headers=_auth(users["a"]))
    assert [t["talent_id"] for t in res.json()["talents"]] == [users["a"].id]
    res = client.get(f"/api/v1/bookings/{booking_id}", headers=admin)
    assert len(res.json()["talents"]) == 2

    res = client.patch(f"/api/v1/bookings/{booking_id}", json={"status": "signed"}, headers=admin)
    assert res.status_code == 409
    assert res.json()["detail"]["field_errors"] == {"status": "signed_contract_required"}

    res = client.patch(
        f"/api/v1/bookings/{booking_id}",
        json={"status": "cancelled", "notes": "Client postponed"},
        headers=admin,
    )
    assert res.status_code == 200
    assert res.json()["status"] == "cancelled"
    assert res.json()["notes"] == "Client postponed"

    res = client.patch(f"/api/v1/bookings/{booking_id}", json={"status": "inquiry"}, headers=admin)
    assert res.status_code == 409
    res = client.patch(
        f"/api/v1/bookings/{booking_id}", json={"notes": "x"}, headers=_auth(users["client"])
    )
    assert res.status_code == 403

    res = client.get("/api/v1/bookings", params={"status": "cancelled"}, headers=admin)
    assert res.json()["total"] == 1
    app.dependency_overrides.clear()


def test_contract_endpoints_templates_pdf_and_access():
    Session = setup_app()
    users = _seed_users(Session)
    client = TestClient(app)
    admin = _auth(users["admin"])
    booking_id = _create_booking(client, users).json()["id"]
    link = client.post(
        f"/api/v1/bookings/{booking_id}/send-requests",
        json={"talent_ids": [users["a"].id]},
        headers=admin,
    ).json()["created"][0]["id"]
    client.post(f"/api/v1/booking-requests/{link}/respond", json={"status": "accepted"}, headers=_auth(users["a"]))

    res = client.get("/api/v1/contract-templates", headers=admin)
    assert {t["id"] for t in res.json()} >= {"general-standard", "modeling-standard", "event-standard"}
    assert client.get("/api/v1/contract-templates", headers=_auth(users["client"])).status_code == 403

    res = client.post(
        "/api/v1/contracts",
        json={"booking_id": booking_id, "booking_talent_id": link, "template_id": "modeling-standard"},
        headers=_auth(users["client"]),
    )
    assert res.status_code == 403
    contract_id = client.post(
        "/api/v1/contracts",
        json={"booking_id": booking_id, "booking_talent_id": link, "template_id": "modeling-standard"},
        headers=admin,
    ).json()["id"]

    res = client.get(f"/api/v1/contracts/{contract_id}/pdf", headers=_auth(users["a"]))
    assert res.status_code == 200
    assert res.headers["content-type"] == "application/pdf"
    assert res.content.startswith(b"%PDF")
    assert "contract_BK-" in res.headers["content-disposition"]

    assert client.get(f"/api/v1/contracts/{contract_id}", headers=_auth(users["b"])).status_code == 403
    assert client.get("/api/v1/contracts/999", headers=admin).status_code == 404
    assert len(client.get(f"/api/v1/bookings/{booking_id}/contracts", headers=_auth(users["client"])).json()) == 1
    assert client.get("/api/v1/contracts", headers=_auth(users["b"])).json() == []
    res = client.get("/api/v1/contracts", params={"status": "draft"}, headers=admin)
    assert [c["id"] for c in res.json()] == [contract_id]

    # Sign before send
    res = client.post(
        f"/api/v1/contracts/{contract_id}/sign",
        json={"signature_image_url": "x"},
        headers=_auth(users["a"]),
    )
    assert res.status_code == 409
    res = client.post(
        f"/api/v1/contracts/{contract_id}/sign",
        json={"signature_image_url": ""},
        headers=_auth(users["a"]),
    )
    assert res.status_code == 422
    app.dependency_overrides.clear()


def test_task_endpoints():
    Session = setup_app()
    users = _seed_users(Session)
    client = TestClient(app)
    admin = _auth(users["admin"])

    res = client.post(
        "/api/v1/tasks",
        json={"title": "Collect W-9", "assignee_id": users["a"].id, "priority": "high"},
        headers=admin,
    )
    assert res.status_code == 201
    task_id = res.json()["id"]
    assert res.json()["status"] == "todo"

    res = client.get("/api/v1/tasks", headers=_auth(users["a"]))
    assert res.json()["total"] == 1
    res = client.patch(f"/api/v1/tasks/{task_id}", json={"status": "done"}, headers=_auth(users["a"]))
    assert res.status_code == 200
    assert res.json()["status"] == "done"
    res = client.patch(f"/api/v1/tasks/{task_id}", json={"title": "Mine now"}, headers=_auth(users["a"]))
    assert res.status_code == 403
    assert client.get("/api/v1/tasks", headers=_auth(users["b"])).json()["total"] == 0

    assert client.delete(f"/api/v1/tasks/{task_id}", headers=_auth(users["a"])).status_code == 403
    assert client.delete(f"/api/v1/tasks/{task_id}", headers=admin).status_code == 204
    res = client.patch(f"/api/v1/tasks/{task_id}", json={"priority": None}, headers=admin)
    assert res.status_code == 422
    res = client.patch(f"/api/v1/tasks/{task_id}", json={"due_at": "2030-01-01T12:00:00Z"}, headers=admin)
    assert res.json()["due_at"] == "2030-01-01T12:00:00"

    assert client.patch(f"/api/v1/tasks/{task_id}", json={"status": "todo"}, headers=admin).status_code == 404
    app.dependency_overrides.clear()


def test_request_validation_errors_are_json():
    setup_app()
    client = TestClient(app)
    res = client.post("/auth/register", json={"email": "not-an-email"})
    assert res.status_code == 422
    assert isinstance(res.json()["detail"], list)
    app.dependency_overrides.clear()


def test_booking_patch_rejects_nulls_and_normalises_dates():
    Session = setup_app()
    users = _seed_users(Session)
    client = TestClient(app)
    admin = _auth(users["admin"])
    booking_id = _create_booking(client, users).json()["id"]

    for field in ("title", "start_date", "end_date", "status"):
        res = client.patch(f"/api/v1/bookings/{booking_id}", json={field: None}, headers=admin)
        assert res.status_code == 422, field

    res = client.patch(
        f"/api/v1/bookings/{booking_id}",
        json={"end_date": "2024-03-20T00:00:00Z", "location": None},
        headers=admin,
    )
    assert res.status_code == 200
    assert res.json()["end_date"] == "2024-03-20T00:00:00"
    assert res.json()["location"] is None

    res = client.patch(
        f"/api/v1/bookings/{booking_id}",
        json={"end_date": "2024-03-15T10:00:00+05:00"},
        headers=admin,
    )
    assert res.status_code == 422
    assert res.json()["detail"]["field_errors"] == {"end_date": "before_start"}

    res = client.post(
        "/api/v1/bookings",
        json={
            "title": "Mixed offsets",
            "start_date": "2024-03-15T09:00:00+02:00",
            "end_date": "2024-03-15T08:00:00Z",
            "client_id": users["client"].id,
        },
        headers=admin,
    )
    assert res.status_code == 201
    assert res.json()["start_date"] == "2024-03-15T07:00:00"
    app.dependency_overrides.clear()


def test_booking_patch_is_all_or_nothing_when_status_swap_loses(monkeypatch):
    Session = setup_app()
    users = _seed_users(Session)
    client = TestClient(app)
    admin = _auth(users["admin"])
    booking_id = _create_booking(client, users).json()["id"]
    # Another writer moves the status between the read and the swap
    monkeypatch.setattr(booking_lifecycle, "_apply", lambda db, booking, current, target: False)

    res = client.patch(
        f"/api/v1/bookings/{booking_id}",
        json={"title": "Renamed", "status": "cancelled"},
        headers=admin,
    )

    assert res.status_code == 409
    assert res.json()["detail"]["field_errors"] == {"status": "stale"}
    res = client.get(f"/api/v1/bookings/{booking_id}", headers=admin)
    assert res.json()["title"] == "Spring Shoot"
    assert res.json()["status"] == "inquiry"
    app.dependency_overrides.clear()
