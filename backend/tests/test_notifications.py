from unittest.mock import Mock

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.models.base import BaseModel
from app.api.dependencies import get_db
from app.api.auth import create_access_token
from app.crud import crud_notification
from app.models import Notification, NotificationType, User, UserRole
from app.utils import notifications


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


def _user(db, email, role=UserRole.CLIENT):
    user = User(email=email, password="x", first_name="N", last_name="User", role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _auth(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}


def test_list_count_and_mark_read():
    Session = setup_app()
    db = Session()
    owner = _user(db, "owner@test.com")
    other = _user(db, "other@test.com")
    first = crud_notification.create_notification(db, owner.id, NotificationType.TASK_ASSIGNED, "One", "first")
    crud_notification.create_notification(db, owner.id, NotificationType.TASK_ASSIGNED, "Two", "second")
    crud_notification.create_notification(db, other.id, NotificationType.TASK_ASSIGNED, "Theirs", "x")
    db.close()
    client = TestClient(app)

    res = client.get("/api/v1/notifications", headers=_auth(owner))
    assert res.status_code == 200
    assert [n["title"] for n in res.json()] == ["Two", "One"]

    res = client.get("/api/v1/notifications/unread-count", headers=_auth(owner))
    assert res.json() == {"count": 2}

    res = client.post(f"/api/v1/notifications/{first.id}/read", headers=_auth(owner))
    assert res.status_code == 200
    assert res.json()["is_read"] is True

    res = client.get("/api/v1/notifications", params={"unread_only": True}, headers=_auth(owner))
    assert [n["title"] for n in res.json()] == ["Two"]

    res = client.post("/api/v1/notifications/read-all", headers=_auth(owner))
    assert res.json() == {"updated": 1}
    res = client.get("/api/v1/notifications/unread-count", headers=_auth(owner))
    assert res.json() == {"count": 0}
    app.dependency_overrides.clear()


def test_cannot_touch_someone_elses_notification():
    Session = setup_app()
    db = Session()
    owner = _user(db, "owner@test.com")
    other = _user(db, "other@test.com")
    notif = crud_notification.create_notification(db, owner.id, NotificationType.TASK_ASSIGNED, "Mine", "x")
    db.close()
    client = TestClient(app)

    res = client.post(f"/api/v1/notifications/{notif.id}/read", headers=_auth(other))
    assert res.status_code == 403
    assert res.json()["detail"]["field_errors"] == {"notification_id": "forbidden"}
    res = client.post("/api/v1/notifications/999/read", headers=_auth(other))
    assert res.status_code == 404
    assert client.get("/api/v1/notifications").status_code == 401
    app.dependency_overrides.clear()


def test_notify_user_queues_email_on_background_tasks(patch_send_email):
    Session = setup_app()
    db = Session()
    user = _user(db, "user@test.com")
    background = Mock()

    notif = notifications.notify_user(
        db,
        user,
        NotificationType.BOOKING_REQUEST,
        "Hello",
        "Body text",
        action_url="/talent/bookings",
        background_tasks=background,
    )

    assert notif.user_id == user.id
    background.add_task.assert_called_once_with(
        patch_send_email,
        "user@test.com",
        "Hello",
        "Body text\n\nhttp://localhost:5173/talent/bookings",
    )
    patch_send_email.assert_not_called()


def test_notification_store_failure_is_swallowed(monkeypatch, patch_send_email):
    Session = setup_app()
    db = Session()
    user = _user(db, "user@test.com")

    def boom(*args, **kwargs):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(crud_notification, "create_notification", boom)
    result = notifications.notify_user(db, user, NotificationType.TASK_ASSIGNED, "Hi", "There")

    assert result is None
    assert db.query(Notification).count() == 0
    # Email still goes out even when the row could not be stored
    patch_send_email.assert_called_once()


def test_missing_recipient_is_skipped(patch_send_email):
    Session = setup_app()
    db = Session()
    assert notifications.notify_user(db, None, NotificationType.TASK_ASSIGNED, "Hi", "There") is None
    patch_send_email.assert_not_called()


def test_admin_notifications_copy_extra_inbox(monkeypatch, patch_send_email):
    Session = setup_app()
    db = Session()
    _user(db, "boss@test.com", role=UserRole.ADMIN)
    monkeypatch.setattr(notifications.settings, "ADMIN_NOTIFICATION_EMAIL", "desk@test.com")

    notifications._notify_admins(
        db, NotificationType.CONTRACT_SIGNED, "Signed", "Done", "/admin/contracts/1", None, None
    )

    recipients = [call.args[0] for call in patch_send_email.call_args_list]
    assert recipients == ["boss@test.com", "desk@test.com"]
